"""AxoChat client session."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from typing import Any

from .codec import classify, decode, encode, translate
from .constants import (
    F_ALLOW_MESSAGES,
    F_CONTENT,
    F_MESSAGE,
    F_RECEIVER,
    F_TOKEN,
    F_USER,
    MAX_FRAME_SIZE,
    P_BAN_USER,
    P_LOGIN_JWT,
    P_MESSAGE,
    P_PRIVATE_MESSAGE,
    P_REQUEST_JWT,
    P_REQUEST_USER_COUNT,
    P_UNBAN_USER,
)
from .events import Callback, EventRegistry, EventType
from .exceptions import MalformedEnvelopeError, NotConnectedError
from .transport import CloseEvent, Transport, WebSocketTransport
from .utils import format_user_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientConfig:
    """Configuration for AxoChat client."""

    heartbeat_s: float | None = 30.0
    connect_timeout_s: float = 20.0
    max_frame_bytes: int = MAX_FRAME_SIZE
    raise_on_malformed: bool = False


TransportFactory = Callable[[str, ClientConfig], Transport]


def _require_str(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string (got {type(value).__name__})")
    return value


class Client:
    """AxoChat protocol session over a single connection.

    The client owns at most one transport. Inbound frames are published as
    events, in this order: ``rawPacket`` (raw text), ``packet`` (decoded
    ``Envelope``), then one typed event for known packet kinds (``error``,
    ``message``, ``privateMessage``, ``newJWT``, ``success``, ``userCount``).
    ``open`` carries the transport and ``close`` carries a ``CloseEvent``
    whose ``transport`` names the connection that closed. A connection
    replaced by ``connect()`` still reports its close; compare
    ``event.transport`` with ``client.transport`` to tell the two apart.
    Once a subscriber calls ``disconnect()``, the rest of the current
    frame is not published.

    Threading:
        Not thread-safe. Every call and every transport notification must
        happen on one thread; with the default WebSocket transport that is
        the asyncio loop ``connect()`` was called from. Other threads should
        hand work to the loop with ``loop.call_soon_threadsafe``.

        Subscribers run synchronously inside the notification that produced
        the event, so a slow subscriber delays every following frame.

    Example:
        >>> client = Client()
        >>> client.on("open", lambda _: client.login_jwt(token, allow_messages=True))
        >>> client.on("message", lambda msg: print(msg.author.name, msg.content))
        >>> client.connect("wss://chat.example.net/ws")
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport_factory: TransportFactory | None = None,
    ) -> None:
        """Initialize AxoChat client.

        Args:
            config: Optional client configuration
            transport_factory: Builds the transport for a URL; defaults to WebSocketTransport
        """
        self.config = config or ClientConfig()
        self.transport_factory: TransportFactory = transport_factory or WebSocketTransport
        self.events = EventRegistry()
        self._transport: Transport | None = None

    @property
    def transport(self) -> Transport | None:
        return self._transport

    @property
    def connected(self) -> bool:
        """True while a transport is bound, whether or not it has opened yet."""
        return self._transport is not None

    def on(self, event: EventType | str, callback: Callback | None = None) -> Any:
        """Subscribe to an event.

        Can be used directly or as a decorator::

            @client.on("userCount")
            def show(count): ...

        Args:
            event: Event type or its string tag
            callback: Subscriber; omit to use as a decorator

        Returns:
            The callback, or a decorator when no callback was given
        """
        if callback is None:

            def decorator(fn: Callback) -> Callback:
                self.events.subscribe(event, fn)
                return fn

            return decorator

        self.events.subscribe(event, callback)
        return callback

    def off(self, event: EventType | str, callback: Callback) -> None:
        """Unsubscribe a callback from an event."""
        self.events.unsubscribe(event, callback)

    def connect(self, url: str) -> None:
        """Connect the client to an AxoChat server.

        Returns immediately; the ``open`` event reports the established
        connection. An existing connection is closed and replaced.

        Args:
            url: WebSocket URL of the AxoChat server
        """
        _require_str("Server URL", url)

        if self._transport is not None:
            logger.info("Replacing existing connection to %s", self._transport.url)
            self.disconnect()

        transport = self.transport_factory(url, self.config)
        transport.on_open = lambda _t: self._handle_open(transport)
        transport.on_message = lambda data: self._handle_message(transport, data)
        transport.on_close = lambda event: self._handle_close(transport, event)

        self._transport = transport
        try:
            transport.start()
        except Exception:
            self._transport = None
            raise
        logger.debug("Connecting to %s", url)

    def disconnect(self) -> None:
        """Disconnect from the server; does nothing when not connected."""
        transport = self._transport
        if transport is None:
            return
        self._transport = None

        try:
            transport.close()
        except Exception as e:
            logger.debug("Error closing transport during disconnect: %s", e)

    def _handle_open(self, transport: Transport) -> None:
        if transport is not self._transport:
            logger.debug("Ignoring open from a replaced connection to %s", transport.url)
            return
        self.events.emit(EventType.OPEN, transport)

    def _handle_close(self, transport: Transport, event: CloseEvent) -> None:
        if transport is self._transport:
            self._transport = None
        self.events.emit(EventType.CLOSE, replace(event, transport=transport))

    def _handle_message(self, transport: Transport, data: str) -> None:
        """Handle an incoming frame from the server.

        Args:
            transport: Transport the frame arrived on
            data: Raw frame text
        """
        if transport is not self._transport:
            logger.debug("Dropping frame from a replaced connection to %s", transport.url)
            return

        self.events.emit(EventType.RAW_PACKET, data)
        if transport is not self._transport:
            return

        try:
            envelope = decode(data, max_size=self.config.max_frame_bytes)
        except MalformedEnvelopeError as e:
            if self.config.raise_on_malformed:
                raise
            logger.warning("Dropping malformed frame: %s", e)
            return

        logger.debug("Received packet kind: %s", envelope.kind)
        self.events.emit(EventType.PACKET, envelope)
        if transport is not self._transport:
            return

        event = classify(envelope)
        if event is None:
            logger.debug("No typed event for packet kind %s", envelope.kind)
            return

        try:
            payload = translate(envelope)
        except MalformedEnvelopeError as e:
            if self.config.raise_on_malformed:
                raise
            logger.warning("Dropping malformed %s packet: %s", envelope.kind, e)
            return

        self.events.emit(event, payload)

    def login_jwt(self, token: str, allow_messages: bool = False) -> None:
        """Log in using a JSON web token.

        Args:
            token: JWT, obtainable with ``request_jwt`` on an authenticated connection
            allow_messages: Whether other clients may send private messages to this one
        """
        _require_str("Token", token)
        if not isinstance(allow_messages, bool):
            raise ValueError(f"allow_messages must be a bool (got {type(allow_messages).__name__})")
        self.send_packet(P_LOGIN_JWT, {F_TOKEN: token, F_ALLOW_MESSAGES: allow_messages})

    def send_message(self, content: str) -> None:
        """Send a public message."""
        _require_str("Message content", content)
        self.send_packet(P_MESSAGE, {F_CONTENT: content})

    def send_private_message(self, receiver: str, message: str) -> None:
        """Send a private message.

        Args:
            receiver: Name of the user that should receive the message
            message: Message text
        """
        _require_str("Receiver", receiver)
        _require_str("Message text", message)
        self.send_packet(P_PRIVATE_MESSAGE, {F_MESSAGE: message, F_RECEIVER: receiver})

    def request_jwt(self) -> None:
        """Request a JWT; answered with a ``newJWT`` event once authenticated."""
        self.send_packet(P_REQUEST_JWT)

    def request_user_count(self) -> None:
        """Request the user count; answered with a ``userCount`` event."""
        self.send_packet(P_REQUEST_USER_COUNT)

    def ban_user(self, user: str | uuid.UUID) -> None:
        """Ban a user. Requires moderator permissions.

        Args:
            user: UUID (with dashes) of the user to ban
        """
        self.send_packet(P_BAN_USER, {F_USER: format_user_id(user)})

    def unban_user(self, user: str | uuid.UUID) -> None:
        """Unban a user. Requires moderator permissions.

        Args:
            user: UUID (with dashes) of the user to unban
        """
        self.send_packet(P_UNBAN_USER, {F_USER: format_user_id(user)})

    def send_packet(self, kind: str, payload: Mapping[str, Any] | None = None) -> None:
        """Send a raw packet to the server.

        Intended for the operations above; payload keys must be wire names.

        Args:
            kind: Packet kind
            payload: Optional packet payload

        Raises:
            NotConnectedError: If no connection is bound
        """
        transport = self._transport
        if transport is None:
            raise NotConnectedError()
        data = encode(kind, payload)
        logger.debug("Sending packet kind: %s", kind)
        transport.send(data)
