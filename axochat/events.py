"""Typed event payloads and the subscriber registry."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Events a client publishes to its subscribers."""

    OPEN = "open"
    CLOSE = "close"
    RAW_PACKET = "rawPacket"
    PACKET = "packet"
    ERROR = "error"
    MESSAGE = "message"
    PRIVATE_MESSAGE = "privateMessage"
    NEW_JWT = "newJWT"
    SUCCESS = "success"
    USER_COUNT = "userCount"


class ErrorReason(str, Enum):
    """Reasons the server reports in an ``Error`` packet."""

    NOT_SUPPORTED = "NotSupported"
    LOGIN_FAILED = "LoginFailed"
    NOT_LOGGED_IN = "NotLoggedIn"
    ALREADY_LOGGED_IN = "AlreadyLoggedIn"
    MOJANG_REQUEST_MISSING = "MojangRequestMissing"
    NOT_PERMITTED = "NotPermitted"
    NOT_BANNED = "NotBanned"
    BANNED = "Banned"
    RATE_LIMITED = "RateLimited"
    PRIVATE_MESSAGE_NOT_ACCEPTED = "PrivateMessageNotAccepted"
    EMPTY_MESSAGE = "EmptyMessage"
    MESSAGE_TOO_LONG = "MessageTooLong"
    INVALID_CHARACTER = "InvalidCharacter"
    INVALID_ID = "InvalidId"
    INTERNAL = "Internal"


class SuccessReason(str, Enum):
    """Reasons the server reports in a ``Success`` packet."""

    LOGIN = "Login"
    BAN = "Ban"
    UNBAN = "Unban"


@dataclass(frozen=True)
class AuthorInfo:
    """Sender of a chat message."""

    name: str
    uuid: str


@dataclass(frozen=True)
class ErrorEvent:
    """A protocol error; reasons newer than this client arrive as plain strings."""

    message: ErrorReason | str


@dataclass(frozen=True)
class MessageEvent:
    """A public or private chat message."""

    author: AuthorInfo
    content: str


@dataclass(frozen=True)
class NewJWTEvent:
    token: str


@dataclass(frozen=True)
class SuccessEvent:
    reason: SuccessReason | str


@dataclass(frozen=True)
class UserCountEvent:
    connections: int
    logged_in: int


Callback = Callable[[Any], None]


class EventRegistry:
    """Ordered subscriber lists keyed by event type.

    Emission is synchronous: every subscriber runs to completion, in the
    order it subscribed, before ``emit`` returns. A subscriber that raises
    is logged and the remaining subscribers still run.

    Not thread-safe; subscribe, unsubscribe and emit must happen on the
    thread that drives the owning client.
    """

    def __init__(self) -> None:
        self._subscribers: dict[EventType, list[Callback]] = {event: [] for event in EventType}

    def subscribe(self, event: EventType | str, callback: Callback) -> None:
        """Register a callback for an event.

        Args:
            event: Event type or its string tag (e.g. ``"userCount"``)
            callback: Callable taking the event payload

        Raises:
            ValueError: If the event tag is unknown
            TypeError: If callback is not callable
        """
        if not callable(callback):
            raise TypeError(f"callback must be callable (got {type(callback).__name__})")
        subscribers = self._subscribers[EventType(event)]
        if callback not in subscribers:
            subscribers.append(callback)

    def unsubscribe(self, event: EventType | str, callback: Callback) -> None:
        """Remove a callback; unknown callbacks are ignored."""
        subscribers = self._subscribers[EventType(event)]
        if callback in subscribers:
            subscribers.remove(callback)

    def subscribers(self, event: EventType | str) -> list[Callback]:
        return list(self._subscribers[EventType(event)])

    def emit(self, event: EventType, data: Any) -> None:
        """Deliver data to every subscriber of an event.

        Args:
            event: Event type to publish
            data: Event payload
        """
        for callback in list(self._subscribers[event]):
            try:
                callback(data)
            except Exception as e:
                logger.exception("Error in %s subscriber: %s", event.value, e)
