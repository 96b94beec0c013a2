"""JSON codec for AxoChat packets."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from typing import Any

from .constants import (
    F_AUTHOR_INFO,
    F_CONNECTIONS,
    F_CONTENT,
    F_LOGGED_IN,
    F_MESSAGE,
    F_NAME,
    F_REASON,
    F_TOKEN,
    F_UUID,
    K_CONTENT,
    K_KIND,
    MAX_FRAME_SIZE,
    P_ERROR,
    P_MESSAGE,
    P_NEW_JWT,
    P_PRIVATE_MESSAGE,
    P_SUCCESS,
    P_USER_COUNT,
)
from .envelope import Envelope, validate_envelope
from .events import (
    AuthorInfo,
    ErrorEvent,
    ErrorReason,
    EventType,
    MessageEvent,
    NewJWTEvent,
    SuccessEvent,
    SuccessReason,
    UserCountEvent,
)
from .exceptions import MalformedEnvelopeError

logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    # read-only payloads from decoded envelopes
    if isinstance(value, Mapping):
        return dict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode(kind: str, payload: Mapping[str, Any] | None = None) -> bytes:
    """Encode a packet to UTF-8 JSON bytes.

    Payload keys must already be wire (snake_case) names. The ``c`` key is
    left out entirely when there is no payload.

    Args:
        kind: Packet kind
        payload: Optional packet payload

    Returns:
        UTF-8 encoded JSON text

    Raises:
        TypeError: If the payload holds values JSON cannot represent
    """
    obj: dict[str, Any] = {K_KIND: kind}
    if payload is not None:
        obj[K_CONTENT] = payload
    return json.dumps(
        obj, separators=(",", ":"), ensure_ascii=False, default=_json_default
    ).encode("utf-8")


def decode(data: str | bytes, max_size: int = MAX_FRAME_SIZE) -> Envelope:
    """Decode a JSON frame into an envelope.

    Args:
        data: Raw frame text (or UTF-8 bytes)
        max_size: Largest accepted frame, in bytes

    Returns:
        Decoded envelope

    Raises:
        MalformedEnvelopeError: If the frame is too large, not JSON, or not an envelope
    """
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    if len(raw) > max_size:
        raise MalformedEnvelopeError(f"frame too large: {len(raw)} bytes (max {max_size})")

    try:
        obj = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedEnvelopeError(f"frame is not valid JSON: {e}") from e

    return validate_envelope(obj)


def _field(payload: Mapping[str, Any], name: str, kind: type | tuple[type, ...]) -> Any:
    value = payload.get(name)
    # bool is an int subclass; never accept it where a number is expected
    if not isinstance(value, kind) or (isinstance(value, bool) and kind is int):
        raise MalformedEnvelopeError(
            f"field {name!r} must be {getattr(kind, '__name__', kind)}, got {type(value).__name__}"
        )
    return value


def _reason(enum_type: type, value: str) -> Any:
    # reasons the server added after this client keep their raw string
    try:
        return enum_type(value)
    except ValueError:
        logger.debug("Unknown %s value: %r", enum_type.__name__, value)
        return value


def _translate_error(payload: Mapping[str, Any]) -> ErrorEvent:
    return ErrorEvent(message=_reason(ErrorReason, _field(payload, F_MESSAGE, str)))


def _translate_message(payload: Mapping[str, Any]) -> MessageEvent:
    author = _field(payload, F_AUTHOR_INFO, Mapping)
    return MessageEvent(
        author=AuthorInfo(name=_field(author, F_NAME, str), uuid=_field(author, F_UUID, str)),
        content=_field(payload, F_CONTENT, str),
    )


def _translate_new_jwt(payload: Mapping[str, Any]) -> NewJWTEvent:
    return NewJWTEvent(token=_field(payload, F_TOKEN, str))


def _translate_success(payload: Mapping[str, Any]) -> SuccessEvent:
    return SuccessEvent(reason=_reason(SuccessReason, _field(payload, F_REASON, str)))


def _translate_user_count(payload: Mapping[str, Any]) -> UserCountEvent:
    return UserCountEvent(
        connections=_field(payload, F_CONNECTIONS, int),
        logged_in=_field(payload, F_LOGGED_IN, int),
    )


# Adding an inbound kind means adding exactly one row here
_INBOUND: dict[str, tuple[EventType, Callable[[Mapping[str, Any]], Any]]] = {
    P_ERROR: (EventType.ERROR, _translate_error),
    P_MESSAGE: (EventType.MESSAGE, _translate_message),
    P_PRIVATE_MESSAGE: (EventType.PRIVATE_MESSAGE, _translate_message),
    P_NEW_JWT: (EventType.NEW_JWT, _translate_new_jwt),
    P_SUCCESS: (EventType.SUCCESS, _translate_success),
    P_USER_COUNT: (EventType.USER_COUNT, _translate_user_count),
}


def classify(envelope: Envelope) -> EventType | None:
    """Map an envelope to the typed event it produces.

    Returns:
        The event type, or None for kinds this client does not know
    """
    entry = _INBOUND.get(envelope.kind)
    return entry[0] if entry else None


def translate(envelope: Envelope) -> Any:
    """Build the typed payload for a recognized envelope.

    Raises:
        KeyError: If the envelope kind is not recognized
        MalformedEnvelopeError: If the payload lacks or mistypes a field
    """
    _, translator = _INBOUND[envelope.kind]
    return translator(envelope.payload)
