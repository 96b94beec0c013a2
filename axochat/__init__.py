"""Client library for the AxoChat chat protocol."""

from .client import Client, ClientConfig
from .codec import classify, decode, encode, translate
from .envelope import Envelope
from .events import (
    AuthorInfo,
    ErrorEvent,
    ErrorReason,
    EventRegistry,
    EventType,
    MessageEvent,
    NewJWTEvent,
    SuccessEvent,
    SuccessReason,
    UserCountEvent,
)
from .exceptions import AxoChatError, MalformedEnvelopeError, NotConnectedError
from .transport import CloseEvent, Transport, WebSocketTransport

__version__ = "0.1.0"

__all__ = [
    "AuthorInfo",
    "AxoChatError",
    "Client",
    "ClientConfig",
    "CloseEvent",
    "Envelope",
    "ErrorEvent",
    "ErrorReason",
    "EventRegistry",
    "EventType",
    "MalformedEnvelopeError",
    "MessageEvent",
    "NewJWTEvent",
    "NotConnectedError",
    "SuccessEvent",
    "SuccessReason",
    "Transport",
    "UserCountEvent",
    "WebSocketTransport",
    "classify",
    "decode",
    "encode",
    "translate",
]
