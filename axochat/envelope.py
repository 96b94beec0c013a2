"""AxoChat envelope creation and validation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .constants import K_CONTENT, K_KIND
from .exceptions import MalformedEnvelopeError


def freeze(value: Any) -> Any:
    """Return a read-only copy of a decoded JSON value.

    Objects become read-only mappings and arrays become tuples, at every depth.
    """
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


@dataclass(frozen=True)
class Envelope:
    """A single wire packet.

    Attributes:
        kind: Packet kind, the ``m`` field (e.g. ``"Message"``)
        payload: Packet payload, the ``c`` field, with wire (snake_case) keys.
            Read-only at every depth.
    """

    kind: str
    payload: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", freeze(self.payload))


def validate_envelope(obj: Any) -> Envelope:
    """Validate a decoded JSON object and turn it into an envelope.

    Args:
        obj: Object produced by the JSON parser

    Returns:
        Validated envelope

    Raises:
        MalformedEnvelopeError: If the object is not a valid envelope
    """
    if not isinstance(obj, dict):
        raise MalformedEnvelopeError(f"envelope must be a JSON object, got {type(obj).__name__}")

    kind = obj.get(K_KIND)
    if kind is None:
        raise MalformedEnvelopeError(f"missing required envelope key {K_KIND!r}")
    if not isinstance(kind, str):
        raise MalformedEnvelopeError("packet kind must be a string")

    payload = obj.get(K_CONTENT)
    if payload is None:
        payload = {}
    elif not isinstance(payload, dict):
        raise MalformedEnvelopeError(
            f"packet payload must be a JSON object, got {type(payload).__name__}"
        )

    return Envelope(kind=kind, payload=payload)
