"""Exceptions raised by the AxoChat client."""

from __future__ import annotations


class AxoChatError(RuntimeError):
    """Base class for all AxoChat client errors."""

    pass


class NotConnectedError(AxoChatError):
    """Raised when sending without a bound connection."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "Not connected to an AxoChat server. Call connect() before sending packets."
        )


class MalformedEnvelopeError(AxoChatError, ValueError):
    """Raised when an inbound frame is not a valid AxoChat envelope."""

    pass
