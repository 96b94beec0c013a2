"""Utility functions for the AxoChat client."""

from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure root logging for applications embedding the client.

    Args:
        level: Level name; defaults to $AXOCHAT_LOG_LEVEL or INFO
    """
    level_name = (level or os.environ.get("AXOCHAT_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)


def expand_path(p: str) -> str:
    """Expand ~ and environment variables in path.

    Args:
        p: Path string to expand

    Returns:
        Expanded absolute path
    """
    return str(Path(os.path.expandvars(p)).expanduser().resolve())


def format_user_id(value: str | uuid.UUID) -> str:
    """Return a user id as the string sent on the wire.

    UUID objects are rendered in their dashed form; strings are passed
    through untouched so the server stays the judge of their validity.

    Args:
        value: UUID object or UUID string

    Returns:
        User id string

    Raises:
        ValueError: If value is neither a string nor a UUID
    """
    if isinstance(value, uuid.UUID):
        return str(value)
    if not isinstance(value, str):
        raise ValueError(f"User id must be a string or UUID (got {type(value).__name__})")
    return value
