"""Configuration management for AxoChat clients."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, cast

from .client import Client, ClientConfig
from .constants import MAX_FRAME_SIZE
from .transport import CloseEvent, Transport
from .utils import expand_path

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".axochat"
DEFAULT_CONFIG_FILE = "config.json"
MAX_CONFIG_FILE_SIZE = 1024 * 1024


def get_default_config() -> dict[str, Any]:
    """Get default configuration values.

    Returns:
        Default configuration dictionary
    """
    return {
        "server_url": "",
        "token": "",
        "allow_messages": False,
        "heartbeat_s": 30.0,
        "connect_timeout_s": 20.0,
        "max_frame_bytes": MAX_FRAME_SIZE,
        "raise_on_malformed": False,
    }


def get_config_path() -> str:
    """Get the configuration file path.

    Returns:
        Absolute path to config file
    """
    env_path = os.environ.get("AXOCHAT_CONFIG")
    if env_path:
        return expand_path(env_path)

    return str(DEFAULT_CONFIG_DIR / DEFAULT_CONFIG_FILE)


def load_config() -> dict[str, Any]:
    """Load configuration from file.

    A default file is written when none exists. Missing keys are filled
    from the defaults; an unreadable or oversized file yields the defaults.

    Returns:
        Configuration dictionary
    """
    config_path = Path(get_config_path())

    if not config_path.is_file():
        logger.info("Config file not found, creating default at %s", config_path)
        config = get_default_config()
        save_config(config)
        return config

    try:
        file_size = config_path.stat().st_size
        if file_size > MAX_CONFIG_FILE_SIZE:
            logger.error(
                "Config file too large: %d bytes (max %d)",
                file_size,
                MAX_CONFIG_FILE_SIZE,
            )
            return get_default_config()

        with open(config_path, encoding="utf-8") as f:
            config = json.load(f)
        if not isinstance(config, dict):
            logger.error("Config file %s does not hold a JSON object", config_path)
            return get_default_config()
        logger.info("Loaded config from %s", config_path)

        for key, value in get_default_config().items():
            config.setdefault(key, value)

        return cast(dict[str, Any], config)
    except (OSError, ValueError) as e:
        logger.exception("Failed to load config from %s: %s", config_path, e)
        return get_default_config()


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to file.

    Args:
        config: Configuration dictionary to save
    """
    config_path = Path(get_config_path())

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        logger.info("Saved config to %s", config_path)
    except OSError as e:
        logger.exception("Failed to save config to %s: %s", config_path, e)


def client_config_from(config: dict[str, Any]) -> ClientConfig:
    """Build a ClientConfig from a loaded configuration dictionary.

    Args:
        config: Configuration as returned by load_config()

    Returns:
        Client configuration
    """
    heartbeat = config.get("heartbeat_s")
    return ClientConfig(
        heartbeat_s=float(heartbeat) if heartbeat else None,
        connect_timeout_s=float(config.get("connect_timeout_s", 20.0)),
        max_frame_bytes=int(config.get("max_frame_bytes", MAX_FRAME_SIZE)),
        raise_on_malformed=bool(config.get("raise_on_malformed", False)),
    )


def connect_from_config(client: Client, config: dict[str, Any]) -> None:
    """Connect a client to the configured server and log in once it opens.

    The login uses ``token`` and ``allow_messages``; with an empty token the
    connection stays anonymous. The login hook only applies to the
    connection made here and is removed when that connection opens or closes.

    Args:
        client: Client to connect
        config: Configuration as returned by load_config()

    Raises:
        ValueError: If no server URL is configured
    """
    server_url = config.get("server_url")
    if not server_url or not isinstance(server_url, str):
        raise ValueError("server_url is not configured")

    token = config.get("token") or ""
    if not isinstance(token, str):
        raise ValueError(f"token must be a string (got {type(token).__name__})")
    allow_messages = bool(config.get("allow_messages", False))

    connection: list[Transport] = []

    def on_open(transport: Transport) -> None:
        if transport not in connection:
            return
        detach()
        if token:
            logger.info("Logging in to %s", server_url)
            client.login_jwt(token, allow_messages=allow_messages)

    def on_close(event: CloseEvent) -> None:
        if event.transport in connection:
            detach()

    def detach() -> None:
        client.off("open", on_open)
        client.off("close", on_close)

    client.on("open", on_open)
    client.on("close", on_close)
    try:
        client.connect(server_url)
    except Exception:
        detach()
        raise
    connection.append(client.transport)
