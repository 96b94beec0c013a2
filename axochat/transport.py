"""WebSocket transport for the AxoChat client."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import aiohttp

from .constants import CLOSE_ABNORMAL, CLOSE_NORMAL
from .exceptions import NotConnectedError

if TYPE_CHECKING:
    from .client import ClientConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CloseEvent:
    """Why a connection ended.

    Attributes:
        code: WebSocket close code, or None if the server sent none
        reason: Human readable reason (may be empty)
        transport: Transport that closed; filled in by the client, so a
            subscriber can tell a replaced connection from the current one
    """

    code: int | None
    reason: str = ""
    transport: Transport | None = field(default=None, compare=False, repr=False)


class Transport(ABC):
    """Minimal message transport consumed by the client.

    Implementations deliver notifications through the ``on_open``,
    ``on_message`` and ``on_close`` attributes, one at a time and in
    order. ``on_close`` fires at most once per transport.
    """

    def __init__(self, url: str) -> None:
        self.url = url
        self.on_open: Callable[[Transport], None] | None = None
        self.on_message: Callable[[str], None] | None = None
        self.on_close: Callable[[CloseEvent], None] | None = None

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """True once the connection is established and until it closes."""

    @abstractmethod
    def start(self) -> None:
        """Begin connecting; returns without waiting for the connection."""

    @abstractmethod
    def send(self, data: bytes) -> None:
        """Send one frame."""

    @abstractmethod
    def close(self, code: int = CLOSE_NORMAL) -> None:
        """Request the connection to close."""


class WebSocketTransport(Transport):
    """aiohttp WebSocket connection driven by the running asyncio loop.

    ``start`` must be called from a coroutine (or a callback) running on
    the loop; all notifications are delivered on that loop.
    """

    def __init__(self, url: str, config: ClientConfig) -> None:
        super().__init__(url)
        self.config = config
        self._loop: asyncio.AbstractEventLoop | None = None
        self._task: asyncio.Task | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._pending_io: set[asyncio.Task] = set()
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self._ws is not None and not self._ws.closed

    def start(self) -> None:
        if self._task is not None:
            raise RuntimeError("transport already started")
        self._loop = asyncio.get_running_loop()
        self._task = self._loop.create_task(self._run(), name=f"axochat-ws-{self.url}")
        self._task.add_done_callback(self._task_finished)

    async def wait_closed(self) -> None:
        """Wait until the connection task has finished."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    async def _run(self) -> None:
        close = CloseEvent(CLOSE_ABNORMAL, "connection lost")
        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=None, connect=self.config.connect_timeout_s)
            ) as http:
                async with http.ws_connect(
                    self.url,
                    heartbeat=self.config.heartbeat_s,
                    max_msg_size=self.config.max_frame_bytes,
                ) as ws:
                    self._ws = ws
                    logger.info("Connected to %s", self.url)
                    self._notify(self.on_open, self)

                    async for msg in ws:
                        if msg.type == aiohttp.WSMsgType.TEXT:
                            self._notify(self.on_message, msg.data)
                        elif msg.type == aiohttp.WSMsgType.BINARY:
                            try:
                                text = msg.data.decode("utf-8")
                            except UnicodeDecodeError as e:
                                logger.warning("Dropping undecodable binary frame: %s", e)
                                continue
                            self._notify(self.on_message, text)
                        elif msg.type == aiohttp.WSMsgType.ERROR:
                            logger.error("WebSocket error: %s", ws.exception())
                            break

                    close = CloseEvent(ws.close_code, _close_reason(ws))
        except asyncio.CancelledError:
            close = CloseEvent(CLOSE_NORMAL, "connection cancelled")
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.warning("WebSocket connection to %s failed: %s", self.url, e)
            close = CloseEvent(CLOSE_ABNORMAL, str(e))
        finally:
            self._ws = None
            self._report_close(close)

    def _task_finished(self, _task: asyncio.Task) -> None:
        # a task cancelled before its first step never enters _run
        self._report_close(CloseEvent(CLOSE_NORMAL, "connection cancelled"))

    def _report_close(self, close: CloseEvent) -> None:
        if self._closed:
            return
        self._closed = True
        logger.info("Disconnected from %s (code=%s)", self.url, close.code)
        self._notify(self.on_close, close)

    def _notify(self, callback: Callable | None, arg: object) -> None:
        if callback is None:
            return
        try:
            callback(arg)
        except Exception as e:
            logger.exception("Error in transport callback: %s", e)

    def send(self, data: bytes) -> None:
        """Queue a text frame on the loop.

        Raises:
            NotConnectedError: If the WebSocket is not open
        """
        ws = self._ws
        if ws is None or ws.closed or self._loop is None:
            raise NotConnectedError("WebSocket is not open yet. Wait for the open event before sending.")
        task = self._loop.create_task(ws.send_str(data.decode("utf-8")))
        self._pending_io.add(task)
        task.add_done_callback(self._io_done)

    def _io_done(self, task: asyncio.Task) -> None:
        self._pending_io.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("WebSocket I/O on %s failed: %s", self.url, exc)

    def close(self, code: int = CLOSE_NORMAL) -> None:
        if self._task is None or self._task.done() or self._loop is None:
            return
        ws = self._ws
        if ws is not None and not ws.closed:
            task = self._loop.create_task(ws.close(code=code))
            self._pending_io.add(task)
            task.add_done_callback(self._io_done)
        else:
            self._task.cancel()


def _close_reason(ws: aiohttp.ClientWebSocketResponse) -> str:
    exc = ws.exception()
    return str(exc) if exc is not None else ""
