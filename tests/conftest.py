from __future__ import annotations

import pytest

from axochat.client import Client, ClientConfig
from axochat.transport import CloseEvent, Transport


class FakeTransport(Transport):
    """In-memory transport; tests drive the notifications by hand."""

    def __init__(self, url: str, config: ClientConfig) -> None:
        super().__init__(url)
        self.config = config
        self.sent: list[bytes] = []
        self.started = False
        self.close_calls: list[int] = []
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def start(self) -> None:
        self.started = True

    def send(self, data: bytes) -> None:
        self.sent.append(data)

    def close(self, code: int = 1000) -> None:
        self.close_calls.append(code)
        self._open = False

    # server side helpers

    def server_open(self) -> None:
        self._open = True
        self.on_open(self)

    def server_send(self, text: str) -> None:
        self.on_message(text)

    def server_close(self, code: int = 1000, reason: str = "") -> None:
        self._open = False
        self.on_close(CloseEvent(code, reason))


class Recorder:
    """Collects (event, payload) pairs in emission order."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []

    def hook(self, client: Client, *events: str) -> None:
        for event in events:
            client.on(event, lambda data, event=event: self.calls.append((event, data)))

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def payloads(self, event: str) -> list[object]:
        return [data for name, data in self.calls if name == event]


ALL_EVENTS = (
    "open",
    "close",
    "rawPacket",
    "packet",
    "error",
    "message",
    "privateMessage",
    "newJWT",
    "success",
    "userCount",
)


@pytest.fixture
def transports() -> list[FakeTransport]:
    return []


@pytest.fixture
def client(transports: list[FakeTransport]) -> Client:
    def factory(url: str, config: ClientConfig) -> FakeTransport:
        transport = FakeTransport(url, config)
        transports.append(transport)
        return transport

    return Client(transport_factory=factory)


@pytest.fixture
def recorder(client: Client) -> Recorder:
    rec = Recorder()
    rec.hook(client, *ALL_EVENTS)
    return rec
