from __future__ import annotations

import asyncio
import json

import pytest
from aiohttp import WSMsgType, web

from axochat.client import Client, ClientConfig
from axochat.exceptions import NotConnectedError
from axochat.transport import CloseEvent, Transport, WebSocketTransport


async def _start_server(handler) -> tuple[web.AppRunner, str]:
    app = web.Application()
    app.router.add_get("/ws", handler)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    port = runner.addresses[0][1]
    return runner, f"ws://127.0.0.1:{port}/ws"


async def _wait_for(predicate, timeout: float = 5.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


def test_client_over_websocket() -> None:
    received: list[dict] = []

    async def handler(request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        async for msg in ws:
            if msg.type != WSMsgType.TEXT:
                continue
            packet = json.loads(msg.data)
            received.append(packet)
            if packet["m"] == "LoginJWT":
                await ws.send_str('{"m":"Success","c":{"reason":"Login"}}')
            elif packet["m"] == "RequestUserCount":
                await ws.send_str('{"m":"FutureThing","c":{}}')
                await ws.send_str('{"m":"UserCount","c":{"connections":3,"logged_in":1}}')
        return ws

    async def scenario() -> None:
        runner, url = await _start_server(handler)
        try:
            client = Client(ClientConfig(heartbeat_s=None, connect_timeout_s=5.0))
            events: list[str] = []
            counts: list[object] = []
            closes: list[CloseEvent] = []

            client.on("open", lambda _t: client.login_jwt("T", True))
            client.on("success", lambda _e: client.request_user_count())
            client.on("packet", lambda env: events.append(env.kind))
            client.on("userCount", counts.append)
            client.on("close", closes.append)

            client.connect(url)
            await _wait_for(lambda: counts)

            transport = client.transport
            assert isinstance(transport, WebSocketTransport)
            assert transport.is_open

            client.disconnect()
            await transport.wait_closed()

            assert received == [
                {"m": "LoginJWT", "c": {"token": "T", "allow_messages": True}},
                {"m": "RequestUserCount"},
            ]
            assert events == ["Success", "FutureThing", "UserCount"]
            assert counts[0].connections == 3
            assert counts[0].logged_in == 1
            assert len(closes) == 1
            assert not client.connected
        finally:
            await runner.cleanup()

    asyncio.run(scenario())


def test_server_close_clears_client() -> None:
    async def handler(request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        await ws.close(code=4000, message=b"kicked")
        return ws

    async def scenario() -> None:
        runner, url = await _start_server(handler)
        try:
            client = Client(ClientConfig(heartbeat_s=None, connect_timeout_s=5.0))
            closes: list[CloseEvent] = []
            client.on("close", closes.append)

            client.connect(url)
            await _wait_for(lambda: closes)

            assert closes[0].code == 4000
            assert isinstance(closes[0].transport, WebSocketTransport)
            assert not client.connected
            with pytest.raises(NotConnectedError):
                client.request_jwt()
        finally:
            await runner.cleanup()

    asyncio.run(scenario())


def test_connection_refused_reports_close() -> None:
    async def scenario() -> None:
        client = Client(ClientConfig(heartbeat_s=None, connect_timeout_s=2.0))
        closes: list[CloseEvent] = []
        opens: list[object] = []
        client.on("close", closes.append)
        client.on("open", opens.append)

        # port 9 (discard) is closed on test machines
        client.connect("ws://127.0.0.1:9/ws")
        await _wait_for(lambda: closes)

        assert opens == []
        assert closes[0].code == 1006
        assert not client.connected

    asyncio.run(scenario())


def test_send_before_open_raises() -> None:
    async def scenario() -> None:
        transport = WebSocketTransport("ws://127.0.0.1:9/ws", ClientConfig(heartbeat_s=None))
        closes: list[CloseEvent] = []
        transport.on_close = closes.append
        transport.start()

        with pytest.raises(NotConnectedError):
            transport.send(b'{"m":"RequestJWT"}')

        transport.close()
        await transport.wait_closed()
        assert len(closes) == 1

    asyncio.run(scenario())


def test_start_requires_running_loop() -> None:
    transport = WebSocketTransport("ws://127.0.0.1:9/ws", ClientConfig())

    with pytest.raises(RuntimeError):
        transport.start()


def test_transport_base_is_abstract() -> None:
    with pytest.raises(TypeError):
        Transport("ws://127.0.0.1:9/ws")  # type: ignore[abstract]

    class OnlySend(Transport):
        def send(self, data: bytes) -> None:
            pass

    with pytest.raises(TypeError):
        OnlySend("ws://127.0.0.1:9/ws")  # type: ignore[abstract]
