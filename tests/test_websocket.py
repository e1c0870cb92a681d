"""End-to-end checks against a real WebSocket server on localhost."""
import asyncio
import json

import pytest
from websockets.asyncio.server import serve

from forwarding import FixedInterval, ForwardingClient, RemoteError, TransportError
from helpers import wait_until


class DummyForwardingServer:
    """Echoes calls, fails 'explode', and can ask the client for a ping."""

    def __init__(self, close_first=False):
        self.paths = []
        self.replies = []
        self.close_first = close_first
        self._server = None

    async def __aenter__(self):
        self._server = await serve(self._handle, "127.0.0.1", 0)
        return self

    async def __aexit__(self, *exc_info):
        self._server.close()
        await self._server.wait_closed()

    @property
    def port(self):
        return self._server.sockets[0].getsockname()[1]

    async def _handle(self, ws):
        self.paths.append(ws.request.path)
        if self.close_first and len(self.paths) == 1:
            await ws.close()
            return
        async for raw in ws:
            msg = json.loads(raw)
            if msg.get("method") == "explode":
                await ws.send(json.dumps({"jsonrpc": "2.0", "id": msg["id"], "error": {"message": "kaboom"}}))
            elif msg.get("method") == "ask.ping":
                await ws.send(json.dumps({"jsonrpc": "2.0", "id": "srv-1", "method": "flutter.test.ping", "params": {}}))
                await ws.send(json.dumps({"jsonrpc": "2.0", "id": msg["id"], "result": "asked"}))
            elif "method" in msg:
                await ws.send(json.dumps({"jsonrpc": "2.0", "id": msg["id"], "result": msg["params"]}))
            else:
                self.replies.append(msg)


@pytest.mark.asyncio
async def test_round_trip_over_websocket():
    async with DummyForwardingServer() as server:
        client = ForwardingClient("inspector", client_id="ws-client")
        await client.connect("127.0.0.1", server.port)
        assert server.paths == ["/forward?clientType=inspector&clientId=ws-client"]

        assert await client.call_method("echo", {"x": 1}) == {"x": 1}
        with pytest.raises(RemoteError, match="kaboom"):
            await client.call_method("explode")

        assert await client.call_method("ask.ping") == "asked"
        await wait_until(lambda: server.replies)
        reply = server.replies[0]
        assert reply["id"] == "srv-1"
        assert reply["result"]["clientId"] == "ws-client"
        assert reply["result"]["clientType"] == "inspector"

        await client.disconnect()
        assert not client.is_connected()


@pytest.mark.asyncio
async def test_reconnects_after_server_side_close():
    async with DummyForwardingServer(close_first=True) as server:
        client = ForwardingClient("flutter", retry_policy=FixedInterval(0.05))
        events = []
        client.on("disconnected", events.append)
        await client.connect("127.0.0.1", server.port)

        await wait_until(lambda: len(server.paths) >= 2 and client.is_connected(), timeout=3.0)
        assert len(events) == 1
        assert await client.call_method("echo", [1, 2]) == [1, 2]
        await client.disconnect()


@pytest.mark.asyncio
async def test_open_failure_is_transport_error():
    async with DummyForwardingServer() as server:
        port = server.port
    client = ForwardingClient("flutter")
    errors = []
    client.on("error", errors.append)
    with pytest.raises(TransportError):
        await client.connect("127.0.0.1", port)
    assert len(errors) == 1
    assert not client.is_connected()
    await client.disconnect()
