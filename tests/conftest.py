"""Shared fixtures: a local fake exchange serving REST depth and depth streams."""

from __future__ import annotations

import asyncio
import weakref

import orjson
import pytest
import pytest_asyncio
from aiohttp import WSMsgType, web
from aiohttp.test_utils import TestServer

from depth_client.config import Config


def make_payload(last_update_id: int = 1, levels: int = 1, base_price: float = 0.15) -> dict:
    """Depth payload in exchange format, best price first on each side."""
    tick_size = 0.01
    bids = []
    asks = []
    for i in range(levels):
        bids.append([f"{base_price - (i + 1) * tick_size:.8f}", f"{i + 2:.8f}"])
        asks.append([f"{base_price + (i + 1) * tick_size:.8f}", f"{i + 3:.8f}"])
    return {'lastUpdateId': last_update_id, 'bids': bids, 'asks': asks}


class FakeExchange:
    """
    Records incoming requests and serves scripted responses.

    REST: every GET /depth returns rest_status with rest_body.
    WS: each connection receives ws_messages in order; then the server either
    closes (ws_close_after_send) or waits for the client to close. With
    ws_acknowledge_close off, the client's close frame is never answered.
    """

    def __init__(self) -> None:
        self.server: TestServer | None = None
        self.rest_requests: list[str] = []
        self.rest_queries: list[list[tuple[str, str]]] = []
        self.rest_status = 200
        self.rest_body = orjson.dumps(make_payload())
        self.ws_paths: list[str] = []
        self.ws_messages: list[str] = []
        self.ws_close_after_send = True
        self.ws_acknowledge_close = True
        self.ws_release = asyncio.Event()
        self.ws_client_close_codes: list[int | None] = []
        self.ws_client_closed = asyncio.Event()
        self._sockets: weakref.WeakSet[web.WebSocketResponse] = weakref.WeakSet()

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/depth", self.depth)
        app.router.add_get("/ws/{stream}", self.stream)
        app.on_shutdown.append(self._close_sockets)
        return app

    @property
    def http_base(self) -> str:
        return f"http://{self.server.host}:{self.server.port}"

    @property
    def ws_base(self) -> str:
        return f"ws://{self.server.host}:{self.server.port}"

    async def depth(self, request: web.Request) -> web.Response:
        self.rest_requests.append(request.path_qs)
        self.rest_queries.append(list(request.query.items()))
        return web.Response(
            status=self.rest_status, body=self.rest_body, content_type="application/json"
        )

    async def stream(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse(autoclose=self.ws_acknowledge_close)
        await ws.prepare(request)
        self._sockets.add(ws)
        self.ws_paths.append(request.path)

        for message in self.ws_messages:
            await ws.send_str(message)

        if self.ws_close_after_send:
            await ws.close()
            return ws

        while True:
            msg = await ws.receive()
            if msg.type == WSMsgType.CLOSE:
                self.ws_client_close_codes.append(msg.data)
                self.ws_client_closed.set()
                if not self.ws_acknowledge_close:
                    # Hold the connection open without answering the close
                    await self.ws_release.wait()
                break
            if msg.type in (WSMsgType.CLOSING, WSMsgType.CLOSED, WSMsgType.ERROR):
                break
        return ws

    async def _close_sockets(self, app: web.Application) -> None:
        for ws in set(self._sockets):
            await ws.close()


@pytest_asyncio.fixture
async def exchange():
    fake = FakeExchange()
    server = TestServer(fake.app())
    await server.start_server()
    fake.server = server
    yield fake
    fake.ws_release.set()
    await server.close()


@pytest.fixture
def config(exchange: FakeExchange) -> Config:
    return Config(api_url=exchange.http_base, api_ws=exchange.ws_base)
