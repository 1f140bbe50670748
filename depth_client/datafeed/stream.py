"""
WebSocket depth subscriber.

Connects to the partial book depth stream:
    {api_ws}/ws/<symbol>@depth<limit>@100ms

Each text frame carries a full top-<limit> snapshot in the same shape as the
REST response. Frames that fail to decode are logged and skipped so one bad
message does not end a long-lived subscription.

No reconnection: when the stream closes or errors, the sequence ends.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Callable

import aiohttp

from ..config import Config
from ..errors import DecodeError, TransportError
from ..types import OrderBookSnapshot
from .book import parse_snapshot

logger = logging.getLogger(__name__)

# Update speed suffix of the partial depth stream
UPDATE_SPEED = "100ms"


class DepthSubscriber:
    """
    Streams order book snapshots for one symbol.

    Usage:
        async with DepthSubscriber(config, "LTCBTC", "10") as sub:
            async for snapshot in sub.snapshots():
                ...

    The snapshot sequence can be consumed once. close() may be called from
    another task while snapshots() is being iterated.
    """

    def __init__(
        self,
        config: Config,
        symbol: str,
        limit: str,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.config = config
        self.symbol = symbol
        self.limit = limit
        self._session = session
        self._owns_session = session is None
        self._ssl = False if config.insecure_skip_verify else True
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._consumed = False

    @property
    def url(self) -> str:
        return f"{self.config.api_ws}/ws/{self.symbol.lower()}@depth{self.limit}@{UPDATE_SPEED}"

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def __aenter__(self) -> DepthSubscriber:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
        await self._release_session()

    async def connect(self) -> None:
        """Open the stream. Raises TransportError if the handshake fails."""
        if self._session is None:
            self._session = aiohttp.ClientSession()

        url = self.url
        try:
            self._ws = await self._session.ws_connect(url, ssl=self._ssl)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            await self._release_session()
            raise TransportError(f"connect {url} failed: {e}") from e
        logger.info("connected to %s", url)

    async def snapshots(self) -> AsyncIterator[OrderBookSnapshot]:
        """
        Yield one snapshot per text frame until the stream ends.

        Ends on close (either side) or on a read error. Not restartable.
        """
        if self._ws is None:
            raise RuntimeError("subscriber is not connected")
        if self._consumed:
            raise RuntimeError("snapshot stream already consumed")
        self._consumed = True

        ws = self._ws
        async for msg in ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                try:
                    snapshot = parse_snapshot(msg.data)
                except DecodeError as e:
                    logger.warning("skipping undecodable message: %s", e)
                    continue
                yield snapshot
            elif msg.type == aiohttp.WSMsgType.ERROR:
                logger.error("read: %s", ws.exception())
                break
            else:
                logger.debug("ignoring %s frame", msg.type.name)

        logger.info("stream closed (code %s)", ws.close_code)

    async def read_loop(self, handler: Callable[[OrderBookSnapshot], None]) -> None:
        """Pass every snapshot to `handler`; returns when the stream ends."""
        async for snapshot in self.snapshots():
            handler(snapshot)

    async def close(self) -> None:
        """Send a normal-closure close frame. Safe to call more than once."""
        if self._ws is None or self._ws.closed:
            return
        try:
            await self._ws.close(code=aiohttp.WSCloseCode.OK)
        except (aiohttp.ClientError, ConnectionError) as e:
            # Already shutting down; nothing left to do with the socket
            logger.warning("write close: %s", e)

    async def _release_session(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
