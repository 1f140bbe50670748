"""
REST depth fetcher.

One GET per call against {api_url}/depth. The caller decides how often to
call; nothing here retries or caches.
"""

from __future__ import annotations

import asyncio
import logging

import aiohttp
import orjson
from yarl import URL

from ..config import Config
from ..errors import TransportError
from ..types import OrderBookSnapshot
from .book import parse_snapshot

logger = logging.getLogger(__name__)


def _error_detail(body: bytes) -> str:
    """Pull the exchange's {"code", "msg"} out of an error body, if present."""
    try:
        data = orjson.loads(body)
    except orjson.JSONDecodeError:
        return body[:200].decode("utf-8", "replace")
    if isinstance(data, dict) and "msg" in data:
        return f"{data['msg']} (code {data.get('code')})"
    return body[:200].decode("utf-8", "replace")


class DepthFetcher:
    """
    Fetches order book snapshots over HTTP.

    Usage:
        async with DepthFetcher(config) as fetcher:
            snapshot = await fetcher.fetch("LTCBTC", "100")
    """

    def __init__(self, config: Config, session: aiohttp.ClientSession | None = None) -> None:
        self.config = config
        self._session = session
        self._owns_session = session is None
        # False disables certificate verification; True keeps aiohttp's default checks
        self._ssl = False if config.insecure_skip_verify else True
        if config.insecure_skip_verify:
            logger.warning("TLS certificate verification is disabled for %s", config.api_url)

    async def __aenter__(self) -> DepthFetcher:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def build_url(self, symbol: str, limit: str) -> URL:
        # Query values are percent-encoded, so a symbol cannot add parameters
        return URL(f"{self.config.api_url}/depth").with_query(symbol=symbol, limit=limit)

    async def fetch(self, symbol: str, limit: str) -> OrderBookSnapshot:
        """
        Fetch one depth snapshot.

        Raises TransportError on connection failure or non-2xx status,
        DecodeError if the body is not a depth payload.
        """
        if self._session is None:
            self._session = aiohttp.ClientSession()

        url = self.build_url(symbol, limit)
        logger.debug("GET %s", url)
        try:
            async with self._session.get(url, ssl=self._ssl) as resp:
                body = await resp.read()
                if resp.status >= 400:
                    raise TransportError(
                        f"GET {url} failed with HTTP {resp.status}: {_error_detail(body)}"
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"GET {url} failed: {e}") from e

        return parse_snapshot(body)

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
