"""
Command runners for the two transports.

REST: a fixed-interval ticker drives one blocking fetch per tick. Errors are
fatal and propagate to the caller.

Streaming: a background read task logs every snapshot while the main
coroutine waits for either the read task to finish or the stop event. On stop
a close frame is sent and the read task gets a bounded grace period.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import Callable

from .config import Config
from .datafeed.book import format_snapshot
from .datafeed.rest import DepthFetcher
from .datafeed.stream import DepthSubscriber
from .types import OrderBookSnapshot
from .validation import REST, STREAM, validate_limit, validate_symbol

logger = logging.getLogger(__name__)

POLL_INTERVAL_SEC = 5.0
CLOSE_GRACE_SEC = 1.0

SnapshotHandler = Callable[[OrderBookSnapshot], None]


def log_snapshot(snapshot: OrderBookSnapshot) -> None:
    logger.info("%s", format_snapshot(snapshot))


def install_signal_handlers(stop: asyncio.Event) -> None:
    """Set `stop` on SIGINT/SIGTERM. Must be called from inside the event loop."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops; Ctrl-C still arrives as KeyboardInterrupt
            logger.debug("signal handlers not supported on this platform")
            return


async def _stopped_within(stop: asyncio.Event, timeout: float) -> bool:
    """Wait up to `timeout` seconds for `stop`. True if it was set."""
    try:
        await asyncio.wait_for(stop.wait(), timeout=timeout)
    except asyncio.TimeoutError:
        return False
    return True


async def run_rest(
    config: Config,
    symbol: str | None,
    limit: str | None,
    *,
    interval: float = POLL_INTERVAL_SEC,
    stop: asyncio.Event | None = None,
    fetcher: DepthFetcher | None = None,
    handler: SnapshotHandler = log_snapshot,
) -> None:
    """
    Poll the depth endpoint every `interval` seconds until `stop` is set.

    The first fetch happens one interval after start. A fetch in flight when
    `stop` is set is allowed to finish. TransportError and DecodeError
    propagate and end the loop.
    """
    symbol = validate_symbol(symbol)
    limit = validate_limit(limit, REST)
    stop = stop or asyncio.Event()
    fetcher = fetcher or DepthFetcher(config)

    loop = asyncio.get_running_loop()
    logger.info("polling %s limit=%s every %.1fs", symbol, limit, interval)

    async with fetcher:
        next_tick = loop.time() + interval
        while not await _stopped_within(stop, max(next_tick - loop.time(), 0.0)):
            handler(await fetcher.fetch(symbol, limit))
            # A slow fetch delays the next tick but never stacks ticks up
            next_tick = max(next_tick + interval, loop.time())

    logger.info("polling stopped")


async def _shutdown_stream(
    subscriber: DepthSubscriber,
    read_task: asyncio.Task,
    grace: float,
) -> None:
    """Send the close frame, then give the read task until the deadline."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + grace

    try:
        await asyncio.wait_for(subscriber.close(), timeout=grace)
    except asyncio.TimeoutError:
        logger.warning("close not acknowledged within %.1fs", grace)

    done, _ = await asyncio.wait({read_task}, timeout=max(deadline - loop.time(), 0.0))
    if not done:
        logger.warning("read loop still running after %.1fs, cancelling", grace)
        read_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await read_task
    elif not read_task.cancelled() and read_task.exception() is not None:
        logger.warning("read loop failed during shutdown: %s", read_task.exception())


async def run_stream(
    config: Config,
    symbol: str | None,
    limit: str | None,
    *,
    stop: asyncio.Event | None = None,
    grace: float = CLOSE_GRACE_SEC,
    subscriber: DepthSubscriber | None = None,
    handler: SnapshotHandler = log_snapshot,
) -> None:
    """
    Stream depth snapshots until the stream ends or `stop` is set.

    Connection failures raise TransportError. Returns normally on stream
    closure and on stop.
    """
    symbol = validate_symbol(symbol)
    limit = validate_limit(limit, STREAM)
    stop = stop or asyncio.Event()
    subscriber = subscriber or DepthSubscriber(config, symbol, limit)

    async with subscriber:
        read_task = asyncio.create_task(subscriber.read_loop(handler))
        stop_task = asyncio.create_task(stop.wait())
        try:
            done, _ = await asyncio.wait(
                {read_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
            )
            if read_task in done:
                # Surfaces unexpected read-loop failures
                read_task.result()
                logger.info("subscription ended")
                return

            logger.info("interrupt")
            await _shutdown_stream(subscriber, read_task, grace)
        finally:
            stop_task.cancel()
            if not read_task.done():
                read_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await read_task
