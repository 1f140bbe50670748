"""
Depth payload decoding.

Both transports deliver the same shape:
    {lastUpdateId, bids: [[price, qty], ...], asks: [[price, qty], ...]}

Levels are kept as strings and in exchange order; nothing is sorted or merged.
"""

from __future__ import annotations

import orjson

from ..errors import DecodeError
from ..types import OrderBookSnapshot, PriceLevel


def _levels(side: str, raw: object) -> tuple[PriceLevel, ...]:
    if not isinstance(raw, list):
        raise DecodeError(f"{side}: expected a list of [price, qty] pairs")

    levels = []
    for entry in raw:
        if not isinstance(entry, list) or len(entry) < 2:
            raise DecodeError(f"{side}: malformed level {entry!r}")
        price, amount = entry[0], entry[1]
        if not isinstance(price, str) or not isinstance(amount, str):
            raise DecodeError(f"{side}: price and qty must be strings, got {entry!r}")
        levels.append(PriceLevel(price, amount))
    return tuple(levels)


def snapshot_from_dict(data: object) -> OrderBookSnapshot:
    """Build a snapshot from an already-parsed payload."""
    if not isinstance(data, dict):
        raise DecodeError(f"expected a JSON object, got {type(data).__name__}")

    last_update_id = data.get('lastUpdateId')
    # bool is an int subclass; reject it explicitly
    if not isinstance(last_update_id, int) or isinstance(last_update_id, bool):
        raise DecodeError(f"lastUpdateId: expected an integer, got {last_update_id!r}")

    return OrderBookSnapshot(
        last_update_id=last_update_id,
        bids=_levels('bids', data.get('bids')),
        asks=_levels('asks', data.get('asks')),
    )


def parse_snapshot(raw: bytes | str) -> OrderBookSnapshot:
    """Decode one raw JSON payload into an OrderBookSnapshot."""
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise DecodeError(f"invalid JSON: {e}") from e
    return snapshot_from_dict(data)


def format_snapshot(snapshot: OrderBookSnapshot) -> str:
    """Single-line text form used for log output."""
    def side(levels: tuple[PriceLevel, ...]) -> str:
        items = (f"{{price:{level.price} amount:{level.amount}}}" for level in levels)
        return "[" + " ".join(items) + "]"

    return (
        f"lastUpdateId={snapshot.last_update_id} "
        f"bids={side(snapshot.bids)} asks={side(snapshot.asks)}"
    )
