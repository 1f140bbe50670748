"""
Data types for Depth Client.

Notes:
- NamedTuple keeps snapshots immutable; bids/asks are tuples, never lists
- Prices and amounts stay decimal strings exactly as the exchange sends them
"""

from typing import NamedTuple


class PriceLevel(NamedTuple):
    """Single price level from the order book."""
    price: str
    amount: str


class OrderBookSnapshot(NamedTuple):
    """
    One depth snapshot, from a REST response or a single stream message.

    Bids and asks keep the exchange's ordering (best price first).
    """
    last_update_id: int
    bids: tuple[PriceLevel, ...]
    asks: tuple[PriceLevel, ...]
