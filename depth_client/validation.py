"""Input checks for symbol and limit, per transport mode."""

from __future__ import annotations

from .errors import InvalidLimit, MissingSymbol

REST = "rest"
STREAM = "ws"

DEFAULT_LIMIT = "10"

# Depth limits the exchange accepts on each transport
ALLOWED_LIMITS: dict[str, tuple[str, ...]] = {
    REST: ("5", "10", "20", "50", "100", "500", "1000", "5000"),
    STREAM: ("5", "10", "20"),
}


def limit_error_message(mode: str) -> str:
    allowed = ALLOWED_LIMITS[mode]
    return (
        f"incorrect value for limit. Default {DEFAULT_LIMIT}; max {allowed[-1]}. "
        f"Valid limits:[{', '.join(allowed)}]"
    )


def validate_limit(limit: str | None, mode: str) -> str:
    """
    Return the limit to request for `mode`.

    An empty limit becomes DEFAULT_LIMIT without further checks.
    Raises InvalidLimit for anything outside the mode's allowed set.
    """
    if mode not in ALLOWED_LIMITS:
        raise ValueError(f"unknown transport mode: {mode!r}")
    if not limit:
        return DEFAULT_LIMIT
    if limit not in ALLOWED_LIMITS[mode]:
        raise InvalidLimit(limit_error_message(mode))
    return limit


def validate_symbol(symbol: str | None) -> str:
    if not symbol:
        raise MissingSymbol()
    return symbol
