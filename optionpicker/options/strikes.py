"""Target strike estimation and proximity ranking."""

from __future__ import annotations

from typing import Iterable, List, Optional

from optionpicker.options.chain import Direction, OptionContract, UnderlyingSnapshot

# Moneyness shift per unit of delta away from 0.5. A rough linear stand-in for
# a pricing model, applied as-is.
_DELTA_OFFSET_SCALE = 0.2


def _positive(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    return num if num > 0 else None


def resolve_underlying_price(snapshot: Optional[UnderlyingSnapshot]) -> Optional[float]:
    """Return last trade, else ask, else bid; ``None`` when none is positive."""

    if snapshot is None:
        return None
    quote = snapshot.quote
    for candidate in (
        snapshot.trade_price,
        quote.ask if quote else None,
        quote.bid if quote else None,
    ):
        price = _positive(candidate)
        if price is not None:
            return price
    return None


def estimate_target_strike(
    underlying_price: float, target_delta: float, direction: Direction
) -> float:
    if underlying_price <= 0:
        raise ValueError("underlying_price must be positive")
    offset = (target_delta - 0.5) * _DELTA_OFFSET_SCALE
    if direction == "bullish":
        return underlying_price * (1 - offset)
    return underlying_price * (1 + offset)


def rank_by_proximity(
    contracts: Iterable[OptionContract], target_strike: float
) -> List[OptionContract]:
    """Order usable contracts by distance to ``target_strike``.

    Contracts without a positive strike are dropped. The sort is stable, so
    equidistant strikes keep their incoming order.
    """

    usable = [contract for contract in contracts if contract.strike > 0]
    return sorted(usable, key=lambda contract: abs(contract.strike - target_strike))
