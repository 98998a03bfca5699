"""Liquidity, delta and budget gates applied to ranked candidates."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

from optionpicker.core.config import SelectionConfig
from optionpicker.options.chain import (
    CONTRACT_MULTIPLIER,
    ContractSnapshot,
    OptionContract,
    ProviderError,
    Selected,
)

MAX_CANDIDATE_PROBES = 5
"""Snapshot lookups allowed per selection; each one is a network round trip."""

MAX_SPREAD_FRACTION = 0.10
"""Widest acceptable ``(ask - bid) / ask``."""

log = logging.getLogger("optionpicker.qualify")

SnapshotFetcher = Callable[[str], Awaitable[Optional[ContractSnapshot]]]


@dataclass(frozen=True, slots=True)
class Priced:
    """Delta, mid and size of a candidate that cleared every gate."""

    delta: float
    mid_price: float
    max_contracts: int


@dataclass(frozen=True, slots=True)
class GateResult:
    """Outcome of running one snapshot through the gates."""

    reason: Optional[str]
    delta: Optional[float] = None
    priced: Optional[Priced] = None

    @property
    def passed(self) -> bool:
        return self.priced is not None


def spread_fraction(bid: float, ask: float) -> float:
    return (ask - bid) / ask


def max_contracts_for_budget(equity: float, max_pct_per_trade: float, mid_price: float) -> int:
    """Whole contracts affordable with ``equity * max_pct_per_trade``."""

    if mid_price <= 0:
        return 0
    budget = equity * max_pct_per_trade
    return int(math.floor(budget / (mid_price * CONTRACT_MULTIPLIER)))


def evaluate_snapshot(
    snapshot: Optional[ContractSnapshot], config: SelectionConfig, equity: float
) -> GateResult:
    if snapshot is None:
        return GateResult("no_snapshot")

    greeks = snapshot.greeks
    if greeks is None or greeks.delta is None:
        return GateResult("no_delta")
    delta = float(greeks.delta)
    if not config.min_delta <= abs(delta) <= config.max_delta:
        return GateResult("delta_out_of_band", delta=delta)

    quote = snapshot.quote
    bid = float(quote.bid or 0.0) if quote else 0.0
    ask = float(quote.ask or 0.0) if quote else 0.0
    if bid == 0 or ask == 0:
        return GateResult("no_market", delta=delta)
    if spread_fraction(bid, ask) > MAX_SPREAD_FRACTION:
        return GateResult("wide_spread", delta=delta)

    mid_price = (bid + ask) / 2
    contracts = max_contracts_for_budget(equity, config.max_pct_per_trade, mid_price)
    if contracts < 1:
        return GateResult("insufficient_budget", delta=delta)
    return GateResult(None, delta=delta, priced=Priced(delta, mid_price, contracts))


async def qualify(
    ranked: Sequence[OptionContract],
    config: SelectionConfig,
    equity: float,
    fetch_snapshot: SnapshotFetcher,
    *,
    expiration: Optional[str] = None,
    log_extra: Optional[Dict[str, Any]] = None,
) -> Optional[Selected]:
    """Return the first of the top ranked candidates that clears every gate.

    Snapshots are fetched one at a time and the walk stops at the first
    success, so no more than ``MAX_CANDIDATE_PROBES`` lookups are issued.
    ``expiration`` is reported on the result in place of the contract's own
    expiry, which providers do not always fill in.
    """

    context = dict(log_extra or {})
    for contract in ranked[:MAX_CANDIDATE_PROBES]:
        try:
            snapshot = await fetch_snapshot(contract.symbol)
        except ProviderError as exc:
            log.debug(
                "options.candidate_rejected",
                extra={**context, "contract": contract.symbol, "reason": "snapshot_failed", "error": str(exc)},
            )
            continue

        gate = evaluate_snapshot(snapshot, config, equity)
        if gate.priced is None:
            log.debug(
                "options.candidate_rejected",
                extra={**context, "contract": contract.symbol, "reason": gate.reason},
            )
            continue

        return Selected(
            symbol=contract.symbol,
            underlying=contract.underlying,
            strike=contract.strike,
            expiration=expiration or contract.expiry,
            delta=gate.priced.delta,
            mid_price=gate.priced.mid_price,
            max_contracts=gate.priced.max_contracts,
            side=contract.side,
        )
    return None
