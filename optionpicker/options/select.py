"""Option contract selection: expiration, strike ranking, qualification."""

from __future__ import annotations

import asyncio
import datetime as _dt
import logging
from typing import Any, Dict, Optional

from optionpicker.core.config import SelectionConfig
from optionpicker.options.chain import (
    MarketDataSource,
    NotFound,
    ProviderError,
    SelectionRequest,
    SelectionResult,
    side_for_direction,
)
from optionpicker.options.expirations import expiration_label, select_expiration
from optionpicker.options.qualify import qualify
from optionpicker.options.strikes import (
    estimate_target_strike,
    rank_by_proximity,
    resolve_underlying_price,
)
from optionpicker.runtime.logging import with_trace

log = logging.getLogger("optionpicker.select")


def _not_found(reason: str, stage: str, context: Dict[str, Any]) -> NotFound:
    log.info(f"options.{reason}", extra={**context, "stage": stage})
    return NotFound(reason=reason, stage=stage)


async def _run_pipeline(
    request: SelectionRequest,
    config: SelectionConfig,
    source: MarketDataSource,
    today: _dt.date,
    context: Dict[str, Any],
    progress: Dict[str, str],
) -> SelectionResult:
    symbol = request.symbol

    progress["stage"] = "expirations"
    expirations = await source.get_expirations(symbol)
    if not expirations:
        return _not_found("no_expirations", "expirations", context)

    expiration = select_expiration(expirations, today, config.min_dte, config.max_dte)
    if expiration is None:
        return _not_found("no_valid_expirations", "expirations", context)
    context["expiration"] = expiration_label(expiration)

    progress["stage"] = "chain"
    chain = await source.get_chain(symbol, expiration)
    side = side_for_direction(request.direction)
    contracts = chain.for_side(side) if chain is not None else []
    if not contracts:
        return _not_found("no_contracts", "chain", {**context, "direction": request.direction})

    progress["stage"] = "underlying"
    try:
        underlying = await source.get_underlying_snapshot(symbol)
    except ProviderError as exc:
        log.warning("options.underlying_unavailable", extra={**context, "error": str(exc)})
        underlying = None
    price = resolve_underlying_price(underlying)
    if price is None:
        return _not_found("no_underlying_price", "underlying", context)

    target_strike = estimate_target_strike(price, config.target_delta, request.direction)
    ranked = rank_by_proximity(contracts, target_strike)

    progress["stage"] = "qualify"
    selected = await qualify(
        ranked,
        config,
        request.equity,
        source.get_contract_snapshot,
        expiration=context["expiration"],
        log_extra=context,
    )
    if selected is None:
        return _not_found(
            "no_qualifying_contract",
            "qualify",
            {**context, "target_strike": round(target_strike, 2), "candidates": len(ranked)},
        )

    log.info(
        "options.contract_selected",
        extra={
            **context,
            "contract": selected.symbol,
            "strike": selected.strike,
            "delta": round(selected.delta, 3),
            "mid_price": round(selected.mid_price, 2),
            "max_contracts": selected.max_contracts,
        },
    )
    return selected


async def select_contract(
    request: SelectionRequest,
    config: SelectionConfig,
    source: MarketDataSource,
    *,
    today: Optional[_dt.date] = None,
) -> SelectionResult:
    """Choose one contract for ``request`` or explain why none qualifies.

    Never raises for data gaps or provider failures; those come back as
    :class:`NotFound`. Cancellation still propagates so that a caller's
    ``asyncio.wait_for`` deadline aborts the whole chain.
    """

    context = with_trace({"symbol": request.symbol, "direction": request.direction})
    if not config.enabled:
        return _not_found("options_disabled", "config", context)

    progress = {"stage": "start"}
    try:
        return await _run_pipeline(
            request,
            config,
            source,
            today or _dt.date.today(),
            context,
            progress,
        )
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        log.error(
            "options.provider_error",
            extra={
                **context,
                "stage": progress["stage"],
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )
        return NotFound(reason="provider_error", stage=progress["stage"])


class ContractSelector:
    """Bind a market data source (and optionally a policy) for repeated use."""

    def __init__(
        self,
        source: MarketDataSource,
        config: Optional[SelectionConfig] = None,
    ) -> None:
        self.source = source
        self.config = config or SelectionConfig()

    async def select(
        self,
        symbol: str,
        direction: str,
        equity: float,
        *,
        config: Optional[SelectionConfig] = None,
        today: Optional[_dt.date] = None,
    ) -> SelectionResult:
        normalized = direction.strip().lower()
        if normalized not in ("bullish", "bearish"):
            raise ValueError(f"direction must be 'bullish' or 'bearish', got {direction!r}")
        request = SelectionRequest(
            symbol=symbol.strip().upper(),
            direction=normalized,  # type: ignore[arg-type]
            equity=float(equity),
        )
        return await select_contract(request, config or self.config, self.source, today=today)
