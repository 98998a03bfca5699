"""Offline market data source backed by recorded fixtures.

Fixtures live under ``OPTIONS_MOCK_DIR`` (default ``artifacts/options_mock``)
as one ``<SYMBOL>.json`` file per underlying::

    {
      "expirations": ["2025-01-17", "2025-02-21"],
      "chains": {"2025-02-21": {"calls": [...], "puts": [...]}},
      "underlying": {"trade_price": 101.2, "bid": 101.1, "ask": 101.3},
      "snapshots": {"AAPL250221C00100000": {"bid": 4.7, "ask": 4.9, "delta": 0.52}}
    }

Chain entries carry ``symbol`` and ``strike`` (plus optional
``open_interest``). A snapshot entry may omit any field.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from optionpicker.options.chain import (
    ContractSnapshot,
    ExpirationDate,
    Greeks,
    OptionContract,
    OptionsChain,
    ProviderError,
    Quote,
    UnderlyingSnapshot,
)
from optionpicker.options.expirations import expiration_label


def mock_dir() -> Path:
    override = os.getenv("OPTIONS_MOCK_DIR")
    if override:
        return Path(override)
    return Path(os.getenv("ARTIFACTS_DIR", "artifacts")) / "options_mock"


def _to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _quote_from(payload: Mapping[str, Any]) -> Optional[Quote]:
    if "bid" not in payload and "ask" not in payload:
        return None
    return Quote(bid=_to_float(payload.get("bid")), ask=_to_float(payload.get("ask")))


def _contracts(underlying: str, expiry: str, side: str, rows: Any) -> List[OptionContract]:
    return [
        OptionContract(
            symbol=str(row["symbol"]),
            underlying=underlying,
            expiry=expiry,
            strike=_to_float(row.get("strike")) or 0.0,
            side=side,  # type: ignore[arg-type]
            open_interest=row.get("open_interest"),
        )
        for row in rows or []
    ]


class MockMarketDataSource:
    """Serve selection inputs from plain dictionaries and record each call."""

    def __init__(self, fixtures: Optional[Dict[str, Mapping[str, Any]]] = None) -> None:
        self._fixtures: Dict[str, Mapping[str, Any]] = {
            key.upper(): value for key, value in (fixtures or {}).items()
        }
        self.calls: List[Tuple[str, str]] = []

    @classmethod
    def from_directory(cls, directory: Optional[Path] = None) -> "MockMarketDataSource":
        base = Path(directory) if directory is not None else mock_dir()
        fixtures: Dict[str, Mapping[str, Any]] = {}
        for path in sorted(base.glob("*.json")):
            fixtures[path.stem.upper()] = json.loads(path.read_text(encoding="utf-8"))
        return cls(fixtures)

    def _fixture(self, underlying: str) -> Mapping[str, Any]:
        fixture = self._fixtures.get(underlying.upper())
        if fixture is None:
            raise ProviderError(f"no mock data recorded for {underlying.upper()}")
        return fixture

    def _find_snapshot(self, contract_symbol: str) -> Optional[Mapping[str, Any]]:
        for fixture in self._fixtures.values():
            snapshots = fixture.get("snapshots") or {}
            if contract_symbol in snapshots:
                return snapshots[contract_symbol]
        return None

    async def get_expirations(self, underlying: str) -> List[ExpirationDate]:
        self.calls.append(("get_expirations", underlying))
        return list(self._fixture(underlying).get("expirations") or [])

    async def get_chain(self, underlying: str, expiration: ExpirationDate) -> OptionsChain:
        label = expiration_label(expiration)
        self.calls.append(("get_chain", label))
        symbol = underlying.upper()
        chain = (self._fixture(underlying).get("chains") or {}).get(label) or {}
        return OptionsChain(
            underlying=symbol,
            expiry=label,
            calls=_contracts(symbol, label, "call", chain.get("calls")),
            puts=_contracts(symbol, label, "put", chain.get("puts")),
        )

    async def get_underlying_snapshot(self, underlying: str) -> Optional[UnderlyingSnapshot]:
        self.calls.append(("get_underlying_snapshot", underlying))
        payload = self._fixture(underlying).get("underlying")
        if not payload:
            return None
        return UnderlyingSnapshot(
            symbol=underlying.upper(),
            trade_price=_to_float(payload.get("trade_price")),
            quote=_quote_from(payload),
        )

    async def get_contract_snapshot(self, contract_symbol: str) -> Optional[ContractSnapshot]:
        self.calls.append(("get_contract_snapshot", contract_symbol))
        payload = self._find_snapshot(contract_symbol)
        if payload is None:
            return None
        greeks = None
        if "delta" in payload:
            greeks = Greeks(delta=_to_float(payload.get("delta")))
        return ContractSnapshot(
            symbol=contract_symbol,
            quote=_quote_from(payload),
            greeks=greeks,
            implied_volatility=_to_float(payload.get("iv")),
        )
