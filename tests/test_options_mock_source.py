from __future__ import annotations

import asyncio
import datetime as dt
from pathlib import Path

import pytest

from optionpicker.core.config import SelectionConfig
from optionpicker.options.chain import ProviderError, Selected, SelectionRequest
from optionpicker.options.mock_source import MockMarketDataSource
from optionpicker.options.select import select_contract

ARTIFACTS = Path(__file__).resolve().parent / "artifacts"


def test_loads_fixtures_from_mock_dir(monkeypatch) -> None:
    monkeypatch.setenv("ARTIFACTS_DIR", str(ARTIFACTS))
    monkeypatch.delenv("OPTIONS_MOCK_DIR", raising=False)
    source = MockMarketDataSource.from_directory()

    expirations = asyncio.run(source.get_expirations("spy"))
    chain = asyncio.run(source.get_chain("SPY", "2025-01-31"))

    assert expirations == ["2025-01-10", "2025-01-31", "2025-03-21"]
    assert [c.strike for c in chain.calls] == [570.0, 575.0, 580.0]
    assert chain.puts[0].side == "put"
    assert source.calls[:2] == [("get_expirations", "spy"), ("get_chain", "2025-01-31")]


def test_snapshot_fields_may_be_missing() -> None:
    source = MockMarketDataSource.from_directory(ARTIFACTS / "options_mock")

    no_greeks = asyncio.run(source.get_contract_snapshot("SPY250131P00585000"))
    assert no_greeks is not None and no_greeks.greeks is None
    assert no_greeks.quote.bid == 10.2

    assert asyncio.run(source.get_contract_snapshot("SPY250131C99999000")) is None


def test_underlying_snapshot_and_unknown_symbol() -> None:
    source = MockMarketDataSource(
        {"aapl": {"expirations": [], "underlying": {"bid": 99.5, "ask": 100.5}}}
    )
    snap = asyncio.run(source.get_underlying_snapshot("AAPL"))
    assert snap is not None and snap.trade_price is None and snap.quote.ask == 100.5

    with pytest.raises(ProviderError):
        asyncio.run(source.get_expirations("MSFT"))


def test_non_numeric_fixture_values_fail_gates_instead_of_raising() -> None:
    fixtures = {
        "AAPL": {
            "expirations": ["2025-01-31"],
            "chains": {
                "2025-01-31": {
                    "calls": [
                        {"symbol": "AAPL250131C00100000", "strike": "100"},
                        {"symbol": "AAPL250131C00101000", "strike": 101.0},
                    ]
                }
            },
            "underlying": {"trade_price": "100.0"},
            "snapshots": {
                "AAPL250131C00100000": {"bid": "4.75", "ask": "4.85", "delta": "n/a"},
                "AAPL250131C00101000": {"bid": "4.55", "ask": "4.65", "delta": "0.48"},
            },
        }
    }
    source = MockMarketDataSource(fixtures)

    bad = asyncio.run(source.get_contract_snapshot("AAPL250131C00100000"))
    assert bad is not None and bad.greeks is not None
    assert bad.greeks.delta is None
    assert bad.quote.bid == 4.75

    request = SelectionRequest(symbol="AAPL", direction="bullish", equity=10_000.0)
    config = SelectionConfig(max_pct_per_trade=0.05)
    result = asyncio.run(select_contract(request, config, source, today=dt.date(2025, 1, 6)))

    assert isinstance(result, Selected)
    assert result.symbol == "AAPL250131C00101000"
    assert result.delta == 0.48
