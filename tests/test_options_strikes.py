"""Tests for target strike estimation and ranking."""

from __future__ import annotations

import pytest

from optionpicker.options.chain import Quote, UnderlyingSnapshot
from optionpicker.options.strikes import (
    estimate_target_strike,
    rank_by_proximity,
    resolve_underlying_price,
)
from tests.fakes.fake_source import contract


def test_bullish_target_strike_moves_below_spot_for_high_delta() -> None:
    assert estimate_target_strike(100.0, 0.7, "bullish") == pytest.approx(96.0)


def test_bearish_target_strike_mirrors_bullish() -> None:
    assert estimate_target_strike(100.0, 0.7, "bearish") == pytest.approx(104.0)
    assert estimate_target_strike(100.0, 0.3, "bearish") == pytest.approx(96.0)


def test_at_the_money_delta_targets_spot() -> None:
    assert estimate_target_strike(250.0, 0.5, "bullish") == pytest.approx(250.0)


def test_non_positive_underlying_is_rejected() -> None:
    with pytest.raises(ValueError):
        estimate_target_strike(0.0, 0.5, "bullish")


def test_underlying_price_prefers_trade_then_ask_then_bid() -> None:
    full = UnderlyingSnapshot("AAPL", trade_price=101.0, quote=Quote(bid=99.0, ask=100.0))
    assert resolve_underlying_price(full) == 101.0

    no_trade = UnderlyingSnapshot("AAPL", trade_price=0.0, quote=Quote(bid=99.0, ask=100.0))
    assert resolve_underlying_price(no_trade) == 100.0

    bid_only = UnderlyingSnapshot("AAPL", trade_price=None, quote=Quote(bid=99.0, ask=0.0))
    assert resolve_underlying_price(bid_only) == 99.0


def test_underlying_price_missing_everywhere() -> None:
    assert resolve_underlying_price(None) is None
    assert resolve_underlying_price(UnderlyingSnapshot("AAPL")) is None
    zeros = UnderlyingSnapshot("AAPL", trade_price=0.0, quote=Quote(bid=0.0, ask=0.0))
    assert resolve_underlying_price(zeros) is None


def test_rank_orders_by_distance_and_drops_bad_strikes() -> None:
    contracts = [contract(90.0), contract(0.0), contract(97.0), contract(100.0), contract(95.0)]
    ranked = rank_by_proximity(contracts, 96.0)
    assert [c.strike for c in ranked] == [97.0, 95.0, 100.0, 90.0]


def test_rank_is_stable_for_equidistant_strikes() -> None:
    contracts = [contract(97.0), contract(95.0), contract(96.5), contract(95.5)]
    ranked = rank_by_proximity(contracts, 96.0)
    assert [c.strike for c in ranked] == [96.5, 95.5, 97.0, 95.0]

    reordered = rank_by_proximity([contract(95.0), contract(97.0)], 96.0)
    assert [c.strike for c in reordered] == [95.0, 97.0]
