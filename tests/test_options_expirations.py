"""Tests for expiration window selection."""

from __future__ import annotations

import datetime as dt

from optionpicker.options.expirations import (
    days_to_expiration,
    expiration_label,
    filter_expirations_by_dte,
    select_expiration,
)

TODAY = dt.date(2025, 1, 6)


def test_days_to_expiration_counts_calendar_days() -> None:
    assert days_to_expiration("2025-01-06", TODAY) == 0
    assert days_to_expiration("2025-01-07", TODAY) == 1
    assert days_to_expiration(dt.date(2025, 2, 5), TODAY) == 30


def test_days_to_expiration_ignores_time_of_day_for_today() -> None:
    late = dt.datetime(2025, 1, 6, 15, 45)
    assert days_to_expiration("2025-01-13", late) == 7


def test_partial_day_expiration_rounds_up() -> None:
    assert days_to_expiration("2025-01-06T16:00:00", TODAY) == 1


def test_filter_expirations_by_dte_is_inclusive() -> None:
    expirations = ["2025-01-10", "2025-01-13", "2025-02-05", "2025-02-06"]
    assert filter_expirations_by_dte(expirations, 7, 30, today=TODAY) == [
        "2025-01-13",
        "2025-02-05",
    ]


def test_selects_expiration_nearest_window_midpoint() -> None:
    # Window 7..45 => target 26 DTE.
    expirations = ["2025-01-10", "2025-01-17", "2025-01-31", "2025-02-07", "2025-03-21"]
    selected = select_expiration(expirations, TODAY, 7, 45)
    assert selected == "2025-01-31"  # 25 DTE


def test_tie_keeps_first_candidate_in_input_order() -> None:
    # Window 10..20 => target 15; 13 and 17 DTE are equidistant.
    expirations = ["2025-01-19", "2025-01-23"]
    assert select_expiration(expirations, TODAY, 10, 20) == "2025-01-19"
    assert select_expiration(list(reversed(expirations)), TODAY, 10, 20) == "2025-01-23"


def test_midpoint_is_not_rounded() -> None:
    # Window 7..8 => target 7.5; 7 and 8 DTE tie, first wins.
    expirations = ["2025-01-14", "2025-01-13"]
    assert select_expiration(expirations, TODAY, 7, 8) == "2025-01-14"


def test_returns_none_when_nothing_in_window() -> None:
    expirations = ["2025-01-07", "2025-01-08", "2025-06-20"]
    assert select_expiration(expirations, TODAY, 7, 45) is None
    assert select_expiration([], TODAY, 7, 45) is None


def test_unparseable_expirations_are_skipped() -> None:
    expirations = ["not-a-date", "2025-01-31"]
    assert select_expiration(expirations, TODAY, 7, 45) == "2025-01-31"


def test_expiration_label_normalises_dates() -> None:
    assert expiration_label(dt.date(2025, 3, 21)) == "2025-03-21"
    assert expiration_label("2025-03-21T00:00:00Z") == "2025-03-21"
