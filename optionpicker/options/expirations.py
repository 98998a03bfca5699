"""Expiration window filtering and midpoint selection."""

from __future__ import annotations

import datetime as _dt
import logging
import math
from typing import Iterable, List, Optional, Sequence, Tuple

from optionpicker.options.chain import ExpirationDate

log = logging.getLogger("optionpicker.expirations")


_ONE_DAY = _dt.timedelta(days=1)


def _as_datetime(value: ExpirationDate | _dt.datetime) -> _dt.datetime:
    if isinstance(value, _dt.datetime):
        moment = value
    elif isinstance(value, _dt.date):
        moment = _dt.datetime.combine(value, _dt.time.min)
    else:
        text = str(value).strip()
        if len(text) > 10:
            moment = _dt.datetime.fromisoformat(text.replace("Z", "+00:00"))
        else:
            moment = _dt.datetime.combine(_dt.date.fromisoformat(text), _dt.time.min)
    # Wall-clock comparison; offsets are dropped rather than converted.
    return moment.replace(tzinfo=None)


def expiration_label(expiration: ExpirationDate) -> str:
    """Normalise an expiration to its ``YYYY-MM-DD`` form."""

    return _as_datetime(expiration).date().isoformat()


def days_to_expiration(expiration: ExpirationDate, today: _dt.date | _dt.datetime) -> int:
    """Calendar days from the start of ``today`` to ``expiration``, rounded up.

    ``today`` is truncated to midnight. Date-only expirations are whole-day
    differences; an expiration carrying a time later today counts as one day.
    """

    start = _dt.datetime.combine(_as_datetime(today).date(), _dt.time.min)
    return math.ceil((_as_datetime(expiration) - start) / _ONE_DAY)


def _eligible(
    expirations: Iterable[ExpirationDate],
    today: _dt.date | _dt.datetime,
    min_dte: int,
    max_dte: int,
) -> List[Tuple[ExpirationDate, int]]:
    eligible: List[Tuple[ExpirationDate, int]] = []
    for expiration in expirations:
        try:
            dte = days_to_expiration(expiration, today)
        except (TypeError, ValueError):
            log.debug("options.expiration_unparseable", extra={"expiration": str(expiration)})
            continue
        if min_dte <= dte <= max_dte:
            eligible.append((expiration, dte))
    return eligible


def filter_expirations_by_dte(
    expirations: Iterable[ExpirationDate],
    min_dte: int,
    max_dte: int,
    today: _dt.date | _dt.datetime | None = None,
) -> List[ExpirationDate]:
    """Return the expirations whose DTE falls inside ``[min_dte, max_dte]``."""

    ref = today if today is not None else _dt.date.today()
    return [expiration for expiration, _ in _eligible(expirations, ref, min_dte, max_dte)]


def select_expiration(
    expirations: Sequence[ExpirationDate],
    today: _dt.date | _dt.datetime,
    min_dte: int,
    max_dte: int,
) -> Optional[ExpirationDate]:
    """Pick the eligible expiration whose DTE is nearest the window midpoint.

    Returns ``None`` when nothing falls inside the window. Ties keep the
    earliest entry in input order, so callers should pass dates ascending.
    """

    eligible = _eligible(expirations, today, min_dte, max_dte)
    if not eligible:
        return None

    target_dte = (min_dte + max_dte) / 2
    best, best_dte = eligible[0]
    for expiration, dte in eligible[1:]:
        if abs(dte - target_dte) < abs(best_dte - target_dte):
            best, best_dte = expiration, dte
    return best
