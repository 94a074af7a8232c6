# tankcheck/engine/history.py
from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional

from ..schemas import ServiceEvent, ServiceEventType
from .constants import (
    FLUSH_DECAY_END_YEARS,
    FLUSH_FLOOR_WEIGHT,
    FLUSH_FULL_CREDIT_YEARS,
)

DAYS_PER_YEAR = 365.0


def years_between(earlier: date, later: date) -> float:
    return (later - earlier).days / DAYS_PER_YEAR


def event_ages(
    events: Iterable[ServiceEvent],
    kind: ServiceEventType,
    now: Optional[date],
    max_years: Optional[float] = None,
) -> List[float]:
    """
    Years-ago of every `kind` event on or before `now`, oldest first.

    Events dated after `now`, or older than `max_years` (typically the unit's
    calendar age, i.e. before it was installed), are ignored.
    """
    if now is None:
        return []
    ages = []
    for evt in events:
        if evt.kind != kind or evt.performed_on > now:
            continue
        ago = years_between(evt.performed_on, now)
        if max_years is not None and ago > max_years:
            continue
        ages.append(ago)
    return sorted(ages, reverse=True)


def years_since_last(
    events: Iterable[ServiceEvent],
    kind: ServiceEventType,
    now: Optional[date],
    max_years: Optional[float] = None,
) -> Optional[float]:
    ages = event_ages(events, kind, now, max_years)
    return ages[-1] if ages else None


def flush_credit_weight(years_ago: float) -> float:
    """
    Recency weight for a past flush:
    - full credit inside the first year
    - linear decay between one and four years
    - floor weight after that
    """
    if years_ago < FLUSH_FULL_CREDIT_YEARS:
        return 1.0
    if years_ago >= FLUSH_DECAY_END_YEARS:
        return FLUSH_FLOOR_WEIGHT
    span = FLUSH_DECAY_END_YEARS - FLUSH_FULL_CREDIT_YEARS
    frac = (years_ago - FLUSH_FULL_CREDIT_YEARS) / span
    return 1.0 - frac * (1.0 - FLUSH_FLOOR_WEIGHT)
