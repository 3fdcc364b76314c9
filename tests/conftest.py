"""Deterministic stand-ins for the ephemeris services."""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from typing import Callable, List

import pytest

from skybins.models import Interval, Night, datetime_to_ms, ms_to_datetime
from skybins.site import Site

HOUR_MS = 3_600_000

UTC_SITE = Site(
    key="TS",
    name="Test Site",
    latitude_deg=19.82,
    longitude_deg=0.0,
    altitude_m=0.0,
    timezone="UTC",
)


def fixed_night_provider(twilight, ms, site):
    """Every night runs 20:00 to 06:00 local, starting on the local date of ``ms``."""

    local_day = ms_to_datetime(ms).astimezone(site.zone).date()
    start = datetime.combine(local_day, time(20), tzinfo=site.zone)
    end = start + timedelta(hours=10)
    return Night(site, datetime_to_ms(start), datetime_to_ms(end))


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class _FixedSolver:
    def __init__(self, factory: "CountingSolverFactory", visible_ms: int) -> None:
        self._factory = factory
        self._visible_ms = visible_ms

    def solve(self, start_ms: int, end_ms: int) -> List[Interval]:
        self._factory.solve_calls += 1
        length = min(self._visible_ms, end_ms - start_ms)
        if length <= 0:
            return []
        return [Interval(start_ms, start_ms + length)]


class CountingSolverFactory:
    """Builds solvers that report ``visible_hours(dec_deg)`` from each night's start."""

    def __init__(self, visible_hours: Callable[[float], float]) -> None:
        self._visible_hours = visible_hours
        self.created = 0
        self.solve_calls = 0
        self.targets = []

    def __call__(self, site, target, min_airmass, max_airmass):
        self.created += 1
        self.targets.append(target)
        hours = self._visible_hours(float(target.dec.deg))
        return _FixedSolver(self, int(round(hours * HOUR_MS)))


def peaked_visibility(dec_deg: float) -> float:
    """Hours per night, falling off away from the test site's latitude."""

    return max(0.0, 8.0 - abs(dec_deg - UTC_SITE.latitude_deg) / 10.0)


@pytest.fixture
def utc_site() -> Site:
    return UTC_SITE


@pytest.fixture
def night_provider():
    return fixed_night_provider


@pytest.fixture
def counting_factory() -> CountingSolverFactory:
    return CountingSolverFactory(peaked_visibility)
