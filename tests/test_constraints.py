from __future__ import annotations

import numpy as np
import pytest
from astropy import units as u
from astropy.coordinates import SkyCoord

from skybins.constraints import (
    AirmassConstraintSolver,
    airmass,
    airmass_solver_factory,
    sidereal_grid,
)
from skybins.ephemeris import julian_date, local_sidereal_time
from skybins.models import datetime_to_ms
from skybins.site import GEMINI_NORTH

from conftest import HOUR_MS, utc

SPAN_START = datetime_to_ms(utc(2024, 3, 1))
SPAN_END = SPAN_START + 24 * HOUR_MS


def _transiting_at_midday(dec_deg: float) -> SkyCoord:
    """Target crossing the meridian at GN halfway through the span."""

    mid = (SPAN_START + SPAN_END) // 2
    lst = local_sidereal_time(julian_date(mid), GEMINI_NORTH.west_longitude_hours)
    return SkyCoord(ra=lst * 15.0 * u.deg, dec=dec_deg * u.deg)


def _solver(target: SkyCoord, min_airmass=1.0, max_airmass=2.15, step_minutes=5.0):
    return AirmassConstraintSolver.for_airmass(
        GEMINI_NORTH, target, min_airmass, max_airmass, step_minutes=step_minutes
    )


def _total_hours(intervals) -> float:
    return sum(i.length_ms for i in intervals) / HOUR_MS


class TestAirmass:
    def test_known_values(self):
        values = airmass(np.array([90.0, 30.0, 0.0, -5.0]))

        assert values[:2] == pytest.approx([1.0, 2.0])
        assert np.isinf(values[2:]).all()


class TestSiderealGrid:
    def test_includes_both_ends_and_is_read_only(self):
        times, lst = sidereal_grid(0, 10 * 60_000, 3 * 60_000, 0.0)

        assert list(times) == [0, 180_000, 360_000, 540_000, 600_000]
        assert lst.shape == times.shape
        with pytest.raises(ValueError):
            times[0] = 1

    def test_repeated_grids_are_shared(self):
        first = sidereal_grid(0, 60 * 60_000, 60_000, 1.0)

        assert sidereal_grid(0, 60 * 60_000, 60_000, 1.0) is first


class TestAirmassConstraintSolver:
    def test_overhead_target_visible_for_one_pass(self):
        intervals = _solver(_transiting_at_midday(GEMINI_NORTH.latitude_deg)).solve(
            SPAN_START, SPAN_END
        )

        assert len(intervals) == 1
        assert 8.5 < _total_hours(intervals) < 9.3

    def test_transit_falls_inside_the_interval(self):
        (interval,) = _solver(_transiting_at_midday(GEMINI_NORTH.latitude_deg)).solve(
            SPAN_START, SPAN_END
        )
        mid = (SPAN_START + SPAN_END) // 2

        assert interval.contains(mid)
        # Symmetric about transit to within one sample.
        assert abs((mid - interval.start_ms) - (interval.end_ms - mid)) < 10 * 60_000

    def test_minimum_airmass_splits_the_pass(self):
        intervals = _solver(
            _transiting_at_midday(GEMINI_NORTH.latitude_deg), min_airmass=1.1
        ).solve(SPAN_START, SPAN_END)

        assert len(intervals) == 2
        assert intervals[0].end_ms < intervals[1].start_ms

    def test_never_rising_target(self):
        intervals = _solver(_transiting_at_midday(-80.0)).solve(SPAN_START, SPAN_END)

        assert intervals == []

    def test_intervals_lie_within_the_span(self):
        start = SPAN_START + 3 * HOUR_MS
        end = start + 5 * HOUR_MS
        intervals = _solver(_transiting_at_midday(GEMINI_NORTH.latitude_deg)).solve(start, end)

        assert intervals
        for interval in intervals:
            assert start <= interval.start_ms < interval.end_ms <= end

    def test_empty_span(self):
        solver = _solver(_transiting_at_midday(0.0))

        assert solver.solve(SPAN_START, SPAN_START) == []

    def test_finer_steps_agree(self):
        target = _transiting_at_midday(0.0)
        coarse = _total_hours(_solver(target, step_minutes=10.0).solve(SPAN_START, SPAN_END))
        fine = _total_hours(_solver(target, step_minutes=1.0).solve(SPAN_START, SPAN_END))

        assert coarse == pytest.approx(fine, abs=0.05)


def test_factory_uses_step():
    factory = airmass_solver_factory(step_minutes=2.5)
    solver = factory(GEMINI_NORTH, SkyCoord(ra=10 * u.deg, dec=20 * u.deg), 1.0, 2.0)

    assert solver.step_minutes == 2.5
    assert solver.ra_hours == pytest.approx(10.0 / 15.0)
    assert solver.dec_deg == pytest.approx(20.0)
    assert (solver.min_airmass, solver.max_airmass) == (1.0, 2.0)
