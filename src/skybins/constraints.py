"""Airmass constraint solving: when during a span is a target observable."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Protocol, Tuple

import numpy as np
from astropy.coordinates import SkyCoord

from skybins.ephemeris import altitude_deg, julian_date, local_sidereal_time
from skybins.models import Interval
from skybins.site import Site

LOGGER = logging.getLogger(__name__)

DEFAULT_STEP_MINUTES = 1.0


class Solver(Protocol):
    def solve(self, start_ms: int, end_ms: int) -> List[Interval]:
        """Disjoint, ordered sub-intervals of ``[start_ms, end_ms)`` where the constraint holds."""
        ...


class SolverFactory(Protocol):
    def __call__(
        self,
        site: Site,
        target: SkyCoord,
        min_airmass: float,
        max_airmass: float,
    ) -> Solver:
        ...


def airmass(altitude: np.ndarray) -> np.ndarray:
    """Plane-parallel airmass (sec z); ``inf`` at or below the horizon."""

    altitude = np.asarray(altitude, dtype=float)
    with np.errstate(divide="ignore"):
        sin_alt = np.sin(np.radians(altitude))
        return np.where(altitude > 0.0, 1.0 / sin_alt, np.inf)


@lru_cache(maxsize=16)
def sidereal_grid(
    start_ms: int,
    end_ms: int,
    step_ms: int,
    west_longitude_hours: float,
) -> Tuple[np.ndarray, np.ndarray]:
    """Sample times over ``[start_ms, end_ms]`` and their local sidereal times.

    Every target solved over the same night shares one grid, so it is cached.
    The returned arrays are read-only.
    """

    times = np.arange(start_ms, end_ms, step_ms, dtype=np.int64)
    times = np.append(times, np.int64(end_ms))
    lst = np.atleast_1d(local_sidereal_time(julian_date(times), west_longitude_hours))
    times.setflags(write=False)
    lst.setflags(write=False)
    return times, lst


def _true_runs(mask: np.ndarray) -> List[Tuple[int, int]]:
    """Index pairs ``(first, last)`` of each run of True values."""

    padded = np.concatenate(([False], mask, [False]))
    edges = np.flatnonzero(np.diff(padded.astype(np.int8)))
    return [(int(a), int(b) - 1) for a, b in zip(edges[::2], edges[1::2])]


@dataclass(frozen=True)
class AirmassConstraintSolver:
    """Finds when a fixed target lies between two airmass limits."""

    site: Site
    ra_hours: float
    dec_deg: float
    min_airmass: float
    max_airmass: float
    step_minutes: float = DEFAULT_STEP_MINUTES

    @classmethod
    def for_airmass(
        cls,
        site: Site,
        target: SkyCoord,
        min_airmass: float,
        max_airmass: float,
        step_minutes: float = DEFAULT_STEP_MINUTES,
    ) -> "AirmassConstraintSolver":
        return cls(
            site=site,
            ra_hours=float(target.ra.hour),
            dec_deg=float(target.dec.deg),
            min_airmass=min_airmass,
            max_airmass=max_airmass,
            step_minutes=step_minutes,
        )

    def _value(self, airmass_values: np.ndarray) -> np.ndarray:
        # Signed distance inside the airmass window; positive means satisfied.
        return np.minimum(
            airmass_values - self.min_airmass, self.max_airmass - airmass_values
        )

    def solve(self, start_ms: int, end_ms: int) -> List[Interval]:
        if end_ms <= start_ms:
            return []
        step_ms = max(1, int(round(self.step_minutes * 60_000)))
        times, lst = sidereal_grid(
            int(start_ms), int(end_ms), step_ms, self.site.west_longitude_hours
        )
        alt = altitude_deg(self.site.latitude_deg, self.ra_hours, self.dec_deg, lst)
        values = self._value(airmass(alt))
        ok = values >= 0.0

        intervals: List[Interval] = []
        for first, last in _true_runs(ok):
            lo = int(times[first])
            if first > 0:
                lo = self._edge(times, values, first - 1)
            hi = int(times[last])
            if last < times.size - 1:
                hi = self._edge(times, values, last)
            if hi > lo:
                intervals.append(Interval(lo, hi))
        return intervals

    @staticmethod
    def _edge(times: np.ndarray, values: np.ndarray, idx: int) -> int:
        v0, v1 = values[idx], values[idx + 1]
        t0, t1 = int(times[idx]), int(times[idx + 1])
        if not (np.isfinite(v0) and np.isfinite(v1)) or v0 == v1:
            # Crossing through the horizon; split the step evenly.
            return (t0 + t1) // 2
        fraction = -v0 / (v1 - v0)
        return int(round(t0 + fraction * (t1 - t0)))


def airmass_solver_factory(step_minutes: float = DEFAULT_STEP_MINUTES) -> SolverFactory:
    """Factory building :class:`AirmassConstraintSolver` with a fixed cadence."""

    def factory(
        site: Site, target: SkyCoord, min_airmass: float, max_airmass: float
    ) -> Solver:
        return AirmassConstraintSolver.for_airmass(
            site, target, min_airmass, max_airmass, step_minutes=step_minutes
        )

    return factory
