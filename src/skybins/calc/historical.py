"""RA bin hours by the sidereal-time window method of the old spreadsheet.

Each night contributes one whole bin width to every RA bin whose centre lies
strictly inside the sidereal-time window between evening and morning
twilight. Partial overlaps are not credited.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List

import numpy as np
from tqdm import tqdm

from skybins.bins import BinAxis, BinPartition
from skybins.calc.base import millis_to_hours
from skybins.ephemeris import (
    JulianDate,
    NightProvider,
    SiderealTime,
    julian_date,
    local_sidereal_time,
    twilight_bounded_night,
)
from skybins.models import Hours
from skybins.nights import NightSequence
from skybins.site import Site, TwilightBoundType

LOGGER = logging.getLogger(__name__)

DEFAULT_BOUNDS = TwilightBoundType.NAUTICAL


def wrap_sidereal(hours: float) -> float:
    """Bring a negative sidereal time back into ``[0, 24)``."""

    if hours < 0:
        hours += 24
    return hours


def visible_bins(evening: float, morning: float, ra_hours: np.ndarray) -> np.ndarray:
    """Mask of the RA centres inside the ``(evening, morning)`` sidereal window.

    Comparisons are strict: a centre equal to either bound is not visible.
    When the window wraps past 0h a centre is visible if it lies after the
    evening or before the morning.
    """

    ra_hours = np.asarray(ra_hours, dtype=float)
    if evening < morning:
        return (ra_hours > evening) & (ra_hours < morning)
    return np.where(morning < ra_hours, evening < ra_hours, morning > ra_hours)


class HistoricalRaBinCalc:
    """Reproduces the legacy spreadsheet RA hours, bin for bin."""

    def __init__(
        self,
        bounds: TwilightBoundType = DEFAULT_BOUNDS,
        sidereal_time: SiderealTime = local_sidereal_time,
        to_julian_date: JulianDate = julian_date,
        night_provider: NightProvider = twilight_bounded_night,
        show_progress: bool = False,
    ) -> None:
        self.bounds = bounds
        self._sidereal_time = sidereal_time
        self._julian_date = to_julian_date
        self._night_provider = night_provider
        self._show_progress = show_progress

    def sidereal_window(self, site: Site, start_ms: int, end_ms: int) -> tuple[float, float]:
        """Evening and morning local sidereal times (hours) of a night."""

        # The sidereal routine wants a west longitude in hours.
        longitude = site.west_longitude_hours
        evening = self._sidereal_time(self._julian_date(start_ms), longitude)
        morning = self._sidereal_time(self._julian_date(end_ms), longitude)
        return wrap_sidereal(evening), wrap_sidereal(morning)

    def calc(
        self, site: Site, start: datetime, end: datetime, partition: BinPartition
    ) -> List[Hours]:
        if partition.axis is not BinAxis.RA:
            raise ValueError(f"Expected ra bins, got {partition}")

        totals = np.zeros(partition.bin_count, dtype=np.int64)
        bin_ms = partition.size_ms
        ras = partition.centers_hours()

        nights = NightSequence(site, start, end, self.bounds, self._night_provider)
        night_count = 0
        for night in tqdm(
            nights,
            desc="RA bins (sidereal window)",
            disable=not self._show_progress,
            leave=False,
        ):
            evening, morning = self.sidereal_window(site, night.start_ms, night.end_ms)
            totals[visible_bins(evening, morning, ras)] += bin_ms
            night_count += 1

        LOGGER.debug("Credited RA bins over %d nights at %s", night_count, site.key)
        return millis_to_hours(totals)
