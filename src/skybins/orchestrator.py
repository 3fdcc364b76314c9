"""Combined RA hour and Dec percentage calculation with result caching."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence, Tuple

from astropy.coordinates import Angle

from skybins.bins import BinPartition, dec_bins, ra_bins
from skybins.cache import LRUCache
from skybins.calc import (
    DecBinCalc,
    ElevationDecBinCalc,
    ElevationRaBinCalc,
    HistoricalRaBinCalc,
    RaBinCalc,
)
from skybins.config import DEFAULT_CACHE_SIZE, SkyBinsConfig
from skybins.constraints import airmass_solver_factory
from skybins.errors import CacheKeyError
from skybins.models import Hours, RaDecBins
from skybins.site import Semester, Site

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheKey:
    site: Site
    semester: Semester
    ra_partition: BinPartition
    dec_partition: BinPartition

    def __post_init__(self) -> None:
        if (
            self.site is None
            or self.semester is None
            or self.ra_partition is None
            or self.dec_partition is None
        ):
            raise CacheKeyError("cannot construct with null")


def most_visible_ra(
    partition: BinPartition, hours: Sequence[Hours]
) -> Tuple[Angle, Hours]:
    """Centre and hours of the RA bin with the most time; the first bin wins ties."""

    centers = partition.bin_centers()
    best_index = 0
    best = hours[0]
    for index in range(1, partition.bin_count):
        if hours[index].hours > best.hours:
            best = hours[index]
            best_index = index
    return centers[best_index], best


class RaDecBinCalculator:
    """Computes RA hours, then Dec percentages at the most visible RA.

    RA hours come from the sidereal-window method since it most closely
    tracks what the queue expects; Dec percentages from the elevation method.
    Results looked up by semester are kept in a bounded LRU cache.
    """

    def __init__(
        self,
        ra_calc: Optional[RaBinCalc] = None,
        dec_calc: Optional[DecBinCalc] = None,
        cache: Optional[LRUCache[CacheKey, RaDecBins]] = None,
    ) -> None:
        self.ra_calc = ra_calc or HistoricalRaBinCalc()
        self.dec_calc = dec_calc or ElevationDecBinCalc()
        self.cache = cache if cache is not None else LRUCache(DEFAULT_CACHE_SIZE)

    @classmethod
    def from_config(cls, config: SkyBinsConfig) -> "RaDecBinCalculator":
        factory = airmass_solver_factory(config.solver_step_minutes)
        ra_calc: RaBinCalc
        if config.ra_method == "elevation":
            ra_calc = ElevationRaBinCalc(
                transit_only=config.transit_only,
                config=config.elevation,
                solver_factory=factory,
                show_progress=config.show_progress,
            )
        else:
            ra_calc = HistoricalRaBinCalc(
                bounds=config.ra_twilight,
                show_progress=config.show_progress,
            )
        return cls(
            ra_calc=ra_calc,
            dec_calc=ElevationDecBinCalc(
                config=config.elevation,
                solver_factory=factory,
                show_progress=config.show_progress,
            ),
            cache=LRUCache(config.cache_size),
        )

    def compute(
        self,
        site: Site,
        start: datetime,
        end: datetime,
        ra_partition: BinPartition,
        dec_partition: BinPartition,
    ) -> RaDecBins:
        LOGGER.info(
            "Computing RA/Dec bins for %s from %s to %s (%s, %s)",
            site.key,
            start,
            end,
            ra_partition,
            dec_partition,
        )
        ra_hours = self.ra_calc.calc(site, start, end, ra_partition)
        ra, hours = most_visible_ra(ra_partition, ra_hours)
        LOGGER.info("Most visible RA %.2fh with %s", ra.hour, hours)
        dec_percentages = self.dec_calc.calc(site, start, end, dec_partition, ra)
        return RaDecBins(
            ra_hours=tuple(ra_hours),
            dec_percentages=tuple(dec_percentages),
            ra_partition=ra_partition,
            dec_partition=dec_partition,
        )

    def get_cached(
        self,
        site: Site,
        semester: Semester,
        ra_partition: BinPartition,
        dec_partition: BinPartition,
    ) -> RaDecBins:
        """Cached result for the semester, computing it on a miss."""

        key = CacheKey(site, semester, ra_partition, dec_partition)

        def compute() -> RaDecBins:
            LOGGER.debug("Cache miss for %s %s", site.key, semester)
            return self.compute(
                site,
                semester.start_date(site),
                semester.end_date(site),
                ra_partition,
                dec_partition,
            )

        return self.cache.get_or_compute(key, compute)


_DEFAULT_CALCULATOR: Optional[RaDecBinCalculator] = None
_DEFAULT_LOCK = threading.Lock()


def default_calculator() -> RaDecBinCalculator:
    global _DEFAULT_CALCULATOR
    with _DEFAULT_LOCK:
        if _DEFAULT_CALCULATOR is None:
            _DEFAULT_CALCULATOR = RaDecBinCalculator()
        return _DEFAULT_CALCULATOR


def get_ra_dec_bins(
    site: Site,
    semester: Semester,
    ra_partition: Optional[BinPartition] = None,
    dec_partition: Optional[BinPartition] = None,
) -> RaDecBins:
    """RA/Dec bins for a semester from the process-wide cache."""

    return default_calculator().get_cached(
        site,
        semester,
        ra_partition or ra_bins(),
        dec_partition or dec_bins(),
    )
