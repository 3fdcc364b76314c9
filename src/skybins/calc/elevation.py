"""RA and Dec bin calculations driven by airmass elevation constraints."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from astropy.coordinates import Angle, SkyCoord

from skybins.bins import BinAxis, BinPartition, dec_targets, ra_targets
from skybins.calc.base import accumulate_visibility, millis_to_hours
from skybins.config import ElevationConfig
from skybins.constraints import Solver, SolverFactory, airmass_solver_factory
from skybins.ephemeris import NightProvider, twilight_bounded_night
from skybins.errors import ZeroVisibilityError
from skybins.models import Hours, Percent
from skybins.nights import NightSequence
from skybins.site import Site

LOGGER = logging.getLogger(__name__)


def _build_solvers(
    factory: SolverFactory,
    site: Site,
    targets: SkyCoord,
    config: ElevationConfig,
) -> List[Solver]:
    return [
        factory(site, target, config.min_airmass, config.max_airmass)
        for target in targets
    ]


def _require_axis(partition: BinPartition, axis: BinAxis) -> None:
    if partition.axis is not axis:
        raise ValueError(f"Expected {axis.label} bins, got {partition}")


class ElevationRaBinCalc:
    """RA bin hours from the time an overhead target at each RA centre is observable.

    With ``transit_only`` a bin is credited at most one bin width of time per
    night, as if the target were only observed while transiting.
    """

    def __init__(
        self,
        transit_only: bool = True,
        config: ElevationConfig = ElevationConfig.DEFAULT,
        solver_factory: SolverFactory | None = None,
        night_provider: NightProvider = twilight_bounded_night,
        show_progress: bool = False,
    ) -> None:
        self.transit_only = transit_only
        self.config = config
        self._solver_factory = solver_factory or airmass_solver_factory()
        self._night_provider = night_provider
        self._show_progress = show_progress

    def calc(
        self, site: Site, start: datetime, end: datetime, partition: BinPartition
    ) -> List[Hours]:
        _require_axis(partition, BinAxis.RA)
        # A target passing overhead at the site.
        targets = ra_targets(partition, site.latitude_deg)
        solvers = _build_solvers(self._solver_factory, site, targets, self.config)
        nights = NightSequence(site, start, end, self.config.twilight, self._night_provider)

        cap_ms = partition.size_ms if self.transit_only else None
        totals = accumulate_visibility(
            nights,
            solvers,
            cap_ms=cap_ms,
            show_progress=self._show_progress,
            desc="RA bins (elevation)",
        )
        return millis_to_hours(totals)


def zenith_bin_index(site: Site, partition: BinPartition) -> int:
    """Index of the Dec bin containing the declination overhead at ``site``."""

    index = partition.index_of(site.latitude_deg + 90.0)
    return min(index, partition.bin_count - 1)


class ElevationDecBinCalc:
    """Dec bin percentages relative to the bin overhead at the site.

    Every Dec bin centre at the given RA is solved for the nights of the
    range. Totals are divided by the total of the zenith bin, not by the
    largest total, so bins seen longer than the zenith exceed 100%.
    """

    def __init__(
        self,
        config: ElevationConfig = ElevationConfig.DEFAULT,
        solver_factory: SolverFactory | None = None,
        night_provider: NightProvider = twilight_bounded_night,
        show_progress: bool = False,
    ) -> None:
        self.config = config
        self._solver_factory = solver_factory or airmass_solver_factory()
        self._night_provider = night_provider
        self._show_progress = show_progress

    def calc(
        self,
        site: Site,
        start: datetime,
        end: datetime,
        partition: BinPartition,
        ra: Angle,
    ) -> List[Percent]:
        _require_axis(partition, BinAxis.DEC)
        targets = dec_targets(partition, ra)
        solvers = _build_solvers(self._solver_factory, site, targets, self.config)
        nights = NightSequence(site, start, end, self.config.twilight, self._night_provider)

        totals = accumulate_visibility(
            nights,
            solvers,
            show_progress=self._show_progress,
            desc="Dec bins (elevation)",
        )

        zenith = zenith_bin_index(site, partition)
        reference = int(totals[zenith])
        if reference == 0:
            raise ZeroVisibilityError(
                f"Dec bin {zenith} overhead at {site} has no visible time between "
                f"{start} and {end}; cannot normalise"
            )
        LOGGER.debug(
            "Normalising %d dec bins by zenith bin %d (%d ms)",
            partition.bin_count,
            zenith,
            reference,
        )
        return [Percent(100.0 * (int(total) / reference)) for total in totals]
