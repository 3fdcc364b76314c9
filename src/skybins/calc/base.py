"""Contracts for the RA and Dec bin calculations and the shared accumulator."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Protocol, Sequence

import numpy as np
from astropy.coordinates import Angle
from tqdm import tqdm

from skybins.bins import BinPartition
from skybins.constraints import Solver
from skybins.models import Hours, Night, Percent
from skybins.site import Site


class RaBinCalc(Protocol):
    """Computes the observing time available in each RA bin."""

    def calc(
        self, site: Site, start: datetime, end: datetime, partition: BinPartition
    ) -> List[Hours]:
        ...


class DecBinCalc(Protocol):
    """Computes the usable percentage of each Dec bin at a given RA."""

    def calc(
        self,
        site: Site,
        start: datetime,
        end: datetime,
        partition: BinPartition,
        ra: Angle,
    ) -> List[Percent]:
        ...


def accumulate_visibility(
    nights: Iterable[Night],
    solvers: Sequence[Solver],
    cap_ms: Optional[int] = None,
    show_progress: bool = False,
    desc: str = "Accumulating visibility",
) -> np.ndarray:
    """Sum, per solver, the time its constraint holds over every night.

    Args:
        nights: Nights to solve over.
        solvers: One solver per bin, in bin order.
        cap_ms: When given, a bin is credited at most this many
            milliseconds per night.
        show_progress: Show a progress bar over the nights.
        desc: Progress bar label.

    Returns:
        int64 array of accumulated milliseconds, one slot per solver.
    """

    totals = np.zeros(len(solvers), dtype=np.int64)
    for night in tqdm(nights, desc=desc, disable=not show_progress, leave=False):
        for bin_index, solver in enumerate(solvers):
            ms = sum(
                interval.length_ms
                for interval in solver.solve(night.start_ms, night.end_ms)
            )
            if cap_ms is not None:
                ms = min(cap_ms, ms)
            totals[bin_index] += ms
    return totals


def millis_to_hours(totals: np.ndarray) -> List[Hours]:
    return [Hours.from_millis(int(ms)) for ms in totals]
