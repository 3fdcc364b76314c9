"""Equal-sized partitions of the RA and Dec axes."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import List

import numpy as np
from astropy import units as u
from astropy.coordinates import Angle, SkyCoord

from skybins.errors import BinSizeError

TOTAL_RA_MINUTES = 24 * 60
TOTAL_DEC_DEGREES = 180

DEFAULT_RA_BIN_MINUTES = 60
DEFAULT_DEC_BIN_DEGREES = 10

_ODD_SIZE_MESSAGE = (
    "Bad bin size: {size} {units}. {name} bin size must evenly divide {total} {units}."
)
_NEGATIVE_SIZE_MESSAGE = "Bad bin size: {size} {units}. Cannot be negative."


class BinAxis(Enum):
    """The two binned axes with their totals, units and centre offsets."""

    RA = ("ra", TOTAL_RA_MINUTES, "minutes", 0.0)
    DEC = ("dec", TOTAL_DEC_DEGREES, "degrees", -90.0)

    def __init__(self, label: str, total: int, units: str, offset: float) -> None:
        self.label = label
        self.total = total
        self.units = units
        self.offset = offset

    def to_angle(self, values) -> Angle:
        """Wrap raw axis values (minutes of RA or degrees of Dec) as an Angle."""

        if self is BinAxis.RA:
            return Angle(np.asarray(values, dtype=float) / 60.0, unit=u.hourangle)
        return Angle(np.asarray(values, dtype=float), unit=u.deg)


def validate_bin_size(axis: BinAxis, size: int) -> None:
    """Reject sizes that do not evenly partition ``axis``.

    The divisor check runs first, so a negative size that is not a divisor
    reports the divisor message.
    """

    if size == 0 or axis.total % size != 0:
        raise BinSizeError(
            _ODD_SIZE_MESSAGE.format(
                size=size,
                units=axis.units,
                name=axis.label,
                total=axis.total,
            ),
            size,
        )
    if size < 0:
        raise BinSizeError(
            _NEGATIVE_SIZE_MESSAGE.format(size=size, units=axis.units), size
        )


@dataclass(frozen=True)
class BinPartition:
    """Division of one axis into ``bin_count`` bins of ``size`` units.

    RA sizes are in minutes of time (a one hour bin is ``60``), Dec sizes in
    degrees. Bin ``0`` starts at the axis origin: RA 0h, Dec -90.
    """

    axis: BinAxis
    size: int

    def __post_init__(self) -> None:
        validate_bin_size(self.axis, self.size)

    @property
    def total(self) -> int:
        return self.axis.total

    @property
    def units(self) -> str:
        return self.axis.units

    @property
    def bin_count(self) -> int:
        return self.axis.total // self.size

    @property
    def size_ms(self) -> int:
        """Nominal bin width in milliseconds (RA partitions only)."""

        if self.axis is not BinAxis.RA:
            raise ValueError("Only RA bins have a duration")
        return self.size * 60 * 1000

    def center_values(self, offset: float | None = None) -> np.ndarray:
        """Bin centres in the axis' own units."""

        if offset is None:
            offset = self.axis.offset
        half = self.size / 2.0
        return np.arange(self.bin_count, dtype=float) * self.size + half + offset

    def bin_centers(self, offset: float | None = None) -> List[Angle]:
        """One Angle per bin marking the centre of the bin.

        A new list is built on every call.
        """

        return list(self.axis.to_angle(self.center_values(offset)))

    def centers_hours(self) -> np.ndarray:
        return self.axis.to_angle(self.center_values()).hourangle

    def centers_deg(self) -> np.ndarray:
        return self.axis.to_angle(self.center_values()).deg

    def index_of(self, value: float) -> int:
        """Index of the bin holding ``value`` measured from the axis origin."""

        return int(math.floor(value)) // self.size

    def __str__(self) -> str:
        return f"{self.axis.label} bins of {self.size} {self.units}"


def ra_bins(minutes: int = DEFAULT_RA_BIN_MINUTES) -> BinPartition:
    return BinPartition(BinAxis.RA, minutes)


def dec_bins(degrees: int = DEFAULT_DEC_BIN_DEGREES) -> BinPartition:
    return BinPartition(BinAxis.DEC, degrees)


def dec_targets(partition: BinPartition, ra: Angle) -> SkyCoord:
    """Targets at the centre of every Dec bin, all at right ascension ``ra``."""

    if partition.axis is not BinAxis.DEC:
        raise ValueError("dec_targets requires a Dec partition")
    decs = partition.centers_deg()
    ras = np.full(decs.shape, Angle(ra).deg)
    return SkyCoord(ra=ras * u.deg, dec=decs * u.deg, frame="icrs")


def ra_targets(partition: BinPartition, dec_deg: float) -> SkyCoord:
    """Targets at the centre of every RA bin, all at declination ``dec_deg``."""

    if partition.axis is not BinAxis.RA:
        raise ValueError("ra_targets requires an RA partition")
    ras = partition.centers_hours() * 15.0
    decs = np.full(ras.shape, float(dec_deg))
    return SkyCoord(ra=ras * u.deg, dec=decs * u.deg, frame="icrs")
