"""Immutable value types shared by the bin calculations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, ClassVar, Optional, Tuple

import pandas as pd

from skybins.errors import ValidationError

if TYPE_CHECKING:
    from skybins.bins import BinPartition
    from skybins.site import Site

MS_PER_HOUR = 3_600_000


def ms_to_datetime(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc)


def datetime_to_ms(value: datetime) -> int:
    """Epoch milliseconds for ``value``; naive datetimes are taken as UTC."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(round(value.timestamp() * 1000))


@dataclass(frozen=True, order=True)
class Hours:
    """Non-negative amount of observing time."""

    hours: float

    ZERO: ClassVar["Hours"]

    def __post_init__(self) -> None:
        if self.hours < 0:
            raise ValidationError(f"Hours cannot be negative, got {self.hours}")

    @classmethod
    def from_millis(cls, ms: int) -> "Hours":
        return cls(ms / MS_PER_HOUR)

    def __add__(self, other: "Hours") -> "Hours":
        return Hours(self.hours + other.hours)

    def __str__(self) -> str:
        return f"{self.hours:.2f} hrs"


Hours.ZERO = Hours(0.0)


@dataclass(frozen=True, order=True)
class Percent:
    """Non-negative percentage. Values above 100 are allowed."""

    amount: float

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValidationError(f"Percent cannot be negative, got {self.amount}")

    def __str__(self) -> str:
        return f"{self.amount:2.3f}%"


@dataclass(frozen=True)
class Interval:
    """Half-open ``[start_ms, end_ms)`` span in UTC epoch milliseconds."""

    start_ms: int
    end_ms: int

    def __post_init__(self) -> None:
        if self.end_ms < self.start_ms:
            raise ValidationError(
                f"Interval end {self.end_ms} precedes start {self.start_ms}"
            )

    @property
    def length_ms(self) -> int:
        return self.end_ms - self.start_ms

    def contains(self, ms: int) -> bool:
        return self.start_ms <= ms < self.end_ms


@dataclass(frozen=True)
class Night:
    """A twilight-bounded night at ``site``, possibly clipped to a range."""

    site: "Site"
    start_ms: int
    end_ms: int

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms

    @property
    def start_utc(self) -> datetime:
        return ms_to_datetime(self.start_ms)

    @property
    def end_utc(self) -> datetime:
        return ms_to_datetime(self.end_ms)

    def includes(self, ms: int) -> bool:
        return self.start_ms <= ms < self.end_ms

    def clip(self, start_ms: int, end_ms: int) -> Optional["Night"]:
        """Restrict the night to ``[start_ms, end_ms)``; ``None`` if empty."""

        start = max(self.start_ms, start_ms)
        end = min(self.end_ms, end_ms)
        if end <= start:
            return None
        return Night(self.site, start, end)


@dataclass(frozen=True)
class RaDecBins:
    """Visible hours per RA bin and usable percentage per Dec bin."""

    ra_hours: Tuple[Hours, ...]
    dec_percentages: Tuple[Percent, ...]
    ra_partition: Optional["BinPartition"] = field(default=None, compare=False)
    dec_partition: Optional["BinPartition"] = field(default=None, compare=False)

    def ra_frame(self) -> pd.DataFrame:
        """Tabular view of the RA hours, one row per bin."""

        data = {
            "Bin": range(len(self.ra_hours)),
            "Hours": [h.hours for h in self.ra_hours],
        }
        if self.ra_partition is not None:
            data["RA Center (h)"] = self.ra_partition.centers_hours()
        return pd.DataFrame(data)

    def dec_frame(self) -> pd.DataFrame:
        """Tabular view of the Dec percentages, one row per bin."""

        data = {
            "Bin": range(len(self.dec_percentages)),
            "Percent": [p.amount for p in self.dec_percentages],
        }
        if self.dec_partition is not None:
            data["Dec Center (deg)"] = self.dec_partition.centers_deg()
        return pd.DataFrame(data)
