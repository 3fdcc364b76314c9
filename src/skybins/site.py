"""Observing sites, semesters and twilight definitions."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from zoneinfo import ZoneInfo

EARTH_EQUATORIAL_RADIUS_M = 6_378_137.0

# Semester boundaries fall at 14:00 local time at the site.
SEMESTER_BOUNDARY_HOUR = 14


class TwilightBoundType(Enum):
    """How far below the horizon the sun must be for night to begin."""

    OFFICIAL = ("Official", 50.0 / 60.0)
    CIVIL = ("Civil", 6.0)
    NAUTICAL = ("Nautical", 12.0)
    ASTRONOMICAL = ("Astronomical", 18.0)

    def __init__(self, label: str, horizon_angle: float) -> None:
        self.label = label
        self.horizon_angle = horizon_angle

    def depression_deg(self, site: "Site") -> float:
        """Sun depression angle defining the bound at ``site``.

        Sunrise and sunset depend on the observer's altitude but the
        twilights do not, so only the official bound gets the horizon dip.
        """

        if self is TwilightBoundType.OFFICIAL:
            dip = math.sqrt(2.0 * site.altitude_m / EARTH_EQUATORIAL_RADIUS_M)
            return self.horizon_angle + math.degrees(dip)
        return self.horizon_angle


@dataclass(frozen=True)
class Site:
    key: str
    name: str
    latitude_deg: float
    longitude_deg: float
    altitude_m: float
    timezone: str

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def west_longitude_hours(self) -> float:
        """Longitude in hours, positive west, as the sidereal time routine expects."""

        return -self.longitude_deg / 15.0

    @staticmethod
    def lookup(key: str) -> "Site":
        try:
            return SITES[key.upper()]
        except KeyError:
            raise ValueError(
                f"Unknown site {key!r}; expected one of {sorted(SITES)}"
            ) from None

    def __str__(self) -> str:
        return self.name


GEMINI_NORTH = Site(
    key="GN",
    name="Gemini North",
    latitude_deg=19.8238068,
    longitude_deg=-155.46905,
    altitude_m=4213.0,
    timezone="Pacific/Honolulu",
)

GEMINI_SOUTH = Site(
    key="GS",
    name="Gemini South",
    latitude_deg=-30.2407494,
    longitude_deg=-70.7366867,
    altitude_m=2722.0,
    timezone="America/Santiago",
)

SITES = {site.key: site for site in (GEMINI_NORTH, GEMINI_SOUTH)}

_SEMESTER_PATTERN = re.compile(r"^\s*(\d{4})\s*-?\s*([ABab])\s*$")


@dataclass(frozen=True, order=True)
class Semester:
    """Half-year observing period: A runs February-July, B August-January."""

    year: int
    half: str

    def __post_init__(self) -> None:
        if self.half not in ("A", "B"):
            raise ValueError(f"Semester half must be 'A' or 'B', got {self.half!r}")

    @classmethod
    def parse(cls, text: str) -> "Semester":
        match = _SEMESTER_PATTERN.match(text)
        if match is None:
            raise ValueError(f"Invalid semester: {text!r}. Expected e.g. 2020A")
        return cls(int(match.group(1)), match.group(2).upper())

    def _start_month(self) -> tuple[int, int]:
        if self.half == "A":
            return self.year, 2
        return self.year, 8

    def next(self) -> "Semester":
        if self.half == "A":
            return Semester(self.year, "B")
        return Semester(self.year + 1, "A")

    def prev(self) -> "Semester":
        if self.half == "B":
            return Semester(self.year, "A")
        return Semester(self.year - 1, "B")

    def start_date(self, site: Site) -> datetime:
        """First instant of the semester at ``site``, in UTC."""

        year, month = self._start_month()
        local = datetime(year, month, 1, SEMESTER_BOUNDARY_HOUR, tzinfo=site.zone)
        return local.astimezone(timezone.utc)

    def end_date(self, site: Site) -> datetime:
        """First instant after the semester at ``site``, in UTC."""

        return self.next().start_date(site)

    def __str__(self) -> str:
        return f"{self.year}{self.half}"
