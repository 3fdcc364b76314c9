"""Iteration over the twilight-bounded nights of a date range."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterator, List, Optional

from skybins.ephemeris import NightProvider, twilight_bounded_night
from skybins.models import Night, datetime_to_ms, ms_to_datetime
from skybins.site import Semester, Site, TwilightBoundType

LOGGER = logging.getLogger(__name__)

DEFAULT_TWILIGHT = TwilightBoundType.NAUTICAL


class NightSequence:
    """The nights overlapping ``[start, end)`` at ``site``, clipped to the range.

    Each call to ``iter()`` starts a fresh pass. Every step is explicit:
    estimate the next night one local calendar day after the previous start,
    refine it with the night provider, then clip it to the range end.
    """

    def __init__(
        self,
        site: Site,
        start: datetime,
        end: datetime,
        twilight: TwilightBoundType = DEFAULT_TWILIGHT,
        night_provider: NightProvider = twilight_bounded_night,
    ) -> None:
        self.site = site
        self.start_ms = datetime_to_ms(start)
        self.end_ms = datetime_to_ms(end)
        self.twilight = twilight
        self._night_provider = night_provider

    @classmethod
    def for_semester(
        cls,
        site: Site,
        semester: Semester,
        twilight: TwilightBoundType = DEFAULT_TWILIGHT,
        night_provider: NightProvider = twilight_bounded_night,
    ) -> "NightSequence":
        return cls(
            site,
            semester.start_date(site),
            semester.end_date(site),
            twilight,
            night_provider,
        )

    def __iter__(self) -> Iterator[Night]:
        night = self._first_night()
        while night is not None:
            yield night
            night = self._next_night(night)

    def to_list(self) -> List[Night]:
        return list(self)

    def _first_night(self) -> Optional[Night]:
        if self.end_ms <= self.start_ms:
            return None
        night = self._night_provider(self.twilight, self.start_ms, self.site)
        return night.clip(self.start_ms, self.end_ms)

    def _estimate_next_start(self, night: Night) -> int:
        # Only seeds the provider; it is off by the daily drift of twilight.
        local = ms_to_datetime(night.start_ms).astimezone(self.site.zone)
        return datetime_to_ms(local + timedelta(days=1))

    def _next_night(self, current: Night) -> Optional[Night]:
        estimate = self._estimate_next_start(current)
        night = self._night_provider(self.twilight, estimate, self.site)
        if night.start_ms <= current.start_ms:
            LOGGER.warning(
                "Night provider returned %s after %s; stopping iteration",
                night.start_utc,
                current.start_utc,
            )
            return None
        if night.end_ms > self.end_ms:
            if night.start_ms >= self.end_ms:
                return None
            return Night(self.site, night.start_ms, self.end_ms)
        return night


def nights_for_range(
    site: Site,
    start: datetime,
    end: datetime,
    twilight: TwilightBoundType = DEFAULT_TWILIGHT,
    night_provider: NightProvider = twilight_bounded_night,
) -> List[Night]:
    """All nights of ``[start, end)`` as a list."""

    return NightSequence(site, start, end, twilight, night_provider).to_list()
