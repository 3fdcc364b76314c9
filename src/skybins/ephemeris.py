"""Sidereal time, sun position and twilight-bounded nights.

These are the ephemeris services the bin calculations depend on. The
calculations receive them as plain callables so tests can swap in
deterministic stand-ins.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Callable

import erfa
import numpy as np
from astropy.coordinates import PrecessedGeocentric, get_sun
from astropy.time import Time

from skybins.errors import TwilightError
from skybins.models import Night, datetime_to_ms, ms_to_datetime
from skybins.site import Site, TwilightBoundType

LOGGER = logging.getLogger(__name__)

NightProvider = Callable[[TwilightBoundType, int, Site], Night]
SiderealTime = Callable[[float, float], float]
JulianDate = Callable[[int], float]

# Sun altitude is sampled on this grid (minutes) from local noon to noon.
TWILIGHT_GRID_MINUTES = 10

# Crossings are refined until the sun is this close (degrees) to the bound.
TWILIGHT_TOLERANCE_DEG = 0.01
TWILIGHT_MAX_REFINEMENTS = 5

_MS_PER_MINUTE = 60_000
_HOURS_PER_RADIAN = 12.0 / np.pi


def julian_date(ms):
    """Julian date (UTC) of epoch milliseconds; accepts scalars or arrays."""

    seconds = np.asarray(ms, dtype=float) / 1000.0
    jd = Time(seconds, format="unix", scale="utc").jd
    if np.ndim(jd) == 0:
        return float(jd)
    return jd


def local_sidereal_time(jd, west_longitude_hours: float):
    """Local mean sidereal time in hours for a west-positive longitude in hours.

    UT1 is approximated by UTC. Results are wrapped into ``[0, 24)``.
    """

    gmst = erfa.gmst82(np.asarray(jd, dtype=float), 0.0) * _HOURS_PER_RADIAN
    lst = np.mod(gmst - west_longitude_hours, 24.0)
    if np.ndim(lst) == 0:
        return float(lst)
    return lst


def sun_ra_dec(ms):
    """Sun position as (RA hours, Dec degrees) at ``ms``; scalars or arrays.

    Coordinates are referred to the mean equator and equinox of date so they
    pair with the mean sidereal time of :func:`local_sidereal_time`.
    """

    seconds = np.asarray(ms, dtype=float) / 1000.0
    times = Time(seconds, format="unix", scale="utc")
    # Precession across the instants of one call is negligible.
    equinox = Time(float(np.mean(seconds)), format="unix", scale="utc")
    sun = get_sun(times).transform_to(PrecessedGeocentric(equinox=equinox, obstime=times))
    if np.ndim(seconds) == 0:
        return float(sun.ra.hour), float(sun.dec.deg)
    return sun.ra.hour, sun.dec.deg


def sun_altitude_deg(site: Site, ms) -> np.ndarray:
    """Altitude of the sun at ``site``, with the sun placed at each instant."""

    ra, dec = sun_ra_dec(ms)
    lst = local_sidereal_time(julian_date(ms), site.west_longitude_hours)
    return altitude_deg(site.latitude_deg, ra, dec, lst)


def altitude_deg(
    latitude_deg: float,
    ra_hours,
    dec_deg,
    lst_hours,
) -> np.ndarray:
    """Altitude of an object from its hour angle at the given sidereal times."""

    ha = np.radians((np.asarray(lst_hours) - np.asarray(ra_hours)) * 15.0)
    lat = np.radians(latitude_deg)
    dec = np.radians(dec_deg)
    sin_alt = np.sin(dec) * np.sin(lat) + np.cos(dec) * np.cos(lat) * np.cos(ha)
    return np.degrees(np.arcsin(np.clip(sin_alt, -1.0, 1.0)))


def _local_midnight_after(site: Site, ms: int) -> datetime:
    local_day: date = ms_to_datetime(ms).astimezone(site.zone).date()
    return datetime.combine(local_day + timedelta(days=1), time(0), tzinfo=site.zone)


def _interpolate_crossing(
    times_ms: np.ndarray, values: np.ndarray, idx: int, threshold: float
) -> int:
    t0, t1 = times_ms[idx], times_ms[idx + 1]
    v0, v1 = values[idx], values[idx + 1]
    fraction = (threshold - v0) / (v1 - v0)
    return int(round(t0 + fraction * (t1 - t0)))


def _refine_crossings(site: Site, guesses_ms, threshold: float) -> np.ndarray:
    """Secant steps from each guess until the sun sits on ``threshold``.

    The sun's position is recomputed at every candidate instant.
    """

    t0 = np.asarray(guesses_ms, dtype=float)
    t1 = t0 + _MS_PER_MINUTE
    f0 = sun_altitude_deg(site, t0) - threshold
    f1 = sun_altitude_deg(site, t1) - threshold
    for _ in range(TWILIGHT_MAX_REFINEMENTS):
        done = np.abs(f1) < TWILIGHT_TOLERANCE_DEG
        if np.all(done):
            break
        with np.errstate(divide="ignore", invalid="ignore"):
            step = np.where(done, 0.0, f1 * (t1 - t0) / (f1 - f0))
        t0, f0 = t1, f1
        t1 = t1 - step
        f1 = sun_altitude_deg(site, t1) - threshold
    return np.rint(t1).astype(np.int64)


def twilight_bounded_night(twilight: TwilightBoundType, ms: int, site: Site) -> Night:
    """The night beginning on the local date of ``ms`` at ``site``.

    Midnight and 23:59 local both yield the night that starts that evening
    and ends the next morning.
    """

    midnight = _local_midnight_after(site, ms)
    midnight_ms = datetime_to_ms(midnight)
    ra_sun, dec_sun = sun_ra_dec(midnight_ms)
    threshold = -twilight.depression_deg(site)

    half_day = 12 * 60
    offsets = np.arange(-half_day, half_day + 1, TWILIGHT_GRID_MINUTES)
    grid_ms = midnight_ms + offsets * _MS_PER_MINUTE
    lst = local_sidereal_time(julian_date(grid_ms), site.west_longitude_hours)
    alt = altitude_deg(site.latitude_deg, ra_sun, dec_sun, lst)

    if np.all(alt > threshold):
        LOGGER.warning("Sun up all night on: %s", midnight.date())
        raise TwilightError(f"Sun up all night on {midnight.date()} at {site}")
    if np.all(alt <= threshold):
        LOGGER.warning("Sun down all day on: %s", midnight.date())
        raise TwilightError(f"Sun down all day on {midnight.date()} at {site}")

    above = alt > threshold
    sets = np.flatnonzero(above[:-1] & ~above[1:])
    if sets.size == 0:
        LOGGER.warning("Sun doesn't set on: %s", midnight.date())
        raise TwilightError(f"Sun doesn't set on {midnight.date()} at {site}")
    set_idx = int(sets[0])
    rises = np.flatnonzero(~above[set_idx:-1] & above[set_idx + 1 :]) + set_idx
    if rises.size == 0:
        LOGGER.warning("Sun doesn't rise on: %s", midnight.date())
        raise TwilightError(f"Sun doesn't rise on {midnight.date()} at {site}")
    rise_idx = int(rises[0])

    guesses = [
        _interpolate_crossing(grid_ms, alt, set_idx, threshold),
        _interpolate_crossing(grid_ms, alt, rise_idx, threshold),
    ]
    start, end = (int(t) for t in _refine_crossings(site, guesses, threshold))
    LOGGER.debug(
        "%s night of %s at %s: %s -> %s",
        twilight.label,
        midnight.date() - timedelta(days=1),
        site.key,
        ms_to_datetime(start),
        ms_to_datetime(end),
    )
    return Night(site, start, end)


def night_for_time(
    twilight: TwilightBoundType,
    ms: int,
    site: Site,
    night_provider: NightProvider = twilight_bounded_night,
) -> Night:
    """The night containing ``ms``, or the coming night when ``ms`` is daytime."""

    tonight = night_provider(twilight, ms, site)
    if tonight.includes(ms):
        return tonight

    # Between local midnight and dawn the night began on the previous date.
    local = ms_to_datetime(ms).astimezone(site.zone)
    yesterday_ms = datetime_to_ms(local - timedelta(days=1))
    last_night = night_provider(twilight, yesterday_ms, site)
    if last_night.includes(ms):
        return last_night
    return tonight
