"""Configuration for the RA/Dec bin calculations.

Two frozen dataclasses: :class:`ElevationConfig` describes when a target is
considered observable, :class:`SkyBinsConfig` gathers the knobs of a whole
calculation run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from skybins.bins import (
    DEFAULT_DEC_BIN_DEGREES,
    DEFAULT_RA_BIN_MINUTES,
    BinPartition,
    dec_bins,
    ra_bins,
)
from skybins.errors import ValidationError
from skybins.site import TwilightBoundType

DEFAULT_MIN_AIRMASS = 1.00
DEFAULT_MAX_AIRMASS = 2.15
DEFAULT_CACHE_SIZE = 50
RA_METHODS = ("historical", "elevation")


@dataclass(frozen=True)
class ElevationConfig:
    """Definition of when a target counts as observable."""

    twilight: TwilightBoundType = TwilightBoundType.NAUTICAL
    """How the evening and morning bounds of each night are set."""

    min_airmass: float = DEFAULT_MIN_AIRMASS
    """Thinnest airmass accepted (1.0 is overhead at zenith)."""

    max_airmass: float = DEFAULT_MAX_AIRMASS
    """Thickest airmass accepted."""

    DEFAULT: ClassVar["ElevationConfig"]

    def __post_init__(self) -> None:
        if self.min_airmass < 1.0:
            raise ValidationError(
                "min_airmass must be >= 1.0, got %s" % (self.min_airmass,)
            )
        if self.max_airmass < self.min_airmass:
            raise ValidationError(
                "max_airmass must be >= min_airmass, got %s < %s"
                % (self.max_airmass, self.min_airmass)
            )


ElevationConfig.DEFAULT = ElevationConfig()


@dataclass(frozen=True)
class SkyBinsConfig:
    """Master configuration for an RA/Dec bin calculation."""

    # ============================================================================
    # BINNING
    # ============================================================================

    ra_bin_minutes: int = DEFAULT_RA_BIN_MINUTES
    """RA bin width in minutes of time (must divide 1440)."""

    dec_bin_degrees: int = DEFAULT_DEC_BIN_DEGREES
    """Dec bin width in degrees (must divide 180)."""

    # ============================================================================
    # VISIBILITY
    # ============================================================================

    elevation: ElevationConfig = field(default_factory=lambda: ElevationConfig.DEFAULT)
    """Airmass limits and twilight used for the Dec percentages."""

    ra_twilight: TwilightBoundType = TwilightBoundType.NAUTICAL
    """Twilight used by the sidereal-time RA calculation."""

    ra_method: str = "historical"
    """RA hours method: "historical" (sidereal window) or "elevation"."""

    transit_only: bool = True
    """Cap elevation-based RA credit at one bin width per night."""

    solver_step_minutes: float = 1.0
    """Sampling cadence of the airmass constraint solver."""

    # ============================================================================
    # CACHING & BEHAVIOUR
    # ============================================================================

    cache_size: int = DEFAULT_CACHE_SIZE
    """Maximum number of cached results kept alive."""

    show_progress: bool = False
    """Show progress bars while iterating nights."""

    def __post_init__(self) -> None:
        # Building the partitions validates the bin sizes.
        self.ra_partition()
        self.dec_partition()
        if self.ra_method not in RA_METHODS:
            raise ValidationError(
                "ra_method must be one of %s, got %r" % (RA_METHODS, self.ra_method)
            )
        if self.cache_size <= 0:
            raise ValidationError("cache_size must be positive, got %s" % (self.cache_size,))
        if self.solver_step_minutes <= 0:
            raise ValidationError(
                "solver_step_minutes must be positive, got %s"
                % (self.solver_step_minutes,)
            )

    def ra_partition(self) -> BinPartition:
        return ra_bins(self.ra_bin_minutes)

    def dec_partition(self) -> BinPartition:
        return dec_bins(self.dec_bin_degrees)
