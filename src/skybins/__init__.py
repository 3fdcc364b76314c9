"""Observing time per RA bin and usable fraction per Dec bin for a site.

RA hours follow the sidereal-window method of the old spreadsheet; Dec
percentages come from airmass elevation constraints at the most visible RA.
Results are cached per site, semester and bin sizes.
"""

from .bins import BinAxis, BinPartition, dec_bins, ra_bins
from .config import ElevationConfig, SkyBinsConfig
from .models import Hours, Night, Percent, RaDecBins
from .nights import NightSequence
from .orchestrator import RaDecBinCalculator, get_ra_dec_bins
from .site import GEMINI_NORTH, GEMINI_SOUTH, Semester, Site, TwilightBoundType

__all__ = [
    "BinAxis",
    "BinPartition",
    "dec_bins",
    "ra_bins",
    "ElevationConfig",
    "SkyBinsConfig",
    "Hours",
    "Night",
    "Percent",
    "RaDecBins",
    "NightSequence",
    "RaDecBinCalculator",
    "get_ra_dec_bins",
    "GEMINI_NORTH",
    "GEMINI_SOUTH",
    "Semester",
    "Site",
    "TwilightBoundType",
]
