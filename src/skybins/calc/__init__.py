"""RA hour and Dec percentage calculation strategies."""

from .base import DecBinCalc, RaBinCalc, accumulate_visibility
from .elevation import ElevationDecBinCalc, ElevationRaBinCalc, zenith_bin_index
from .historical import HistoricalRaBinCalc, visible_bins

__all__ = [
    "DecBinCalc",
    "RaBinCalc",
    "accumulate_visibility",
    "ElevationDecBinCalc",
    "ElevationRaBinCalc",
    "HistoricalRaBinCalc",
    "visible_bins",
    "zenith_bin_index",
]
