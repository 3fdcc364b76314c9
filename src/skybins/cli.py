"""
RA/Dec bin report
=================

Prints the observing hours per RA bin and the usable percentage per Dec bin
for a site and semester.

Usage:
    # Gemini South, 2020A, 3 hour RA bins
    python -m skybins --site GS --semester 2020A --ra-bin-minutes 180

    # Write both tables as CSV
    python -m skybins --site GN --semester 2024B --output ./bins
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from skybins.config import RA_METHODS, ElevationConfig, SkyBinsConfig
from skybins.errors import SkyBinsError
from skybins.models import RaDecBins
from skybins.orchestrator import RaDecBinCalculator
from skybins.site import Semester, Site, TwilightBoundType

LOGGER = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _twilight(value: str) -> TwilightBoundType:
    try:
        return TwilightBoundType[value.upper()]
    except KeyError:
        raise argparse.ArgumentTypeError(
            f"Unknown twilight {value!r}; expected one of "
            f"{[t.name.lower() for t in TwilightBoundType]}"
        ) from None


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Compute RA bin hours and Dec bin percentages for a semester",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--site",
        type=str,
        required=True,
        help="Site key (GN or GS)",
    )
    parser.add_argument(
        "--semester",
        type=str,
        required=True,
        help="Semester, e.g. 2020A",
    )
    parser.add_argument(
        "--ra-bin-minutes",
        type=int,
        default=60,
        help="RA bin size in minutes (default: 60)",
    )
    parser.add_argument(
        "--dec-bin-degrees",
        type=int,
        default=10,
        help="Dec bin size in degrees (default: 10)",
    )
    parser.add_argument(
        "--ra-method",
        choices=RA_METHODS,
        default="historical",
        help="RA hours method (default: historical)",
    )
    parser.add_argument(
        "--twilight",
        type=_twilight,
        default=TwilightBoundType.NAUTICAL,
        help="Twilight bound: official, civil, nautical or astronomical (default: nautical)",
    )
    parser.add_argument(
        "--min-airmass",
        type=float,
        default=1.0,
        help="Minimum airmass (default: 1.0)",
    )
    parser.add_argument(
        "--max-airmass",
        type=float,
        default=2.15,
        help="Maximum airmass (default: 2.15)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Directory for ra_bins.csv and dec_bins.csv",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--show-progress",
        action="store_true",
        help="Show progress bars during execution",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> SkyBinsConfig:
    return SkyBinsConfig(
        ra_bin_minutes=args.ra_bin_minutes,
        dec_bin_degrees=args.dec_bin_degrees,
        elevation=ElevationConfig(
            twilight=args.twilight,
            min_airmass=args.min_airmass,
            max_airmass=args.max_airmass,
        ),
        ra_twilight=args.twilight,
        ra_method=args.ra_method,
        show_progress=args.show_progress,
    )


def print_summary(site: Site, semester: Semester, result: RaDecBins) -> None:
    """Print both bin tables."""
    print("\n" + "=" * 60)
    print(f"RA/Dec bins for {site} {semester}")
    print("=" * 60)
    print(result.ra_frame().to_string(index=False, float_format=lambda v: f"{v:.2f}"))
    total = sum(h.hours for h in result.ra_hours)
    print(f"\nTotal RA hours: {total:,.2f} h")
    print("-" * 60)
    print(result.dec_frame().to_string(index=False, float_format=lambda v: f"{v:.3f}"))


def write_outputs(output_dir: Path, result: RaDecBins) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    result.ra_frame().to_csv(output_dir / "ra_bins.csv", index=False)
    result.dec_frame().to_csv(output_dir / "dec_bins.csv", index=False)
    LOGGER.info("Wrote bin tables to %s", output_dir)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        site = Site.lookup(args.site)
        semester = Semester.parse(args.semester)
        config = build_config(args)
    except ValueError as exc:
        LOGGER.error("%s", exc)
        return 2

    calculator = RaDecBinCalculator.from_config(config)
    try:
        result = calculator.get_cached(
            site, semester, config.ra_partition(), config.dec_partition()
        )
    except SkyBinsError as exc:
        LOGGER.error("Calculation failed: %s", exc)
        return 1

    print_summary(site, semester, result)
    if args.output is not None:
        write_outputs(args.output, result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
