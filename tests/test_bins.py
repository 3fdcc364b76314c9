from __future__ import annotations

import numpy as np
import pytest
from astropy.coordinates import Angle

from skybins.bins import (
    BinAxis,
    BinPartition,
    dec_bins,
    dec_targets,
    ra_bins,
    ra_targets,
)
from skybins.errors import BinSizeError

RA_DIVISORS = [d for d in range(1, 1441) if 1440 % d == 0]
DEC_DIVISORS = [d for d in range(1, 181) if 180 % d == 0]


@pytest.mark.parametrize("size", RA_DIVISORS)
def test_ra_partition_covers_axis(size):
    partition = ra_bins(size)

    assert partition.bin_count * size == 1440
    assert len(partition.bin_centers()) == partition.bin_count


@pytest.mark.parametrize("size", DEC_DIVISORS)
def test_dec_partition_covers_axis(size):
    partition = dec_bins(size)

    assert partition.bin_count * size == 180
    assert len(partition.bin_centers()) == partition.bin_count


@pytest.mark.parametrize("size", [0, 7, -7, 1441])
def test_ra_size_must_divide(size):
    with pytest.raises(BinSizeError, match="ra bin size must evenly divide 1440 minutes") as info:
        ra_bins(size)
    assert info.value.bad_size == size


def test_negative_divisor_reports_negative():
    with pytest.raises(BinSizeError, match="Cannot be negative"):
        ra_bins(-1440)
    with pytest.raises(BinSizeError, match="Cannot be negative"):
        dec_bins(-10)


def test_dec_size_message_uses_degrees():
    with pytest.raises(BinSizeError) as info:
        dec_bins(7)
    assert str(info.value) == (
        "Bad bin size: 7 degrees. dec bin size must evenly divide 180 degrees."
    )


def test_bin_size_error_is_value_error():
    with pytest.raises(ValueError):
        BinPartition(BinAxis.RA, 0)


def test_ra_centers_in_hours():
    centers = ra_bins(60).bin_centers()

    assert isinstance(centers[0], Angle)
    assert centers[0].hour == pytest.approx(0.5)
    assert centers[-1].hour == pytest.approx(23.5)


def test_dec_centers_offset():
    partition = dec_bins(10)

    assert np.allclose(partition.centers_deg(), np.arange(-85.0, 90.0, 10.0))
    assert partition.bin_centers()[0].deg == pytest.approx(-85.0)


def test_explicit_offset():
    centers = ra_bins(360).center_values(offset=30.0)

    assert list(centers) == [210.0, 570.0, 930.0, 1290.0]


def test_centers_are_restartable():
    partition = ra_bins(120)
    first = partition.bin_centers()
    first.clear()

    assert len(partition.bin_centers()) == 12


def test_partition_equality():
    assert ra_bins(60) == BinPartition(BinAxis.RA, 60)
    assert hash(ra_bins(60)) == hash(BinPartition(BinAxis.RA, 60))
    assert ra_bins(60) != dec_bins(60)
    assert ra_bins(60) != ra_bins(120)


def test_size_ms_only_for_ra():
    assert ra_bins(60).size_ms == 3_600_000
    with pytest.raises(ValueError):
        dec_bins(10).size_ms


def test_index_of_zenith():
    assert dec_bins(10).index_of(19.82 + 90.0) == 10
    assert dec_bins(10).index_of(-30.24 + 90.0) == 5


def test_dec_targets_share_ra():
    targets = dec_targets(dec_bins(30), Angle(6.5, unit="hourangle"))

    assert len(targets) == 6
    assert np.allclose(targets.ra.hour, 6.5)
    assert np.allclose(targets.dec.deg, [-75, -45, -15, 15, 45, 75])


def test_ra_targets_share_dec():
    targets = ra_targets(ra_bins(360), 19.82)

    assert np.allclose(targets.ra.hour, [3.0, 9.0, 15.0, 21.0])
    assert np.allclose(targets.dec.deg, 19.82)


def test_targets_reject_wrong_axis():
    with pytest.raises(ValueError):
        dec_targets(ra_bins(60), Angle(0, unit="deg"))
    with pytest.raises(ValueError):
        ra_targets(dec_bins(10), 0.0)
