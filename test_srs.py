"""Tests for the fixed review ladder."""

from mnemo.engine import srs


def test_ladder_delays():
    assert srs.INTERVALS == (5000, 25000, 120000, 600000, 3600000, 18000000, 86400000)
    assert len(srs.LABELS) == len(srs.INTERVALS)


def test_advance_moves_one_rung():
    assert srs.advance(0) == (1, 25000)
    assert srs.advance(3) == (4, 3600000)


def test_advance_saturates_on_last_rung():
    assert srs.advance(srs.LAST_INDEX) == (srs.LAST_INDEX, srs.DAY)
    assert srs.advance(srs.LAST_INDEX - 1) == (srs.LAST_INDEX, srs.DAY)


def test_out_of_range_index_is_clamped():
    assert srs.clamp_index(-3) == 0
    assert srs.clamp_index(42) == srs.LAST_INDEX
    assert srs.advance(42) == (srs.LAST_INDEX, srs.DAY)


def test_first_due_and_labels():
    assert srs.first_due(1000) == 6000
    assert srs.next_label(0) == "25s"
    assert srs.next_label(srs.LAST_INDEX) == "1d"
