"""
tests/test_drift.py - Tests for the bounded drift model.
"""

import random

import pytest

from aso_emulator.drift import (
    clamp,
    draw_drift,
    draw_throughput,
    drift_uncertainty,
    pick,
)
from conftest import FakeRandom


class TestDraws:
    def test_drift_extremes(self):
        """random() at 0 and just under 1 map to the +/-0.02 edges."""
        assert draw_drift(FakeRandom([0.0])) == pytest.approx(-0.02)
        assert draw_drift(FakeRandom([0.999999])) == pytest.approx(0.02, abs=1e-6)
        assert draw_drift(FakeRandom([0.5])) == 0.0

    def test_drift_bounded_for_real_prng(self):
        rng = random.Random(7)
        for _ in range(5000):
            d = draw_drift(rng)
            assert -0.02 <= d <= 0.02

    def test_throughput_range(self):
        assert draw_throughput(FakeRandom([0.0])) == 92.0
        assert draw_throughput(FakeRandom([0.5])) == 96.0
        rng = random.Random(11)
        for _ in range(5000):
            assert 92.0 <= draw_throughput(rng) <= 100.0


class TestClamp:
    def test_clamp(self):
        assert clamp(-1.0, 0.01, 0.99) == 0.01
        assert clamp(2.0, 0.01, 0.99) == 0.99
        assert clamp(0.5, 0.01, 0.99) == 0.5

    def test_uncertainty_never_leaves_range(self):
        """Pinned at the floor, a negative drift stays at the floor."""
        assert drift_uncertainty(0.01, FakeRandom([0.0])) == 0.01
        assert drift_uncertainty(0.99, FakeRandom([0.999999])) == 0.99


class TestPick:
    def test_pick_covers_options(self):
        options = ("a", "b", "c", "d", "e")
        assert pick(FakeRandom([0.0]), options) == "a"
        assert pick(FakeRandom([0.2]), options) == "b"
        assert pick(FakeRandom([0.99]), options) == "e"

    def test_pick_tolerates_one(self):
        assert pick(FakeRandom([1.0]), ("x", "y")) == "y"
