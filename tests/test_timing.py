"""Unit tests for the failed-login delay."""

import random

import pytest

from identity.timing import FailureDelay


class TestFailureDelay:
    def test_delay_stays_within_bounds(self):
        slept = []
        delay = FailureDelay(100, 1000, sleep=slept.append, rng=random.Random(7))

        for _ in range(50):
            delay()

        assert len(slept) == 50
        assert all(0.1 <= s <= 1.0 for s in slept)

    def test_zero_window_never_sleeps(self):
        slept = []
        delay = FailureDelay(0, 0, sleep=slept.append)

        assert delay() == 0.0
        assert slept == []

    @pytest.mark.parametrize("bounds", [(-1, 10), (500, 100)])
    def test_invalid_bounds_are_rejected(self, bounds):
        with pytest.raises(ValueError):
            FailureDelay(*bounds)
