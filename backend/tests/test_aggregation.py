"""
Tests for core/aggregation.py — round2, clamping, weighted contributions and averages.
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.aggregation import (
    clamp_mark,
    effective_coefficient,
    percentage,
    round2,
    to_number,
    weighted_average,
    weighted_contribution,
)


class TestRound2:
    """round2 rounds half up on the scaled value."""

    def test_rounds_repeating_fraction(self):
        assert round2(190 / 13) == 14.62

    def test_half_rounds_up_not_to_even(self):
        # Python's round() would give 0.12 and 10.12 here
        assert round2(0.125) == 0.13
        assert round2(10.125) == 10.13

    def test_already_rounded_values_unchanged(self):
        assert round2(12.5) == 12.5
        assert round2(0) == 0.0
        assert round2(20) == 20.0


class TestClampingAndCoefficients:

    def test_clamp_mark_bounds(self):
        assert clamp_mark(25) == 20.0
        assert clamp_mark(-3) == 0.0
        assert clamp_mark(13.5) == 13.5

    def test_missing_mark_counts_as_zero(self):
        assert clamp_mark(None) == 0.0
        assert clamp_mark("") == 0.0

    def test_negative_coefficient_is_zero(self):
        assert effective_coefficient(-2) == 0.0
        assert effective_coefficient(None) == 0.0
        assert effective_coefficient(4) == 4.0

    def test_to_number_rejects_non_numbers(self):
        assert to_number("abc") is None
        assert to_number(True) is None
        assert to_number(float("nan")) is None
        assert to_number("14.5") == 14.5


class TestWeightedFigures:

    def test_weighted_contribution(self):
        assert weighted_contribution(15.5, 4) == 62.0
        assert weighted_contribution(15, -3) == 0.0

    def test_percentage(self):
        assert percentage(15) == 75.0
        assert percentage(13.5) == 67.5
        assert percentage(30) == 100.0

    def test_weighted_average_reference_example(self):
        assert weighted_average([(15, 6), (12, 3), (16, 4)]) == 14.62

    def test_weighted_average_empty_is_zero(self):
        assert weighted_average([]) == 0

    def test_weighted_average_zero_coefficients_is_zero(self):
        assert weighted_average([(15, 0), (12, 0)]) == 0

    def test_weighted_average_order_invariant(self):
        entries = [(15, 6), (12, 3), (16, 4), (8.5, 2)]
        assert weighted_average(entries) == weighted_average(list(reversed(entries)))
        assert weighted_average(entries) == weighted_average(entries[2:] + entries[:2])

    def test_shared_coefficient_gives_simple_mean(self):
        assert weighted_average([(12, 2), (14, 2), (16, 2)]) == 14.0
        assert weighted_average([(9, 5), (11, 5)]) == 10.0

    def test_negative_coefficient_excluded_from_average(self):
        assert weighted_average([(15, 2), (5, -3)]) == 15.0
