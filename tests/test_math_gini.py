"""Tests for Gini coefficient calculations."""

import pytest

from git_vitals.math.gini import Gini


class TestGiniCoefficient:
    """Tests for Gini.gini_coefficient."""

    def test_empty_raises(self):
        with pytest.raises(ValueError, match="empty"):
            Gini.gini_coefficient([])

    def test_single_value_zero(self):
        assert Gini.gini_coefficient([42]) == 0.0

    def test_all_zeros_returns_zero(self):
        assert Gini.gini_coefficient([0, 0, 0, 0]) == 0.0

    def test_negative_values_raises(self):
        with pytest.raises(ValueError, match="non-negative"):
            Gini.gini_coefficient([1, -1, 2])

    def test_perfect_equality(self):
        # All equal values should give Gini = 0
        assert Gini.gini_coefficient([5, 5, 5, 5]) == 0.0
        assert Gini.gini_coefficient([10, 10, 10]) == 0.0
        assert Gini.gini_coefficient([1, 1, 1, 1, 1]) == 0.0

    def test_one_author_does_everything(self):
        # Population form tops out at (n - 1) / n
        assert Gini.gini_coefficient([0, 0, 0, 100]) == pytest.approx(0.75)
        assert Gini.gini_coefficient([0, 0, 0, 100], bias_correction=True) == pytest.approx(1.0)

    def test_moderate_inequality(self):
        gini = Gini.gini_coefficient([1, 2, 3, 10])
        assert 0.2 < gini < 0.7

    def test_order_does_not_matter(self):
        assert Gini.gini_coefficient([10, 1, 3, 2]) == Gini.gini_coefficient([1, 2, 3, 10])

    def test_result_in_valid_range(self):
        # Result should always be in [0, 1]
        test_cases = [
            [1, 1, 1],
            [1, 2, 3],
            [0, 0, 100],
            [1, 1, 1, 100],
            [5, 10, 15, 20, 80],
        ]
        for values in test_cases:
            gini = Gini.gini_coefficient(values)
            assert 0.0 <= gini <= 1.0, f"Gini out of range for {values}: {gini}"

    def test_bias_correction_increases(self):
        gini_with = Gini.gini_coefficient([1, 2, 3, 10], bias_correction=True)
        gini_without = Gini.gini_coefficient([1, 2, 3, 10], bias_correction=False)
        # With correction should be slightly larger (n/(n-1) factor)
        assert gini_with >= gini_without


class TestTopShare:
    def test_largest_share(self):
        assert Gini.top_share([1, 3]) == pytest.approx(0.75)

    def test_empty_and_zero(self):
        assert Gini.top_share([]) == 0.0
        assert Gini.top_share([0, 0]) == 0.0
