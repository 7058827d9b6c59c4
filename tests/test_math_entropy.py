"""Tests for git_vitals.math.entropy module."""

import math

from git_vitals.math.entropy import Entropy


class TestShannonEntropy:
    """Tests for Shannon entropy computation."""

    def test_empty_distribution(self, empty_distribution):
        """Empty distribution has zero entropy."""
        assert Entropy.shannon(empty_distribution) == 0.0

    def test_single_event(self, single_event_distribution):
        """Single event (certainty) has zero entropy."""
        assert Entropy.shannon(single_event_distribution) == 0.0

    def test_uniform_distribution_equals_log2_n(self, uniform_distribution):
        """Uniform distribution over N events has entropy = log2(N)."""
        expected = math.log2(4)  # 2.0 bits
        result = Entropy.shannon(uniform_distribution)
        assert abs(result - expected) < 1e-10

    def test_fair_coin(self, known_distribution):
        """Fair coin has entropy = 1.0 bit."""
        result = Entropy.shannon(known_distribution)
        assert abs(result - 1.0) < 1e-10

    def test_skewed_distribution_less_than_uniform(self, skewed_distribution, uniform_distribution):
        """Skewed distribution has less entropy than uniform."""
        skewed_h = Entropy.shannon(skewed_distribution)
        uniform_h = Entropy.shannon(uniform_distribution)
        assert skewed_h < uniform_h

    def test_zero_counts_ignored(self):
        assert Entropy.shannon({"a": 5, "b": 5, "c": 0}) == Entropy.shannon({"a": 5, "b": 5})

    def test_entropy_non_negative(self):
        """Entropy is always non-negative."""
        distributions = [
            {"a": 1},
            {"a": 99, "b": 1},
            {"x": 10, "y": 20, "z": 30},
        ]
        for dist in distributions:
            assert Entropy.shannon(dist) >= 0.0


class TestNormalizedEntropy:
    """Tests for normalized entropy."""

    def test_single_event_normalized(self, single_event_distribution):
        """Single event: normalized entropy = 0."""
        assert Entropy.normalized(single_event_distribution) == 0.0

    def test_uniform_normalized_equals_one(self, uniform_distribution):
        """Uniform distribution: normalized entropy = 1.0."""
        result = Entropy.normalized(uniform_distribution)
        assert abs(result - 1.0) < 1e-10

    def test_normalized_in_unit_interval(self, skewed_distribution):
        """Normalized entropy is in [0, 1]."""
        result = Entropy.normalized(skewed_distribution)
        assert 0.0 <= result <= 1.0

    def test_empty_normalized(self, empty_distribution):
        assert Entropy.normalized(empty_distribution) == 0.0


class TestEffectiveCount:
    """Perplexity reads as 'how many equally active contributors'."""

    def test_uniform_equals_n(self, uniform_distribution):
        assert abs(Entropy.effective_count(uniform_distribution) - 4.0) < 1e-10

    def test_single_event_is_one(self, single_event_distribution):
        assert Entropy.effective_count(single_event_distribution) == 1.0

    def test_empty_is_zero(self, empty_distribution):
        assert Entropy.effective_count(empty_distribution) == 0.0

    def test_skewed_close_to_one(self, skewed_distribution):
        assert 1.0 < Entropy.effective_count(skewed_distribution) < 1.5


class TestSpread:
    def test_single_contributor_is_zero(self, single_event_distribution):
        assert Entropy.spread(single_event_distribution) == 0.0

    def test_fair_coin_is_half(self, known_distribution):
        assert abs(Entropy.spread(known_distribution) - 0.5) < 1e-10

    def test_grows_with_contributors(self):
        two = Entropy.spread({"a": 1, "b": 1})
        eight = Entropy.spread({str(i): 1 for i in range(8)})
        assert two < eight < 1.0

    def test_empty_is_zero(self, empty_distribution):
        assert Entropy.spread(empty_distribution) == 0.0
