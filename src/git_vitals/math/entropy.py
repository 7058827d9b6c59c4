"""Information theory over contribution distributions."""

import math
from collections.abc import Mapping
from typing import Union


class Entropy:
    """Entropy of count distributions (author -> commits, file -> changes)."""

    @staticmethod
    def shannon(distribution: Mapping[str, Union[int, float]]) -> float:
        """
        Compute Shannon entropy H(X) = -Σ p(x) log₂ p(x).

        Args:
            distribution: Dictionary with event -> count mapping

        Returns:
            Entropy in bits (0.0 for an empty or single-event distribution)
        """
        total = sum(distribution.values())
        if total <= 0:
            return 0.0

        entropy = 0.0
        for count in distribution.values():
            p = count / total
            if p > 0:
                entropy -= p * math.log2(p)

        return max(0.0, entropy)

    @staticmethod
    def normalized(distribution: Mapping[str, Union[int, float]]) -> float:
        """
        Normalize entropy by maximum possible entropy.

        H_norm = H / log₂(N) where N is the number of events with a
        non-zero count.

        Returns:
            Normalized entropy in [0, 1]
        """
        n = sum(1 for count in distribution.values() if count > 0)
        if n <= 1:
            return 0.0
        h = Entropy.shannon(distribution)
        return min(1.0, h / math.log2(n))

    @staticmethod
    def effective_count(distribution: Mapping[str, Union[int, float]]) -> float:
        """Perplexity 2^H: the number of equally active contributors with the same entropy."""
        if not distribution or sum(distribution.values()) <= 0:
            return 0.0
        return 2.0 ** Entropy.shannon(distribution)

    @staticmethod
    def spread(distribution: Mapping[str, Union[int, float]]) -> float:
        """
        Bounded entropy term 1 - 2^(-H).

        0 for a single contributor, approaching 1 as contributions spread
        over more people. Unlike normalized(), it keeps growing with the
        number of contributors instead of measuring evenness only.
        """
        if not distribution:
            return 0.0
        return 1.0 - 2.0 ** (-Entropy.shannon(distribution))
