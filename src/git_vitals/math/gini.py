"""Gini coefficient for contribution inequality.

Applied to per-author commit counts it is the continuous companion of the
bus factor: the bus factor counts how many people hold half the history,
the Gini coefficient says how unevenly the whole history is spread.

    G = 0: perfect equality (everyone committed the same amount)
    G = 1: perfect inequality (one person made every commit)

Formula (for sorted values x_1 <= x_2 <= ... <= x_n):
    G = (2 * sum(i * x_i)) / (n * sum(x_i)) - (n + 1) / n
"""

from typing import Sequence, Union


class Gini:
    """Gini coefficient calculations for inequality measurement."""

    @staticmethod
    def gini_coefficient(
        values: Sequence[Union[int, float]],
        bias_correction: bool = False,
    ) -> float:
        """Compute Gini coefficient.

        Args:
            values: Non-negative values. Must not be empty.
            bias_correction: If True, apply n/(n-1) correction for sample data.
                Contributor populations are complete, so the default is off.

        Returns:
            Gini coefficient in [0, 1].

        Raises:
            ValueError: If values is empty or contains negative values.
        """
        if not values:
            raise ValueError("Cannot compute Gini for empty list")

        if any(v < 0 for v in values):
            raise ValueError("Gini requires non-negative values")

        if len(values) == 1:
            return 0.0

        total = sum(values)
        if total == 0:
            return 0.0

        sorted_vals = sorted(values)
        n = len(sorted_vals)

        weighted_sum = sum((i + 1) * v for i, v in enumerate(sorted_vals))
        gini = (2.0 * weighted_sum) / (n * total) - (n + 1.0) / n

        if bias_correction:
            gini *= n / (n - 1)

        return max(0.0, min(1.0, gini))

    @staticmethod
    def top_share(values: Sequence[Union[int, float]]) -> float:
        """Share of the largest value in the total; 0.0 for empty or all-zero input."""
        total = sum(values) if values else 0
        if total <= 0:
            return 0.0
        return max(values) / total
