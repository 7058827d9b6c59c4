"""Descriptive statistics for timelines and commit gaps."""

import math
from typing import Mapping, Sequence

import numpy as np


class Statistics:
    """Statistical helpers. Every function returns 0.0 on empty input."""

    @staticmethod
    def mean(values: Sequence[float]) -> float:
        if len(values) == 0:
            return 0.0
        return float(np.mean(values))

    @staticmethod
    def pstdev(values: Sequence[float]) -> float:
        """Population standard deviation."""
        if len(values) < 2:
            return 0.0
        return float(np.std(values))

    @staticmethod
    def median(values: Sequence[float]) -> float:
        if len(values) == 0:
            return 0.0
        return float(np.median(values))

    @staticmethod
    def percentile(values: Sequence[float], q: float) -> float:
        """q-th percentile (0-100), linear interpolation."""
        if len(values) == 0:
            return 0.0
        return float(np.percentile(values, q))

    @staticmethod
    def nearest_rank(histogram: Mapping[int, int], q: float) -> float:
        """
        Nearest-rank q-th percentile (0-100) of a value -> count histogram.

        Always returns an observed value; the rank is ceil(q/100 * n), at least 1.
        """
        total = sum(histogram.values())
        if total == 0:
            return 0.0
        rank = max(1, math.ceil(q / 100.0 * total))
        seen = 0
        for value in sorted(histogram):
            seen += histogram[value]
            if seen >= rank:
                return float(value)
        return float(max(histogram))

    @staticmethod
    def coefficient_of_variation(values: Sequence[float]) -> float:
        """
        CV = sigma / mu (population form).

        0.0 when the mean is zero, so a flat zero series reads as perfectly
        steady rather than undefined.
        """
        mu = Statistics.mean(values)
        if mu <= 0:
            return 0.0
        return Statistics.pstdev(values) / mu


class RunningStats:
    """Welford's online mean and variance.

    Lets the aggregator track the spread of inter-commit gaps without
    keeping one value per commit.
    """

    __slots__ = ("count", "_mean", "_m2")

    def __init__(self) -> None:
        self.count = 0
        self._mean = 0.0
        self._m2 = 0.0

    def push(self, value: float) -> None:
        self.count += 1
        delta = value - self._mean
        self._mean += delta / self.count
        self._m2 += delta * (value - self._mean)

    @property
    def mean(self) -> float:
        return self._mean if self.count else 0.0

    @property
    def variance(self) -> float:
        """Population variance."""
        if self.count < 2:
            return 0.0
        return max(0.0, self._m2 / self.count)

    @property
    def stdev(self) -> float:
        return math.sqrt(self.variance)

    @property
    def coefficient_of_variation(self) -> float:
        if self._mean <= 0 or self.count < 2:
            return 0.0
        return self.stdev / self._mean
