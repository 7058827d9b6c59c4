"""Configuration exceptions: settings and scoring weights."""

from typing import Any, Mapping

from .base import GitVitalsError


class ConfigurationError(GitVitalsError):
    """Base class for configuration-related errors."""

    pass


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason


class InvalidWeightsError(ConfigurationError):
    """Raised when a scoring weight set is negative or does not sum to 1.0."""

    def __init__(self, name: str, weights: Mapping[str, float]):
        total = sum(weights.values())
        super().__init__(
            f"{name} weights must be non-negative and sum to 1.0, got {total:.6f}",
            details={"weights": name, "sum": f"{total:.6f}"},
        )
        self.name = name
        self.weights = dict(weights)
        self.total = total
