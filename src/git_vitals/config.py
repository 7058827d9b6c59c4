"""Configuration loading and management for git-vitals.

This module provides configuration discovery and validation. Configuration
sources are merged in priority order:
    1. Defaults (defined in AnalysisOptions)
    2. Global config (~/.git-vitals.toml)
    3. Project config (<repo>/.git-vitals.toml)
    4. Explicit config file
    5. Environment variables (GIT_VITALS_* prefix)
    6. CLI overrides (passed as kwargs)

Every weight set is validated when it is constructed: weights must be
non-negative and sum to 1.0, otherwise InvalidWeightsError is raised and
the run never starts.

Example:
    >>> options = load_config(repo_path=".", heavy=True)
    >>> options.heavy
    True
    >>> options.risk_weights.churn
    0.3
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional, get_type_hints

from .exceptions import InvalidConfigError, InvalidWeightsError

WEIGHT_TOLERANCE = 1e-6


class _WeightSet:
    """Mixin for frozen weight dataclasses."""

    _label = "scoring"

    def as_dict(self) -> dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}  # type: ignore[arg-type]

    def _validate(self) -> None:
        weights = self.as_dict()
        if any(w < 0 for w in weights.values()):
            raise InvalidWeightsError(self._label, weights)
        if abs(sum(weights.values()) - 1.0) > WEIGHT_TOLERANCE:
            raise InvalidWeightsError(self._label, weights)


@dataclass(frozen=True)
class RiskWeights(_WeightSet):
    """Per-file risk composite weights (sum = 1.0)."""

    _label = "risk"

    churn: float = 0.30
    recency: float = 0.20
    ownership: float = 0.20
    entropy: float = 0.15
    coupling: float = 0.15

    def __post_init__(self) -> None:
        self._validate()


@dataclass(frozen=True)
class GovernanceWeights(_WeightSet):
    """Commit message hygiene weights (sum = 1.0).

    Attributes:
        conventional: conventional-commit subject format
        traceability: issue reference present
        length: subject length inside the adequate range
        no_wip: no work-in-progress marker
        no_revert: not a revert
        not_short: message is not trivially short
    """

    _label = "governance"

    conventional: float = 0.35
    traceability: float = 0.25
    length: float = 0.15
    no_wip: float = 0.10
    no_revert: float = 0.05
    not_short: float = 0.10

    def __post_init__(self) -> None:
        self._validate()


@dataclass(frozen=True)
class TeamWeights(_WeightSet):
    """Team effectiveness dimension weights (sum = 1.0)."""

    _label = "team"

    collaboration: float = 0.30
    consistency: float = 0.25
    quality: float = 0.25
    work_life_balance: float = 0.20

    def __post_init__(self) -> None:
        self._validate()


@dataclass(frozen=True)
class CollaborationWeights(_WeightSet):
    _label = "collaboration"

    merge_workflow: float = 0.25
    co_authorship: float = 0.25
    file_overlap: float = 0.25
    knowledge_distribution: float = 0.25

    def __post_init__(self) -> None:
        self._validate()


@dataclass(frozen=True)
class ConsistencyWeights(_WeightSet):
    _label = "consistency"

    bus_factor: float = 0.25
    active_contributors: float = 0.25
    velocity: float = 0.25
    cadence: float = 0.25

    def __post_init__(self) -> None:
        self._validate()


@dataclass(frozen=True)
class QualityWeights(_WeightSet):
    _label = "quality"

    governance: float = 0.30
    refactoring: float = 0.20
    documentation: float = 0.20
    merge_workflow: float = 0.20
    tests: float = 0.10

    def __post_init__(self) -> None:
        self._validate()


@dataclass(frozen=True)
class WorkLifeWeights(_WeightSet):
    _label = "work_life_balance"

    time_patterns: float = 0.40
    after_hours: float = 0.30
    weekend: float = 0.20
    coverage: float = 0.10

    def __post_init__(self) -> None:
        self._validate()


@dataclass(frozen=True)
class ThresholdConfig:
    """Algorithm thresholds and tuning parameters.

    Attributes:
        Risk:
            hotspot_threshold: Risk score at or above which a file is a hotspot
            recency_half_life_days: Half-life of the recency decay
            churn_cap_ratio: Churn relative to the median that saturates the churn term

        Ownership:
            bus_factor_share: Commit share the top authors must exceed

        Governance:
            min_subject_length: Lower bound of the adequate subject length
            max_subject_length: Upper bound of the adequate subject length
            short_message_length: Messages shorter than this are penalized

        Working hours (local time of each commit):
            work_day_start: First working hour
            work_day_end: Last working hour; commits after it are after-hours

        Activity:
            active_window_days: Window before the newest commit for "active" contributors
            high_velocity_factor: Days above this multiple of the mean are high velocity
            streak_gap_days: Largest gap in days that still continues a streak
            vacation_gap_days: Smallest gap in days counted as a break

        Heavy coupling:
            coupling_max_files: Commits touching more files are skipped
            coupling_max_pairs: Pair budget before least-supported pairs are pruned
            coupling_min_support: Minimum co-changes for a reported pair
    """

    hotspot_threshold: float = 0.6
    recency_half_life_days: float = 30.0
    churn_cap_ratio: float = 10.0

    bus_factor_share: float = 0.5

    min_subject_length: int = 20
    max_subject_length: int = 72
    short_message_length: int = 10

    work_day_start: int = 8
    work_day_end: int = 18

    active_window_days: int = 30
    high_velocity_factor: float = 2.0
    streak_gap_days: int = 2
    vacation_gap_days: int = 7

    coupling_max_files: int = 50
    coupling_max_pairs: int = 200_000
    coupling_min_support: int = 2

    def __post_init__(self) -> None:
        """Validate threshold configuration."""
        if not 0.0 <= self.hotspot_threshold <= 1.0:
            raise InvalidConfigError(
                "hotspot_threshold", self.hotspot_threshold, "must be between 0.0 and 1.0"
            )
        if not 0.0 < self.bus_factor_share <= 1.0:
            raise InvalidConfigError(
                "bus_factor_share", self.bus_factor_share, "must be in (0.0, 1.0]"
            )
        if self.recency_half_life_days <= 0:
            raise InvalidConfigError(
                "recency_half_life_days", self.recency_half_life_days, "must be positive"
            )
        if self.churn_cap_ratio <= 0:
            raise InvalidConfigError("churn_cap_ratio", self.churn_cap_ratio, "must be positive")
        if self.min_subject_length > self.max_subject_length:
            raise InvalidConfigError(
                "min_subject_length",
                self.min_subject_length,
                "must not exceed max_subject_length",
            )
        if not 0 <= self.work_day_start <= self.work_day_end <= 23:
            raise InvalidConfigError(
                "work_day_start", self.work_day_start, "working hours must satisfy 0 <= start <= end <= 23"
            )
        for name in ("active_window_days", "coupling_max_files", "coupling_max_pairs"):
            if getattr(self, name) < 1:
                raise InvalidConfigError(name, getattr(self, name), "must be at least 1")


DEFAULT_THRESHOLDS = ThresholdConfig()

# Nested sections of AnalysisOptions, keyed by TOML table name.
_NESTED_SECTIONS: dict[str, type] = {
    "risk_weights": RiskWeights,
    "governance_weights": GovernanceWeights,
    "team_weights": TeamWeights,
    "collaboration_weights": CollaborationWeights,
    "consistency_weights": ConsistencyWeights,
    "quality_weights": QualityWeights,
    "work_life_weights": WorkLifeWeights,
    "thresholds": ThresholdConfig,
}


@dataclass(frozen=True)
class AnalysisOptions:
    """Resolved options for one analysis run.

    Attributes:
        Repository and filters:
            repo_path: Repository working tree
            since / until: Date bounds passed to git (any format git accepts)
            days: Shortcut for since="<days> days ago"; ignored when since is set
            branches: Refs to walk (default HEAD)
            author: Author pattern passed to git
            paths: Path globs limiting the history
            max_count: Maximum commits requested from git

        Aggregation:
            include_merges: Include merge commits in the stream
            exclude_merge_churn: Merges count as commits but add no churn
            heavy: Build the pairwise coupling matrix
            keep_commits: Retain parsed commits on the report

        Runtime:
            timeout_seconds: Wall-clock budget for the git process
            chunk_size: Bytes per read from the git pipe
            max_parse_errors: Stop reading after this many rejected records (None = never)
            reference_time: ISO timestamp for recency; default is the newest commit
    """

    repo_path: str = "."
    since: Optional[str] = None
    until: Optional[str] = None
    days: Optional[int] = None
    branches: list[str] = field(default_factory=list)
    author: Optional[str] = None
    paths: list[str] = field(default_factory=list)
    max_count: Optional[int] = None

    include_merges: bool = True
    exclude_merge_churn: bool = False
    heavy: bool = False
    keep_commits: bool = False

    timeout_seconds: float = 300.0
    chunk_size: int = 64 * 1024
    max_parse_errors: Optional[int] = None
    reference_time: Optional[str] = None

    risk_weights: RiskWeights = field(default_factory=RiskWeights)
    governance_weights: GovernanceWeights = field(default_factory=GovernanceWeights)
    team_weights: TeamWeights = field(default_factory=TeamWeights)
    collaboration_weights: CollaborationWeights = field(default_factory=CollaborationWeights)
    consistency_weights: ConsistencyWeights = field(default_factory=ConsistencyWeights)
    quality_weights: QualityWeights = field(default_factory=QualityWeights)
    work_life_weights: WorkLifeWeights = field(default_factory=WorkLifeWeights)
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)

    def __post_init__(self) -> None:
        """Validate options after initialization."""
        if self.days is not None and self.days < 1:
            raise InvalidConfigError("days", self.days, "must be at least 1")
        if self.max_count is not None and self.max_count < 1:
            raise InvalidConfigError("max_count", self.max_count, "must be at least 1")
        if self.timeout_seconds <= 0:
            raise InvalidConfigError("timeout_seconds", self.timeout_seconds, "must be positive")
        if self.chunk_size < 1:
            raise InvalidConfigError("chunk_size", self.chunk_size, "must be at least 1")
        if self.max_parse_errors is not None and self.max_parse_errors < 0:
            raise InvalidConfigError(
                "max_parse_errors", self.max_parse_errors, "must be non-negative"
            )

    def echo(self) -> dict[str, Any]:
        """Plain dict of the options that shape the result, for report metadata."""
        return {
            "since": self.since,
            "until": self.until,
            "days": self.days,
            "branches": list(self.branches),
            "author": self.author,
            "paths": list(self.paths),
            "max_count": self.max_count,
            "include_merges": self.include_merges,
            "exclude_merge_churn": self.exclude_merge_churn,
            "heavy": self.heavy,
            "timeout_seconds": self.timeout_seconds,
            "reference_time": self.reference_time,
            "weights": {
                name: getattr(self, name).as_dict()
                for name in _NESTED_SECTIONS
                if name != "thresholds"
            },
            "thresholds": {f.name: getattr(self.thresholds, f.name) for f in fields(self.thresholds)},
        }


def load_config(config_file: Optional[Path] = None, **overrides) -> AnalysisOptions:
    """Load configuration with auto-discovery and merging.

    Configuration sources are merged in priority order (lowest to highest):
        1. Defaults (AnalysisOptions field defaults)
        2. Global config (~/.git-vitals.toml)
        3. Project config (<repo_path>/.git-vitals.toml)
        4. Explicit config file (if config_file provided)
        5. Environment variables (GIT_VITALS_* prefix)
        6. CLI overrides (kwargs)

    Nested tables ([risk_weights], [thresholds], ...) are merged key by key,
    so a project file can override a single weight of a global file.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). Nested
            sections may be given as dicts or as dataclass instances.

    Returns:
        Validated AnalysisOptions instance

    Raises:
        InvalidConfigError: If a config file is missing, malformed or has unknown keys
        InvalidWeightsError: If any weight set does not sum to 1.0
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / ".git-vitals.toml"
    if global_config.exists():
        _merge(merged, _load_toml_file(global_config))

    repo_path = overrides.get("repo_path") or os.environ.get("GIT_VITALS_REPO_PATH") or "."
    project_config = Path(repo_path) / ".git-vitals.toml"
    if project_config.exists() and project_config.resolve() != global_config.resolve():
        _merge(merged, _load_toml_file(project_config))

    if config_file is not None:
        config_file = Path(config_file)
        if not config_file.exists():
            raise InvalidConfigError("config_file", str(config_file), "file not found")
        _merge(merged, _load_toml_file(config_file))

    _merge(merged, _load_env_vars())

    _merge(merged, {k: v for k, v in overrides.items() if v is not None})

    known = {f.name for f in fields(AnalysisOptions)}
    for key in merged:
        if key not in known:
            raise InvalidConfigError(key, merged[key], "unknown configuration key")

    for section, cls in _NESTED_SECTIONS.items():
        value = merged.get(section)
        if value is None or isinstance(value, cls):
            continue
        if not isinstance(value, dict):
            raise InvalidConfigError(section, value, f"expected a [{section}] table")
        try:
            merged[section] = cls(**value)
        except TypeError as e:
            raise InvalidConfigError(section, value, str(e))

    try:
        return AnalysisOptions(**merged)
    except TypeError as e:
        raise InvalidConfigError("options", merged, str(e))


def _merge(target: dict[str, Any], source: dict[str, Any]) -> None:
    """Shallow merge, descending one level into nested section dicts."""
    for key, value in source.items():
        if key in _NESTED_SECTIONS and isinstance(value, dict):
            existing = target.get(key)
            if isinstance(existing, dict):
                existing.update(value)
                continue
            if existing is not None and not isinstance(existing, dict):
                base = {f.name: getattr(existing, f.name) for f in fields(existing)}
                base.update(value)
                target[key] = base
                continue
            target[key] = dict(value)
        else:
            target[key] = value


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from GIT_VITALS_* environment variables.

    Only scalar fields are read (GIT_VITALS_HEAVY, GIT_VITALS_TIMEOUT_SECONDS,
    GIT_VITALS_SINCE, ...). List fields accept a comma separated value.
    Weight tables can only be set from TOML or overrides.

    Returns:
        Dict of field_name -> parsed_value for any GIT_VITALS_* vars found.
    """
    type_hints = get_type_hints(AnalysisOptions)

    result: dict[str, Any] = {}

    for option in fields(AnalysisOptions):
        if option.name in _NESTED_SECTIONS:
            continue
        env_key = f"GIT_VITALS_{option.name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(option.name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))
        if parsed is not None:
            result[option.name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]

    origin = getattr(type_hint, "__origin__", None)
    if origin is list:
        return [part.strip() for part in value.split(",") if part.strip()]

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        InvalidConfigError: If TOML parsing fails
    """
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise InvalidConfigError("config_file", str(path), str(e))
