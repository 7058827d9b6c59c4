"""Stable error codes for diagnostics and fatal errors.

Error Code Convention:
    GV1xx - Log source errors
    GV2xx - Record reconstruction errors
    GV3xx - Commit parsing errors
    GV4xx - Aggregation errors
    GV5xx - Scoring errors
    GV6xx - Configuration errors

Codes are part of the report format. Never renumber an existing code.
"""

from __future__ import annotations

from enum import Enum


class Stage(Enum):
    """Pipeline stage that produced a diagnostic."""

    SOURCE = "source"
    RECONSTRUCT = "reconstruct"
    PARSE = "parse"
    AGGREGATE = "aggregate"
    SCORING = "scoring"
    CONFIG = "config"


class ErrorCode(Enum):
    """Structured error codes for observability and debugging."""

    # Log source errors (GV1xx)
    GV100 = "GV100"  # git binary not found
    GV101 = "GV101"  # path missing or not a repository
    GV102 = "GV102"  # non-zero exit after output (partial result)
    GV103 = "GV103"  # wall-clock timeout, process killed
    GV104 = "GV104"  # canceled by caller
    GV105 = "GV105"  # truncated trailing record dropped

    # Record reconstruction errors (GV2xx)
    GV200 = "GV200"  # bytes before first record boundary discarded

    # Commit parsing errors (GV3xx)
    GV300 = "GV300"  # field count mismatch
    GV301 = "GV301"  # invalid commit hash
    GV302 = "GV302"  # unparsable author date
    GV303 = "GV303"  # malformed numstat line
    GV304 = "GV304"  # undecodable bytes replaced
    GV305 = "GV305"  # parse error limit reached, reading stopped

    # Aggregation errors (GV4xx)
    GV400 = "GV400"  # duplicate commit hash skipped
    GV401 = "GV401"  # coupling matrix pruned
    GV402 = "GV402"  # commit too wide for coupling matrix

    # Scoring errors (GV5xx)
    GV500 = "GV500"  # illegal engine transition
    GV501 = "GV501"  # invalid weights

    # Configuration errors (GV6xx)
    GV600 = "GV600"  # invalid configuration value

    @property
    def stage(self) -> Stage:
        return _STAGE_BY_PREFIX[self.value[2]]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_STAGE_BY_PREFIX = {
    "1": Stage.SOURCE,
    "2": Stage.RECONSTRUCT,
    "3": Stage.PARSE,
    "4": Stage.AGGREGATE,
    "5": Stage.SCORING,
    "6": Stage.CONFIG,
}

_DESCRIPTIONS = {
    ErrorCode.GV100: "git binary not found",
    ErrorCode.GV101: "path missing or not a git repository",
    ErrorCode.GV102: "git log exited non-zero after producing output",
    ErrorCode.GV103: "git log exceeded its time budget and was killed",
    ErrorCode.GV104: "analysis canceled",
    ErrorCode.GV105: "trailing record cut off by an early stop was dropped",
    ErrorCode.GV200: "bytes before the first record boundary were discarded",
    ErrorCode.GV300: "record has the wrong number of fields",
    ErrorCode.GV301: "record has an invalid commit hash",
    ErrorCode.GV302: "record has an unparsable author date",
    ErrorCode.GV303: "malformed numstat line skipped",
    ErrorCode.GV304: "undecodable bytes replaced",
    ErrorCode.GV305: "too many unparsable records, stopped reading",
    ErrorCode.GV400: "duplicate commit skipped",
    ErrorCode.GV401: "coupling matrix pruned to its pair budget",
    ErrorCode.GV402: "commit touches too many files for coupling",
    ErrorCode.GV500: "illegal scoring engine transition",
    ErrorCode.GV501: "scoring weights are invalid",
    ErrorCode.GV600: "invalid configuration value",
}

# Codes that abort a run when raised as exceptions.
FATAL_CODES = frozenset({ErrorCode.GV100, ErrorCode.GV101, ErrorCode.GV501})
