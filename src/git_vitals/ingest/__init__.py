"""Ingestion: git log source, record reconstruction and commit parsing."""

from .log_format import LOG_FORMAT, build_log_args
from .parser import CommitParser
from .reconstruct import RecordReconstructor, iter_records
from .source import GitLogSource, ProcessLogSource, RepositoryInfo, SourceStatus

__all__ = [
    "LOG_FORMAT",
    "build_log_args",
    "CommitParser",
    "RecordReconstructor",
    "iter_records",
    "GitLogSource",
    "ProcessLogSource",
    "RepositoryInfo",
    "SourceStatus",
]
