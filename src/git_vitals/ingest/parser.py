"""Turn one reconstructed record into a Commit.

Parsing is strict about the fixed header fields and lenient about
everything else: a record with a bad header is rejected with a
RecordParseError, while a single malformed numstat line is skipped and
reported without losing the rest of the commit.
"""

from __future__ import annotations

import codecs
import re
from datetime import datetime
from typing import Optional

from ..diagnostics import DiagnosticsCollector
from ..exceptions import RecordParseError
from ..exceptions.taxonomy import ErrorCode
from ..logging_config import get_logger
from ..models import ChangeType, Commit, FileChange, Identity
from .log_format import HASH_RE, US_STR

logger = get_logger(__name__)

# Matches: insertions TAB deletions TAB path ("-" marks binary)
NUMSTAT_RE = re.compile(r"^(\d+|-)\t(\d+|-)\t(.+)$")

# src/{old => new}/file.py, {a => b}/x, docs/{ => v2}/guide.md
_BRACE_RENAME_RE = re.compile(r"^(?P<prefix>.*?)\{(?P<old>[^{}]*) => (?P<new>[^{}]*)\}(?P<suffix>.*)$")

CO_AUTHOR_RE = re.compile(
    r"^[ \t]*co-authored-by:[ \t]*(?P<name>.*?)[ \t]*<(?P<email>[^<>\s]+)>[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)


class CommitParser:
    """Parser for records produced by the fixed log format."""

    def __init__(self, diagnostics: Optional[DiagnosticsCollector] = None):
        self._diagnostics = diagnostics
        self.parsed = 0
        self.rejected = 0

    def parse_or_warn(self, record: bytes, record_index: int) -> Optional[Commit]:
        """Parse a record; on failure record a warning and return None."""
        try:
            commit = self.parse(record, record_index)
        except RecordParseError as e:
            self.rejected += 1
            logger.debug("Skipping record #%d: %s", record_index, e.reason)
            self._warn(e.code, e.reason, record_index, e.commit_hash)
            return None
        self.parsed += 1
        return commit

    def parse(self, record: bytes, record_index: int = 0) -> Commit:
        """Parse a record.

        Raises:
            RecordParseError: If the header fields are missing or invalid
        """
        text = self._decode(record, record_index)
        if text.startswith("\x1e"):
            text = text[1:]

        head = text.split(US_STR, 5)
        if len(head) != 6:
            raise RecordParseError(
                f"expected 6 header fields, found {len(head)}", ErrorCode.GV300, record_index
            )
        commit_hash, parents, name, email, authored, rest = head

        commit_hash = commit_hash.strip()
        if not HASH_RE.match(commit_hash):
            raise RecordParseError(
                f"invalid commit hash {commit_hash[:80]!r}", ErrorCode.GV301, record_index
            )

        try:
            authored_at = datetime.fromisoformat(authored.strip())
        except ValueError:
            raise RecordParseError(
                f"unparsable author date {authored.strip()[:40]!r}",
                ErrorCode.GV302,
                record_index,
                commit_hash,
            )
        if authored_at.tzinfo is None:
            raise RecordParseError(
                f"author date without offset {authored.strip()!r}",
                ErrorCode.GV302,
                record_index,
                commit_hash,
            )

        message_part, sep, numstat_block = rest.rpartition(US_STR)
        if not sep:
            raise RecordParseError(
                "missing numstat field", ErrorCode.GV300, record_index, commit_hash
            )
        subject_field, newline, body = message_part.partition("\n")
        if not subject_field.endswith(US_STR) or not newline:
            raise RecordParseError(
                "missing body field", ErrorCode.GV300, record_index, commit_hash
            )
        subject = subject_field[:-1]
        body = body.rstrip()

        files = tuple(self._parse_numstat(numstat_block, record_index, commit_hash))
        email = email.strip()

        return Commit(
            hash=commit_hash,
            parents=tuple(parents.split()),
            author_name=name.strip(),
            author_email=email.lower(),
            author_email_display=email,
            authored_at=authored_at,
            subject=subject,
            body=body,
            files=files,
            co_authors=parse_co_authors(body),
        )

    def _decode(self, record: bytes, record_index: int) -> str:
        try:
            return record.decode("utf-8")
        except UnicodeDecodeError as e:
            self._warn(
                ErrorCode.GV304,
                f"invalid UTF-8 at byte {e.start}, replaced",
                record_index,
                _peek_hash(record),
            )
            return record.decode("utf-8", errors="replace")

    def _parse_numstat(self, block: str, record_index: int, commit_hash: str):
        # str.splitlines() would also split on control and separator characters.
        for line in block.split("\n"):
            if not line.strip():
                continue
            match = NUMSTAT_RE.match(line)
            if not match:
                self._warn(
                    ErrorCode.GV303,
                    f"malformed numstat line {line[:120]!r}",
                    record_index,
                    commit_hash,
                )
                continue
            added, deleted, raw_path = match.groups()
            yield parse_file_change(added, deleted, raw_path)

    def _warn(
        self, code: ErrorCode, message: str, record_index: int, commit_hash: Optional[str]
    ) -> None:
        if self._diagnostics is not None:
            self._diagnostics.add(code, message, record_index=record_index, commit_hash=commit_hash)


def parse_file_change(added: str, deleted: str, raw_path: str) -> FileChange:
    """Build a FileChange from the three numstat columns."""
    is_binary = added == "-" or deleted == "-"
    insertions = 0 if added == "-" else int(added)
    deletions = 0 if deleted == "-" else int(deleted)

    old_path, path = split_rename(raw_path)
    if old_path is not None and old_path != path:
        change_type = ChangeType.RENAMED
    elif is_binary:
        change_type = ChangeType.BINARY
        old_path = None
    else:
        change_type = ChangeType.MODIFIED
        old_path = None

    return FileChange(
        path=path,
        insertions=insertions,
        deletions=deletions,
        change_type=change_type,
        old_path=old_path,
        is_binary=is_binary,
    )


def split_rename(raw_path: str) -> tuple[Optional[str], str]:
    """Return (old_path, new_path); old_path is None when not a rename."""
    if " => " not in raw_path:
        return None, unquote_path(raw_path)

    match = _BRACE_RENAME_RE.match(raw_path)
    if match:
        prefix, suffix = match.group("prefix"), match.group("suffix")
        old = _join(prefix, match.group("old"), suffix)
        new = _join(prefix, match.group("new"), suffix)
        return unquote_path(old), unquote_path(new)

    old, new = raw_path.split(" => ", 1)
    return unquote_path(old), unquote_path(new)


def _join(prefix: str, middle: str, suffix: str) -> str:
    path = f"{prefix}{middle}{suffix}"
    while "//" in path:
        path = path.replace("//", "/")
    return path.strip("/")


def unquote_path(path: str) -> str:
    """Undo git's C-style quoting of unusual path names."""
    if len(path) >= 2 and path[0] == '"' and path[-1] == '"':
        raw, _ = codecs.escape_decode(path[1:-1].encode("utf-8"))
        return raw.decode("utf-8", errors="replace")
    return path


def parse_co_authors(body: str) -> tuple[Identity, ...]:
    """Co-authored-by trailers, de-duplicated by email, in order of appearance."""
    seen: set[str] = set()
    result: list[Identity] = []
    for match in CO_AUTHOR_RE.finditer(body):
        email = match.group("email").strip().lower()
        if email in seen:
            continue
        seen.add(email)
        result.append(Identity(name=match.group("name").strip(), email=email))
    return tuple(result)


def _peek_hash(record: bytes) -> Optional[str]:
    candidate = record.lstrip(b"\x1e")[:64].split(b"\x1f", 1)[0]
    text = candidate.decode("ascii", errors="replace")
    return text if HASH_RE.match(text) else None
