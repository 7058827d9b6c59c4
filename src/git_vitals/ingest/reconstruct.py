"""Reassemble complete records from arbitrarily chunked git output.

Chunks come straight from the pipe, so a record boundary can fall on a
chunk edge, a single record can span many chunks, and the last record has
no terminating boundary at all. The reconstructor keeps one pending buffer
that only ever holds the record currently being assembled (plus, before
the first boundary, at most one boundary length of undecided bytes).
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from ..diagnostics import DiagnosticsCollector
from ..exceptions.taxonomy import ErrorCode
from ..logging_config import get_logger
from .log_format import MAX_BOUNDARY_LEN, RECORD_BOUNDARY_RE

logger = get_logger(__name__)

_TRIM = b" \t\r\n\x1e\x1f"


class RecordReconstructor:
    """Incremental record splitter.

    Emitted records do not include the leading record separator: each one
    starts with the commit hash.

    Example:
        >>> r = RecordReconstructor()
        >>> r.feed(b"\\x1e" + b"a" * 40 + b"\\x1f...")
        []
        >>> len(r.finish())
        1
    """

    def __init__(self, diagnostics: Optional[DiagnosticsCollector] = None):
        self._diagnostics = diagnostics
        self._buffer = bytearray()
        self._scan_from = 0
        self._started = False
        self._preamble_bytes = 0
        self._preamble_reported = False
        self._finished = False
        self.records_emitted = 0
        self.bytes_fed = 0

    @property
    def pending_bytes(self) -> int:
        return len(self._buffer)

    def feed(self, chunk: bytes) -> list[bytes]:
        """Add a chunk and return every record it completed."""
        if self._finished:
            raise RuntimeError("feed() after finish()")
        if not chunk:
            return []
        self.bytes_fed += len(chunk)
        buf = self._buffer
        buf += chunk

        records: list[bytes] = []
        pos = 0  # start of the current record's boundary
        while True:
            match = RECORD_BOUNDARY_RE.search(buf, self._scan_from)
            if match is None:
                break
            start = match.start()
            if not self._started:
                self._discard_preamble(buf[:start])
                self._started = True
            elif start > pos:
                records.append(bytes(buf[pos + 1 : start]))
            pos = start
            self._scan_from = match.end()

        if not self._started:
            # No boundary yet: keep only a tail that could still begin one.
            keep_from = max(0, len(buf) - MAX_BOUNDARY_LEN + 1)
            if keep_from:
                self._discard_preamble(buf[:keep_from], final=False)
                del buf[:keep_from]
            self._scan_from = 0
        else:
            if pos:
                del buf[:pos]
                self._scan_from -= pos
            # A boundary cut by the chunk edge starts inside the last few bytes.
            self._scan_from = max(self._scan_from, len(buf) - MAX_BOUNDARY_LEN + 1)

        self.records_emitted += len(records)
        return records

    def finish(self) -> list[bytes]:
        """Flush the trailing, delimiter-less record at end of stream."""
        if self._finished:
            return []
        self._finished = True
        buf = self._buffer
        if not self._started:
            self._discard_preamble(bytes(buf))
            buf.clear()
            self._report_preamble()
            return []

        record = bytes(buf[1:])
        buf.clear()
        self._scan_from = 0
        if not record.strip(_TRIM):
            return []
        self.records_emitted += 1
        return [record]

    def _discard_preamble(self, data: bytes | bytearray, final: bool = True) -> None:
        if data.strip(_TRIM):
            self._preamble_bytes += len(data)
        if final:
            self._report_preamble()

    def _report_preamble(self) -> None:
        if self._preamble_bytes and not self._preamble_reported:
            self._preamble_reported = True
            logger.debug("Discarded %d bytes before first record", self._preamble_bytes)
            if self._diagnostics is not None:
                self._diagnostics.add(
                    ErrorCode.GV200,
                    f"discarded {self._preamble_bytes} bytes before the first record",
                )


def iter_records(
    chunks: Iterable[bytes], diagnostics: Optional[DiagnosticsCollector] = None
) -> Iterator[bytes]:
    """Pull-driven wrapper: yields each record as soon as it is complete."""
    reconstructor = RecordReconstructor(diagnostics)
    for chunk in chunks:
        yield from reconstructor.feed(chunk)
    yield from reconstructor.finish()
