"""Tests for record reconstruction from chunked git output."""

from conftest import fake_hash, raw_record

from git_vitals.diagnostics import DiagnosticsCollector
from git_vitals.exceptions.taxonomy import ErrorCode
from git_vitals.ingest.parser import CommitParser
from git_vitals.ingest.reconstruct import RecordReconstructor, iter_records


def _stream(n: int) -> bytes:
    return b"".join(
        raw_record(fake_hash(i), subject=f"commit {i}", numstat=(f"{i}\t1\tfile{i}.py",))
        for i in range(n)
    )


def _chunks(data: bytes, size: int):
    return [data[i : i + size] for i in range(0, len(data), size)]


def _collect(chunks):
    reconstructor = RecordReconstructor()
    records = []
    for chunk in chunks:
        records.extend(reconstructor.feed(chunk))
    records.extend(reconstructor.finish())
    return records


class TestRecordBoundaries:
    """Tests for splitting on RS + hash + US."""

    def test_single_chunk(self):
        records = _collect([_stream(3)])
        assert len(records) == 3
        assert records[0].startswith(fake_hash(0).encode())

    def test_records_exclude_leading_separator(self):
        records = _collect([_stream(2)])
        assert all(not r.startswith(b"\x1e") for r in records)

    def test_every_chunk_size_gives_same_records(self):
        data = _stream(5)
        expected = _collect([data])
        for size in (1, 2, 3, 7, 41, 42, 43, 64, 100, len(data)):
            assert _collect(_chunks(data, size)) == expected, f"chunk size {size}"

    def test_boundary_split_across_chunks(self):
        data = _stream(2)
        second = data.index(b"\x1e", 1)
        # Cut in the middle of the second record's hash.
        chunks = [data[: second + 20], data[second + 20 :]]
        assert _collect(chunks) == _collect([data])

    def test_empty_stream(self):
        assert _collect([]) == []
        assert _collect([b""]) == []

    def test_whitespace_only_stream(self):
        assert _collect([b"\n\n  \n"]) == []

    def test_trailing_record_flushed_on_finish(self):
        reconstructor = RecordReconstructor()
        emitted = reconstructor.feed(_stream(1))
        assert emitted == []
        assert len(reconstructor.finish()) == 1
        assert reconstructor.records_emitted == 1

    def test_finish_twice_is_empty(self):
        reconstructor = RecordReconstructor()
        reconstructor.feed(_stream(1))
        reconstructor.finish()
        assert reconstructor.finish() == []

    def test_preamble_discarded_with_diagnostic(self):
        diagnostics = DiagnosticsCollector()
        reconstructor = RecordReconstructor(diagnostics)
        records = reconstructor.feed(b"warning: something odd\n" + _stream(2))
        records += reconstructor.finish()
        assert len(records) == 2
        assert [d.code for d in diagnostics] == [ErrorCode.GV200]

    def test_iter_records_wrapper(self):
        data = _stream(4)
        assert list(iter_records(_chunks(data, 10))) == _collect([data])


class TestAdversarialContent:
    """Delimiter bytes inside messages must not split records."""

    def test_control_bytes_in_body(self):
        body = "line with \x1e and \x1f inside\nand \x1e\x1f again"
        data = raw_record(fake_hash("a"), body=body, numstat=("1\t1\ta.py",)) + raw_record(
            fake_hash("b"), numstat=("2\t2\tb.py",)
        )
        records = _collect(_chunks(data, 5))
        assert len(records) == 2
        commit = CommitParser().parse(records[0])
        assert commit.body == body
        assert [f.path for f in commit.files] == ["a.py"]

    def test_separator_followed_by_short_hex_is_not_a_boundary(self):
        body = "see \x1eabc123\x1f for details"
        data = raw_record(fake_hash("a"), body=body) + raw_record(fake_hash("b"))
        records = _collect([data])
        assert len(records) == 2
        assert CommitParser().parse(records[0]).body == body

    def test_subject_with_unit_separator(self):
        subject = "weird \x1f subject"
        data = raw_record(fake_hash("a"), subject=subject, numstat=("3\t0\tx.py",))
        commit = CommitParser().parse(_collect([data])[0])
        assert commit.subject == subject
        assert commit.files[0].insertions == 3

    def test_large_body_across_chunks(self):
        body = "x" * (10 * 1024 * 1024)
        data = raw_record(fake_hash("big"), body=body, numstat=("1\t0\tbig.txt",))
        data += raw_record(fake_hash("next"))
        third = len(data) // 3 + 1
        records = _collect(_chunks(data, third))
        assert len(records) == 2
        commit = CommitParser().parse(records[0])
        assert len(commit.body) == len(body)

    def test_pending_buffer_drops_completed_records(self):
        reconstructor = RecordReconstructor()
        data = _stream(50)
        for chunk in _chunks(data, 256):
            reconstructor.feed(chunk)
            # Never more than one record plus one chunk pending.
            assert reconstructor.pending_bytes < 256 + 200
