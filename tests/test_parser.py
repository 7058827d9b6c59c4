"""Tests for parsing reconstructed records into commits."""

from datetime import timedelta

import pytest
from conftest import fake_hash, raw_record

from git_vitals.diagnostics import DiagnosticsCollector
from git_vitals.exceptions import RecordParseError
from git_vitals.exceptions.taxonomy import ErrorCode
from git_vitals.ingest.parser import (
    CommitParser,
    parse_co_authors,
    parse_file_change,
    split_rename,
    unquote_path,
)
from git_vitals.models import ChangeType


def _record(**kwargs) -> bytes:
    # Reconstructed records come without the leading separator.
    return raw_record(kwargs.pop("commit_hash", fake_hash(1)), **kwargs)[1:]


class TestCommitParser:
    """Tests for CommitParser.parse."""

    def test_header_fields(self):
        parents = f"{fake_hash(2)} {fake_hash(3)}"
        commit = CommitParser().parse(
            _record(
                parents=parents,
                name="Bob Builder",
                email="Bob@Example.COM",
                date="2024-05-01T09:30:00+02:00",
                subject="Merge pull request #12 from x/y",
            )
        )
        assert commit.hash == fake_hash(1)
        assert commit.parents == (fake_hash(2), fake_hash(3))
        assert commit.is_merge
        assert commit.author_name == "Bob Builder"
        assert commit.author_email == "bob@example.com"
        assert commit.author_email_display == "Bob@Example.COM"
        assert commit.authored_at.utcoffset() == timedelta(hours=2)
        assert commit.subject == "Merge pull request #12 from x/y"

    def test_root_commit_has_no_parents(self):
        commit = CommitParser().parse(_record(parents=""))
        assert commit.parents == ()
        assert commit.is_root

    def test_numstat_lines(self):
        commit = CommitParser().parse(
            _record(numstat=("10\t2\tsrc/a.py", "0\t5\tREADME.md", "-\t-\tlogo.png"))
        )
        assert [f.path for f in commit.files] == ["src/a.py", "README.md", "logo.png"]
        assert commit.insertions == 10
        assert commit.deletions == 7
        binary = commit.files[2]
        assert binary.is_binary
        assert binary.change_type is ChangeType.BINARY
        assert binary.churn == 0

    def test_merge_without_numstat(self):
        commit = CommitParser().parse(_record(parents=f"{fake_hash(2)} {fake_hash(3)}"))
        assert commit.files == ()
        assert commit.churn == 0

    def test_body_preserved(self):
        body = "First paragraph.\n\nSecond paragraph\twith tab."
        commit = CommitParser().parse(_record(body=body))
        assert commit.body == body
        assert commit.message == f"feat: add thing\n\n{body}"

    def test_sha256_hash_accepted(self):
        long_hash = "a" * 64
        commit = CommitParser().parse(_record(commit_hash=long_hash))
        assert commit.hash == long_hash

    def test_co_authors_parsed(self):
        body = "Pairing.\n\nCo-authored-by: Carol <Carol@Example.com>"
        commit = CommitParser().parse(_record(body=body))
        assert commit.is_co_authored
        assert commit.co_authors[0].email == "carol@example.com"

    def test_invalid_hash_rejected(self):
        with pytest.raises(RecordParseError) as exc:
            CommitParser().parse(_record(commit_hash="not-a-hash"))
        assert exc.value.code is ErrorCode.GV301

    def test_bad_date_rejected(self):
        with pytest.raises(RecordParseError) as exc:
            CommitParser().parse(_record(date="yesterday"))
        assert exc.value.code is ErrorCode.GV302
        assert exc.value.commit_hash == fake_hash(1)

    def test_date_without_offset_rejected(self):
        with pytest.raises(RecordParseError) as exc:
            CommitParser().parse(_record(date="2024-05-01T09:30:00"))
        assert exc.value.code is ErrorCode.GV302

    def test_missing_fields_rejected(self):
        with pytest.raises(RecordParseError) as exc:
            CommitParser().parse(b"0123\x1fonly two")
        assert exc.value.code is ErrorCode.GV300
        assert exc.value.reason == "expected 6 header fields, found 2"

    def test_missing_subject_field_reported_by_count(self):
        head = "\x1f".join([fake_hash(1), "", "Alice", "alice@example.com", "2024-03-04T10:00:00Z"])
        with pytest.raises(RecordParseError) as exc:
            CommitParser().parse(("\x1e" + head).encode("utf-8"))
        assert exc.value.reason == "expected 6 header fields, found 5"

    def test_malformed_numstat_line_skipped(self):
        diagnostics = DiagnosticsCollector()
        commit = CommitParser(diagnostics).parse(
            _record(numstat=("1\t1\tgood.py", "garbage line", "2\t0\talso_good.py"))
        )
        assert [f.path for f in commit.files] == ["good.py", "also_good.py"]
        assert [d.code for d in diagnostics] == [ErrorCode.GV303]

    def test_invalid_utf8_replaced(self):
        diagnostics = DiagnosticsCollector()
        record = _record(subject="café").replace("café".encode(), b"caf\xe9")
        commit = CommitParser(diagnostics).parse(record)
        assert commit.subject == "caf�"
        assert diagnostics.entries[0].code is ErrorCode.GV304
        assert diagnostics.entries[0].commit_hash == fake_hash(1)


class TestParseOrWarn:
    """Tests for the non-raising entry point."""

    def test_counts_and_warning(self):
        diagnostics = DiagnosticsCollector()
        parser = CommitParser(diagnostics)
        assert parser.parse_or_warn(_record(), 0) is not None
        assert parser.parse_or_warn(_record(date="bogus"), 1) is None
        assert parser.parsed == 1
        assert parser.rejected == 1
        entry = diagnostics.entries[0]
        assert entry.code is ErrorCode.GV302
        assert entry.record_index == 1


class TestRenames:
    """Tests for numstat rename path syntax."""

    def test_plain_rename(self):
        assert split_rename("old.py => new.py") == ("old.py", "new.py")

    def test_brace_rename(self):
        assert split_rename("src/{old => new}/file.py") == ("src/old/file.py", "src/new/file.py")

    def test_brace_rename_empty_side(self):
        assert split_rename("docs/{ => v2}/guide.md") == ("docs/guide.md", "docs/v2/guide.md")

    def test_not_a_rename(self):
        assert split_rename("plain/path.py") == (None, "plain/path.py")

    def test_rename_change_type(self):
        change = parse_file_change("3", "1", "lib/{a.py => b.py}")
        assert change.change_type is ChangeType.RENAMED
        assert change.old_path == "lib/a.py"
        assert change.path == "lib/b.py"

    def test_binary_rename_stays_rename(self):
        change = parse_file_change("-", "-", "img/{a.png => b.png}")
        assert change.change_type is ChangeType.RENAMED
        assert change.is_binary


class TestHelpers:
    def test_unquote_path(self):
        assert unquote_path('"tab\\there.txt"') == "tab\there.txt"
        assert unquote_path("plain.txt") == "plain.txt"

    def test_unquote_utf8_octal(self):
        assert unquote_path('"caf\\303\\251.txt"') == "café.txt"

    def test_co_authors_deduplicated(self):
        body = (
            "Co-authored-by: Dan <dan@example.com>\n"
            "co-authored-by: Daniel <DAN@example.com>\n"
            "Co-Authored-By: Eve <eve@example.com>"
        )
        identities = parse_co_authors(body)
        assert [i.email for i in identities] == ["dan@example.com", "eve@example.com"]
        assert identities[0].name == "Dan"
