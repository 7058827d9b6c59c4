"""Tests for the child-process log source and how runs end early."""

import sys
import threading

import pytest
from conftest import fake_hash, raw_record

from git_vitals.config import AnalysisOptions
from git_vitals.exceptions import SourceTimeoutError, SourceUnavailableError
from git_vitals.exceptions.taxonomy import ErrorCode
from git_vitals.ingest.source import ProcessLogSource
from git_vitals.pipeline import AnalysisPipeline
from git_vitals.runtime import RunContext

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX signals")

# Writes the file named in argv[1] to stdout, then misbehaves per argv[2].
EMITTER = r"""
import os, signal, sys, time
data = open(sys.argv[1], "rb").read()
out = sys.stdout.buffer
out.write(data)
out.flush()
mode = sys.argv[2]
if mode == "kill":
    os.kill(os.getpid(), signal.SIGKILL)
elif mode == "sleep":
    time.sleep(30)
elif mode == "fail":
    sys.stderr.write("fatal: bad revision 'nope'\n")
    sys.exit(128)
"""


def _records(n: int, start: int = 0) -> bytes:
    return b"".join(
        raw_record(
            fake_hash(i),
            subject=f"fix: bug {i}",
            date=f"2024-03-{1 + i % 28:02d}T12:00:00+00:00",
            numstat=(f"{i + 1}\t1\tsrc/mod{i % 5}.py",),
        )
        for i in range(start, start + n)
    )


def _pipeline(tmp_path, data: bytes, mode: str, timeout: float = 60.0, context=None, **options):
    payload = tmp_path / "payload.bin"
    payload.write_bytes(data)
    context = context or RunContext()
    source = ProcessLogSource(
        [sys.executable, "-c", EMITTER, str(payload), mode],
        timeout_seconds=timeout,
        chunk_size=97,
        context=context,
    )
    opts = AnalysisOptions(repo_path=str(tmp_path), timeout_seconds=timeout, **options)
    return AnalysisPipeline(opts, context, source=source)


def _codes(report):
    return [w["code"] for w in report.warnings]


class TestProcessLogSource:
    """Tests for raw chunk streaming."""

    def test_streams_all_bytes(self, tmp_path):
        data = _records(3)
        pipeline = _pipeline(tmp_path, data, "ok")
        assert b"".join(pipeline.source) == data
        status = pipeline.source.status
        assert status.completed
        assert status.bytes_read == len(data)
        assert status.chunks_read >= len(data) // 97

    def test_missing_executable(self, tmp_path):
        source = ProcessLogSource([str(tmp_path / "no-such-binary")], cwd=str(tmp_path))
        with pytest.raises(SourceUnavailableError):
            list(source)

    def test_consumer_stopping_early_kills_child(self, tmp_path):
        pipeline = _pipeline(tmp_path, _records(50), "sleep")
        stream = iter(pipeline.source)
        next(stream)
        stream.close()
        status = pipeline.source.status
        assert status.stopped_early
        assert not status.completed
        assert not status.failed


class TestEarlyTermination:
    """A killed or failing git process still yields a partial report."""

    @posix_only
    def test_killed_mid_record_keeps_complete_records(self, tmp_path):
        partial = b"\x1e" + b"f" * 40 + b"\x1fpartial-recor"
        report = _pipeline(tmp_path, _records(37) + partial, "kill").run()
        assert report.total_commits == 37
        assert report.partial
        assert not report.canceled
        assert ErrorCode.GV105.value in _codes(report)
        assert ErrorCode.GV102.value in _codes(report)

    @posix_only
    def test_killed_between_numstat_lines_drops_last_record(self, tmp_path):
        whole = raw_record(fake_hash("last"), numstat=("5\t5\tg.py", "7\t1\th.py"))
        cut = whole[: whole.index(b"h.py") - len(b"7\t1\t")]
        assert cut.endswith(b"g.py\n")
        report = _pipeline(tmp_path, _records(37) + cut, "kill").run()
        assert report.total_commits == 37
        assert report.repository["churn"] == sum(i + 2 for i in range(37))
        assert "g.py" not in [f["path"] for f in report.files]
        assert ErrorCode.GV105.value in _codes(report)

    def test_nonzero_exit_after_output(self, tmp_path):
        report = _pipeline(tmp_path, _records(4), "fail").run()
        # The last record cannot be shown to be whole.
        assert report.total_commits == 3
        assert ErrorCode.GV105.value in _codes(report)
        assert report.partial
        warning = next(w for w in report.warnings if w["code"] == ErrorCode.GV102.value)
        assert "128" in warning["message"]
        assert "bad revision" in warning["message"]

    def test_nonzero_exit_without_commits_is_fatal(self, tmp_path):
        with pytest.raises(SourceUnavailableError, match="bad revision"):
            _pipeline(tmp_path, b"", "fail").run()

    def test_timeout_returns_partial_report(self, tmp_path):
        report = _pipeline(tmp_path, _records(5), "sleep", timeout=1.0).run()
        assert report.total_commits == 4
        assert report.partial
        assert report.timed_out
        assert ErrorCode.GV103.value in _codes(report)
        assert ErrorCode.GV105.value in _codes(report)

    def test_timeout_without_commits_is_fatal(self, tmp_path):
        with pytest.raises(SourceTimeoutError):
            _pipeline(tmp_path, b"", "sleep", timeout=1.0).run()

    def test_cancel_mid_stream(self, tmp_path):
        context = RunContext()
        pipeline = _pipeline(tmp_path, _records(10), "sleep", context=context)
        timer = threading.Timer(1.0, context.cancel_token.cancel, args=("stop requested",))
        timer.start()
        try:
            report = pipeline.run()
        finally:
            timer.cancel()
        assert report.canceled
        assert report.partial
        assert report.total_commits == 9
        warning = next(w for w in report.warnings if w["code"] == ErrorCode.GV104.value)
        assert "stop requested" in warning["message"]

    def test_cancel_before_start(self, tmp_path):
        context = RunContext()
        context.cancel_token.cancel()
        report = _pipeline(tmp_path, _records(10), "sleep", context=context).run()
        assert report.canceled
        assert report.total_commits == 0

    def test_parse_error_limit_stops_reading(self, tmp_path):
        bad = b"".join(raw_record(fake_hash(f"bad{i}"), date="not-a-date") for i in range(5))
        report = _pipeline(tmp_path, _records(3) + bad + _records(3, 100), "ok", max_parse_errors=2).run()
        assert report.partial
        assert report.total_commits == 3
        assert _codes(report).count(ErrorCode.GV302.value) == 3
        assert _codes(report)[-1] == ErrorCode.GV305.value

    def test_clean_run_is_not_partial(self, tmp_path):
        report = _pipeline(tmp_path, _records(6), "ok").run()
        assert report.total_commits == 6
        assert not report.partial
        assert report.is_clean
