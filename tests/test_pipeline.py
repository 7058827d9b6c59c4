"""End-to-end runs against real git repositories."""

import pytest
from conftest import requires_git

from git_vitals import analyze
from git_vitals.config import AnalysisOptions
from git_vitals.exceptions import SourceUnavailableError
from git_vitals.pipeline import AnalysisPipeline
from git_vitals.runtime import RunContext

pytestmark = requires_git


def _run(repo, **options):
    return AnalysisPipeline(AnalysisOptions(repo_path=str(repo.path), **options)).run()


class TestBasicHistory:
    def test_counts(self, git_repo):
        git_repo.commit("feat: add app", {"src/app.py": "a\nb\nc\n"})
        git_repo.commit("fix: off by one (#2)", {"src/app.py": "a\nB\nc\n"}, author="Bob <bob@example.com>")
        head = git_repo.commit("docs: usage notes", {"README.md": "hello\n"})
        report = _run(git_repo)
        repo = report.repository
        assert report.total_commits == 3
        assert repo["total_authors"] == 2
        assert repo["total_files"] == 2
        assert repo["insertions"] == 5
        assert repo["deletions"] == 1
        assert repo["head"] == head
        assert repo["branch"] == "main"
        assert repo["root_commits"] == 1
        assert not report.partial
        assert report.is_clean

    def test_empty_repository(self, git_repo):
        report = _run(git_repo)
        assert report.total_commits == 0
        assert report.repository["head"] is None
        assert report.repository["bus_factor"] == 0
        assert not report.partial

    def test_max_count_and_paths(self, git_repo):
        git_repo.commit("feat: one", {"a/x.py": "1\n"})
        git_repo.commit("feat: two", {"b/y.py": "2\n"})
        git_repo.commit("feat: three", {"a/x.py": "3\n"})
        assert _run(git_repo, max_count=2).total_commits == 2
        report = _run(git_repo, paths=["a"])
        assert report.total_commits == 2
        assert [f["path"] for f in report.files] == ["a/x.py"]

    def test_author_filter(self, git_repo):
        git_repo.commit("feat: one", {"x.py": "1\n"})
        git_repo.commit("feat: two", {"x.py": "2\n"}, author="Bob <bob@example.com>")
        report = _run(git_repo, author="bob@")
        assert [a["email"] for a in report.authors] == ["bob@example.com"]


class TestContent:
    def test_rename_carries_history(self, git_repo):
        git_repo.commit("feat: add old", {"pkg/old_name.py": "".join(f"line {i}\n" for i in range(20))})
        git_repo.mv("pkg/old_name.py", "pkg/new_name.py")
        git_repo.commit("refactor: rename module")
        git_repo.commit("fix: tweak", {"pkg/new_name.py": "".join(f"line {i}\n" for i in range(21))})
        report = _run(git_repo)
        [entry] = report.files
        assert entry["path"] == "pkg/new_name.py"
        assert entry["commits"] == 3
        assert entry["previous_paths"] == ["pkg/old_name.py"]
        assert report.repository["renames"] == 1

    def test_co_authored_commit(self, git_repo):
        git_repo.commit(
            "feat: pair on parser\n\nCo-authored-by: Bob <bob@example.com>", {"p.py": "x\n"}
        )
        report = _run(git_repo)
        assert report.repository["co_authored"] == 1
        [alice] = report.authors
        assert alice["collaboration"]["co_authors"][0]["email"] == "bob@example.com"

    def test_merge_commit(self, git_repo):
        git_repo.commit("feat: base", {"a.py": "1\n"})
        git_repo._git("checkout", "-q", "-b", "topic")
        git_repo.commit("feat: topic work", {"t.py": "x\n"})
        git_repo._git("checkout", "-q", "main")
        git_repo.commit("fix: main work", {"m.py": "y\n"})
        git_repo._git("merge", "--no-ff", "-q", "-m", "Merge branch 'topic' into main", "topic")
        report = _run(git_repo)
        assert report.total_commits == 4
        assert report.repository["merges"] == 1
        assert _run(git_repo, include_merges=False).total_commits == 3

    def test_unusual_paths_and_messages(self, git_repo):
        git_repo.commit(
            "feat: add café docs\n\nBody with a \x1f unit separator and tab\t.",
            {"docs/café menu.md": "x\n"},
        )
        (git_repo.path / "logo.bin").write_bytes(b"\x00\x01\x02binary")
        git_repo.commit("chore: add logo")
        report = _run(git_repo)
        paths = {f["path"]: f for f in report.files}
        assert "docs/café menu.md" in paths
        assert paths["logo.bin"]["binary"] is True
        assert report.total_commits == 2

    def test_keep_commits(self, git_repo):
        first = git_repo.commit("feat: one", {"x.py": "1\n"})
        second = git_repo.commit("feat: two", {"x.py": "2\n"})
        report = _run(git_repo, keep_commits=True)
        assert [c["hash"] for c in report.commits] == [second, first]
        assert report.commits[0]["parents"] == [first]


class TestFailures:
    def test_not_a_repository(self, tmp_path):
        plain = tmp_path / "plain"
        plain.mkdir()
        with pytest.raises(SourceUnavailableError, match="not a git repository"):
            _run_path(plain)

    def test_missing_path(self, tmp_path):
        with pytest.raises(SourceUnavailableError, match="does not exist"):
            _run_path(tmp_path / "missing")

    def test_unknown_branch_is_fatal(self, git_repo):
        git_repo.commit("feat: one", {"x.py": "1\n"})
        with pytest.raises(SourceUnavailableError):
            _run(git_repo, branches=["no-such-branch"])

    def test_canceled_before_start(self, git_repo):
        git_repo.commit("feat: one", {"x.py": "1\n"})
        context = RunContext()
        context.cancel_token.cancel("user asked")
        options = AnalysisOptions(repo_path=str(git_repo.path))
        report = AnalysisPipeline(options, context).run()
        assert report.canceled
        assert report.partial


class TestPublicApi:
    def test_analyze(self, git_repo, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        git_repo.commit("feat: one", {"x.py": "1\n"})
        git_repo.commit("feat: two", {"y.py": "2\n"}, author="Bob <bob@example.com>")
        report = analyze(str(git_repo.path), heavy=True)
        assert report.total_commits == 2
        assert report.metadata["options"]["heavy"] is True
        assert report.repository["bus_factor"] == 2

    def test_deterministic_json(self, git_repo, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        for i in range(5):
            git_repo.commit(f"feat: step {i}", {f"f{i % 2}.py": f"{i}\n"})
        first = analyze(str(git_repo.path)).to_json(include_runtime=False)
        second = analyze(str(git_repo.path)).to_json(include_runtime=False)
        assert first == second


def _run_path(path):
    return AnalysisPipeline(AnalysisOptions(repo_path=str(path))).run()
