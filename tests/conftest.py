"""Shared test fixtures for git-vitals tests."""

import hashlib
import os
import shutil
import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from git_vitals.models import ChangeType, Commit, FileChange, Identity

GIT = shutil.which("git")

requires_git = pytest.mark.skipif(GIT is None, reason="git not found")

BASE_TIME = datetime(2024, 3, 4, 10, 0, tzinfo=timezone.utc)  # a Monday


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def fake_hash(seed) -> str:
    """Deterministic 40-hex commit hash."""
    return hashlib.sha1(str(seed).encode("utf-8")).hexdigest()


def raw_record(
    commit_hash: str,
    subject: str = "feat: add thing",
    body: str = "",
    numstat: tuple = (),
    parents: str = "",
    name: str = "Alice",
    email: str = "alice@example.com",
    date: str = "2024-03-04T10:00:00+00:00",
) -> bytes:
    """One record exactly as git log emits it with the fixed format."""
    head = "\x1f".join([commit_hash, parents, name, email, date, subject])
    text = f"\x1e{head}\x1f\n{body}\x1f\n"
    if numstat:
        text += "\n" + "".join(f"{line}\n" for line in numstat)
    return text.encode("utf-8")


def make_commit(
    seed,
    author: str = "alice@example.com",
    name: str = None,
    when: datetime = BASE_TIME,
    subject: str = "feat: add thing",
    body: str = "",
    files=(("src/app.py", 10, 2),),
    parents: int = 1,
    co_authors=(),
) -> Commit:
    """Build a Commit directly, bypassing the parser."""
    changes = []
    for entry in files:
        if isinstance(entry, FileChange):
            changes.append(entry)
        else:
            path, ins, dels = entry
            changes.append(FileChange(path=path, insertions=ins, deletions=dels))
    return Commit(
        hash=fake_hash(seed),
        parents=tuple(fake_hash(f"{seed}-parent-{i}") for i in range(parents)),
        author_name=name or author.split("@")[0].title(),
        author_email=author.lower(),
        author_email_display=author,
        authored_at=when,
        subject=subject,
        body=body,
        files=tuple(changes),
        co_authors=tuple(Identity(n, e) for n, e in co_authors),
    )


def rename(old: str, new: str, ins: int = 0, dels: int = 0) -> FileChange:
    return FileChange(
        path=new, insertions=ins, deletions=dels, change_type=ChangeType.RENAMED, old_path=old
    )


@pytest.fixture
def commit_factory():
    return make_commit


@pytest.fixture
def uniform_distribution():
    """Uniform distribution over 4 authors."""
    return {"a": 25, "b": 25, "c": 25, "d": 25}


@pytest.fixture
def skewed_distribution():
    """Heavily skewed distribution."""
    return {"a": 97, "b": 1, "c": 1, "d": 1}


@pytest.fixture
def single_event_distribution():
    """A single author."""
    return {"a": 100}


@pytest.fixture
def empty_distribution():
    """Empty distribution."""
    return {}


@pytest.fixture
def known_distribution():
    """Distribution with known entropy: fair coin = 1.0 bit."""
    return {"heads": 50, "tails": 50}


class GitRepo:
    """Throwaway repository with deterministic authors and dates."""

    def __init__(self, path: Path):
        self.path = path
        self._tick = 0
        self._git("init", "-q", "-b", "main")
        self._git("config", "user.email", "test@example.com")
        self._git("config", "user.name", "Test")
        self._git("config", "commit.gpgsign", "false")

    def _git(self, *args, env=None):
        return subprocess.run(
            [GIT, "-C", str(self.path), *args],
            check=True,
            capture_output=True,
            text=True,
            env=env,
        )

    def write(self, rel: str, content: str) -> None:
        target = self.path / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")

    def commit(
        self,
        message: str,
        files: dict = None,
        author: str = "Alice <alice@example.com>",
        when: datetime = None,
        allow_empty: bool = False,
    ) -> str:
        for rel, content in (files or {}).items():
            self.write(rel, content)
        self._git("add", "-A")
        if when is None:
            when = BASE_TIME + timedelta(hours=self._tick)
        self._tick += 1
        name, _, email = author.partition(" <")
        env = dict(os.environ)
        env.update(
            {
                "GIT_AUTHOR_NAME": name,
                "GIT_AUTHOR_EMAIL": email.rstrip(">"),
                "GIT_AUTHOR_DATE": when.isoformat(),
                "GIT_COMMITTER_NAME": name,
                "GIT_COMMITTER_EMAIL": email.rstrip(">"),
                "GIT_COMMITTER_DATE": when.isoformat(),
            }
        )
        args = ["commit", "-q", "-m", message]
        if allow_empty:
            args.append("--allow-empty")
        self._git(*args, env=env)
        return self._git("rev-parse", "HEAD").stdout.strip()

    def mv(self, old: str, new: str) -> None:
        self._git("mv", old, new)


@pytest.fixture
def git_repo(tmp_path):
    """Empty git repository; skipped when git is not installed."""
    if GIT is None:
        pytest.skip("git not found")
    repo_dir = tmp_path / "repo"
    repo_dir.mkdir()
    return GitRepo(repo_dir)
