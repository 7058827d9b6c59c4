"""Tests for bus factor and ownership concentration."""

from datetime import timedelta

import pytest
from conftest import BASE_TIME, make_commit

from git_vitals.scoring import ScoringEngine, bus_factor, summarize_ownership


class TestBusFactor:
    """Tests for bus_factor()."""

    def test_no_commits(self):
        assert bus_factor({}) == 0
        assert bus_factor({"a": 0}) == 0

    def test_single_author(self):
        assert bus_factor({"a": 10}) == 1

    def test_even_split_needs_both(self):
        assert bus_factor({"a": 250, "b": 250}) == 2

    def test_dominant_author(self):
        assert bus_factor({"a": 60, "b": 20, "c": 20}) == 1

    def test_many_even_authors(self):
        counts = {f"dev{i}": 10 for i in range(10)}
        assert bus_factor(counts) == 6

    def test_custom_share(self):
        assert bus_factor({"a": 60, "b": 30, "c": 10}, share=0.8) == 2

    def test_adding_an_author_never_lowers_it(self):
        counts = {"a": 40, "b": 30}
        before = bus_factor(counts)
        counts["c"] = 30
        assert bus_factor(counts) >= before

    def test_moving_commits_to_top_author_never_raises_it(self):
        spread = {"a": 30, "b": 30, "c": 30, "d": 10}
        concentrated = {"a": 60, "b": 15, "c": 15, "d": 10}
        assert bus_factor(concentrated) <= bus_factor(spread)


class TestOwnershipSummary:
    def test_empty(self):
        summary = summarize_ownership({})
        assert summary.bus_factor == 0
        assert summary.gini == 0.0
        assert summary.top_contributor is None
        assert summary.top_contributor_share == 0.0
        assert summary.core_contributors == ()

    def test_top_contributor_tie_broken_by_email(self):
        summary = summarize_ownership({"zed@x.io": 5, "amy@x.io": 5})
        assert summary.top_contributor == "amy@x.io"
        assert summary.top_contributor_share == pytest.approx(0.5)
        assert summary.core_contributors == ("amy@x.io", "zed@x.io")

    def test_gini_of_skewed_team(self):
        summary = summarize_ownership({"a": 97, "b": 1, "c": 1, "d": 1})
        assert summary.gini > 0.6
        assert summary.bus_factor == 1


class TestTwoAuthorRepository:
    """500 commits split evenly between two authors on disjoint files."""

    def test_bus_factor_and_overlap(self):
        commits = []
        for i in range(500):
            owner = "alice@example.com" if i % 2 == 0 else "bob@example.com"
            prefix = "frontend" if i % 2 == 0 else "backend"
            commits.append(
                make_commit(
                    i,
                    author=owner,
                    when=BASE_TIME - timedelta(hours=i),
                    files=((f"{prefix}/mod{i % 7}.py", 3, 1),),
                )
            )
        result = ScoringEngine().run(commits)
        assert result.ownership.bus_factor == 2
        assert result.ownership.contributors == 2
        assert result.team.collaboration.file_overlap == 0.0
        assert result.team.consistency.bus_factor == 2
