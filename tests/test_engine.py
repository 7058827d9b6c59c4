"""Tests for the scoring engine lifecycle and headline scores."""

from datetime import timedelta

import pytest
from conftest import BASE_TIME, make_commit

from git_vitals.config import AnalysisOptions
from git_vitals.exceptions import EngineStateError, InvalidConfigError
from git_vitals.scoring import EngineState, ScoringEngine, health_rating, health_score


class TestLifecycle:
    """IDLE -> AGGREGATING -> SCORING -> COMPLETE, nothing else."""

    def test_happy_path(self):
        engine = ScoringEngine()
        assert engine.state is EngineState.IDLE
        engine.begin()
        assert engine.state is EngineState.AGGREGATING
        assert engine.fold(make_commit(1))
        result = engine.score()
        assert engine.state is EngineState.COMPLETE
        assert engine.result is result
        assert engine.folded == 1

    def test_fold_before_begin(self):
        with pytest.raises(EngineStateError):
            ScoringEngine().fold(make_commit(1))

    def test_score_before_begin(self):
        with pytest.raises(EngineStateError):
            ScoringEngine().score()

    def test_begin_twice(self):
        engine = ScoringEngine()
        engine.begin()
        with pytest.raises(EngineStateError) as exc:
            engine.begin()
        assert exc.value.current == "aggregating"

    def test_fold_after_score(self):
        engine = ScoringEngine()
        engine.begin()
        engine.score()
        with pytest.raises(EngineStateError):
            engine.fold(make_commit(1))

    def test_score_twice(self):
        engine = ScoringEngine()
        engine.run([])
        with pytest.raises(EngineStateError):
            engine.score()


class TestEmptyHistory:
    """Zero commits give neutral values, never errors."""

    def test_neutral_result(self):
        result = ScoringEngine().run([])
        assert result.health_score == 0.0
        assert result.health_rating == "poor"
        assert result.ownership.bus_factor == 0
        assert result.governance.score == 0.0
        assert result.team.overall == 0.0
        assert result.files == []
        assert result.authors == []
        assert result.trends.active_days == 0
        assert result.reference_time is None
        assert result.insights == []
        assert result.coupled_pairs == []


class TestScores:
    def test_health_score(self):
        commits = [make_commit(1), make_commit(2, when=BASE_TIME + timedelta(hours=1))]
        result = ScoringEngine().run(commits)
        # frequency 1.0, diversity 1.0, size 1 - 12/1000
        assert result.health_score == pytest.approx((2 + 0.988) / 3)
        assert result.health_rating == "excellent"

    def test_health_score_empty_snapshot(self):
        assert health_score(ScoringEngine().run([]).snapshot) == 0.0

    @pytest.mark.parametrize(
        "score,rating", [(0.95, "excellent"), (0.8, "excellent"), (0.6, "good"), (0.4, "fair"), (0.1, "poor")]
    )
    def test_health_rating(self, score, rating):
        assert health_rating(score) == rating

    def test_single_author_insights(self):
        result = ScoringEngine().run([make_commit(i, subject="misc") for i in range(3)])
        assert "Low bus factor - knowledge is concentrated in few developers" in result.insights
        assert "Single developer dominates the codebase" in result.insights
        assert "Commit message quality needs improvement" in result.insights
        assert "Adopt conventional commit message format" in result.action_items

    def test_heavy_mode_reports_pairs(self):
        commits = [make_commit(i, files=(("a.py", 1, 0), ("b.py", 1, 0))) for i in range(3)]
        result = ScoringEngine(AnalysisOptions(heavy=True)).run(commits)
        [pair] = result.coupled_pairs
        assert (pair.file_a, pair.file_b, pair.support) == ("a.py", "b.py", 3)


class TestReferenceTime:
    def test_defaults_to_newest_commit(self):
        newest = BASE_TIME + timedelta(days=2)
        result = ScoringEngine().run([make_commit(1, when=newest), make_commit(2)])
        assert result.reference_time == newest

    def test_explicit_reference_time(self):
        options = AnalysisOptions(reference_time="2024-04-03T10:00:00+00:00")
        result = ScoringEngine(options).run([make_commit(1)])
        [assessment] = result.files
        assert assessment.days_since_change == pytest.approx(30.0)
        assert assessment.recency == pytest.approx(0.5)

    def test_naive_reference_time_is_utc(self):
        options = AnalysisOptions(reference_time="2024-03-05T10:00:00")
        result = ScoringEngine(options).run([make_commit(1)])
        assert result.files[0].days_since_change == pytest.approx(1.0)

    def test_invalid_reference_time(self):
        engine = ScoringEngine(AnalysisOptions(reference_time="last tuesday"))
        engine.begin()
        with pytest.raises(InvalidConfigError):
            engine.score()
