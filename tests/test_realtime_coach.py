"""Tests for per-tick coaching analysis."""

import pytest

from src.agents.realtime_coach import (
    RealtimeCoach,
    fallback_analysis,
    suggested_improvements,
    urgency_for_score,
)
from src.agents.rep_detector import RepDetector
from src.agents.state import ExerciseContext
from src.pose import pose_from_angles


@pytest.fixture
def coach(clock):
    return RealtimeCoach(rep_detector=RepDetector(clock=clock))


def _messages(analysis, **filters):
    return [
        f.message for f in analysis.feedback
        if all(getattr(f, key) == value for key, value in filters.items())
    ]


class TestRealtimeCoach:

    def test_clean_rep(self, coach):
        context = ExerciseContext(exercise_id="overhead-press", total_reps=4)
        analysis = coach.analyze(pose_from_angles(175, 175), context)

        assert analysis.form_score == 100
        assert analysis.rep_count == 1
        assert analysis.phase == "completion"
        assert _messages(analysis, type="rep_count") == ["Rep 5 complete!"]
        assert _messages(analysis, type="encouragement") == ["Excellent form!"]
        assert analysis.improvements == ["Excellent form!"]

    def test_high_risk_mistake_is_spoken_safety(self, coach):
        context = ExerciseContext(exercise_id="overhead-press")
        analysis = coach.analyze(pose_from_angles(80, 170), context)

        assert analysis.form_score == 65
        assert analysis.rep_count == 0
        safety = [f for f in analysis.feedback if f.type == "safety"]
        assert [f.message for f in safety] == ["Lift your elbows higher"]
        assert safety[0].priority == "high"
        assert safety[0].should_speak is True

        technique = _messages(analysis, type="technique", priority="medium", should_speak=False)
        assert "Full lockout overhead" in technique
        assert "Keep both arms even" in technique

    def test_realtime_cues_follow_score(self, coach):
        # Score 65 -> "important" bank, displayed only
        analysis = coach.analyze(
            pose_from_angles(80, 170), ExerciseContext(exercise_id="overhead-press"),
        )
        assert _messages(analysis, should_speak=False)[-3:] == [
            "Full lockout", "Even pressure", "Straight path",
        ]

    def test_critical_cues_are_spoken(self, coach):
        # Mistakes (20 + 5 + 10) plus three setup ranges missed (3 x 5)
        pose = pose_from_angles(40, 95, left_shoulder=10, right_shoulder=70)
        analysis = coach.analyze(pose, ExerciseContext(exercise_id="overhead-press"))
        assert analysis.phase == "setup"
        assert analysis.form_score == 50
        critical = [f for f in analysis.feedback if f.message == "Elbows higher!"]
        assert critical and critical[0].should_speak and critical[0].priority == "high"

    def test_unknown_exercise_uses_fallback_scoring(self, coach):
        analysis = coach.analyze(pose_from_angles(175, 175), ExerciseContext(exercise_id="deadlift"))
        assert analysis.form_score == 80
        assert analysis.rep_count == 0
        assert analysis.phase == "execution"

    def test_internal_failure_returns_fallback(self, coach, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(coach.rep_detector, "detect_rep", broken)
        analysis = coach.analyze(
            pose_from_angles(175, 175), ExerciseContext(exercise_id="overhead-press"),
        )
        assert analysis.form_score == 80
        assert analysis.improvements == ["Focus on form", "Stay consistent"]


def test_urgency_for_score():
    assert urgency_for_score(95) == "minor"
    assert urgency_for_score(80) == "important"
    assert urgency_for_score(61) == "important"
    assert urgency_for_score(60) == "critical"


def test_fallback_analysis_is_quiet():
    analysis = fallback_analysis()
    assert analysis.rep_count == 0
    assert all(not f.should_speak for f in analysis.feedback)
    assert [(f.type, f.message) for f in analysis.feedback] == [
        ("technique", "Keep up the good work!"),
    ]


def test_suggested_improvements():
    assert suggested_improvements("overhead-press") == [
        "Focus on controlled movement", "Keep core engaged throughout",
    ]
    assert suggested_improvements("deadlift") == []
