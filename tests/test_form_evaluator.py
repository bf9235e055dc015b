"""Tests for rule-based form scoring."""

import pytest

from src.agents.form_evaluator import evaluate, fallback_assessment, joint_label
from src.agents.knowledge_base import KnowledgeBase, Mistake, _overhead_press
from src.pose import pose_from_angles


# ============================================================================
# Test: scoring
# ============================================================================

class TestEvaluate:

    def test_low_left_elbow(self):
        result = evaluate("overhead-press", pose_from_angles(80, 170))

        # high (20) + low (5) + medium (10)
        assert result.score == 65
        assert result.feedback[0] == "Lift your elbows higher"
        assert result.feedback == [
            "Lift your elbows higher", "Full lockout overhead", "Keep both arms even",
        ]
        assert result.cues == ["Elbows up, under the bar", "Push the ceiling away"]
        assert [m.name for m in result.mistakes] == [
            "Insufficient Elbow Height", "Incomplete Lockout", "Asymmetrical Press",
        ]

    def test_clean_lockout(self):
        result = evaluate("overhead-press", pose_from_angles(175, 175))
        assert result.score == 100
        assert result.feedback == ["Excellent form!"]
        assert result.cues == ["Keep it up!"]
        assert result.mistakes == []

    def test_good_band_message(self):
        # Incomplete lockout (5) + asymmetry (10) = 85, not above the excellent line
        result = evaluate("overhead-press", pose_from_angles(150, 175))
        assert result.score == 85
        assert result.feedback[-1] == "Good technique, minor adjustments needed"
        assert "Excellent form!" not in result.feedback

    def test_boxing_arms_down_is_not_penalized(self):
        result = evaluate("boxing-combo", pose_from_angles(150, 150))
        assert result.score == 100
        assert result.mistakes == []
        assert result.feedback == ["Excellent form!"]

    def test_unknown_exercise_falls_back(self):
        result = evaluate("deadlift", pose_from_angles(175, 175))
        assert result == fallback_assessment()
        assert result.score == 80
        assert result.feedback
        assert result.cues == []

    def test_phase_ranges_deduct_per_joint(self):
        # Setup wants elbows at 90-100; shoulders at 40 are in range
        result = evaluate("overhead-press", pose_from_angles(175, 175), phase="setup")
        assert result.score == 90
        assert result.feedback == [
            "Adjust elbow position", "Adjust elbow position", "Excellent form!",
        ]

    def test_unmatched_phase_is_ignored(self):
        result = evaluate("overhead-press", pose_from_angles(175, 175), phase="completion")
        assert result.score == 100

    def test_unmeasured_joint_skips_phase_check(self):
        pose = pose_from_angles(175, 175)
        pose = pose.model_copy(update={"angles": {**pose.angles, "left_shoulder": 0.0}})
        result = evaluate("overhead-press", pose, phase="setup")
        assert result.feedback.count("Adjust elbow position") == 2
        assert "Adjust shoulder position" not in result.feedback


# ============================================================================
# Test: output bounds
# ============================================================================

class TestBounds:

    @pytest.fixture
    def harsh_kb(self):
        always = [
            Mistake(
                name=f"Mistake {i}",
                detection="always",
                risk_level="high",
                correction=f"Fix {i}",
                cue=f"Cue {i}",
                detect=lambda pose: True,
            )
            for i in range(6)
        ]
        base = _overhead_press()
        return KnowledgeBase([base.model_copy(update={"common_mistakes": always})])

    def test_score_clamped_at_zero(self, harsh_kb):
        result = evaluate("overhead-press", pose_from_angles(175, 175), knowledge_base=harsh_kb)
        assert result.score == 0
        assert len(result.mistakes) == 6

    def test_feedback_and_cues_are_capped(self, harsh_kb):
        result = evaluate("overhead-press", pose_from_angles(175, 175), knowledge_base=harsh_kb)
        assert result.feedback == ["Fix 0", "Fix 1", "Fix 2"]
        assert result.cues == ["Cue 0", "Cue 1"]

    @pytest.mark.parametrize("left, right", [(0, 0), (45, 170), (90, 90), (120, 179), (180, 180)])
    def test_score_always_in_range(self, left, right):
        for exercise_id in ("overhead-press", "tennis-serve", "boxing-combo"):
            for phase in (None, "setup", "press", "jab", "contact"):
                result = evaluate(exercise_id, pose_from_angles(left, right), phase)
                assert 0 <= result.score <= 100
                assert len(result.feedback) <= 3
                assert len(result.cues) <= 2


def test_joint_label():
    assert joint_label("left_elbow") == "elbow"
    assert joint_label("right_shoulder") == "shoulder"
    assert joint_label("knee") == "knee"
