"""
Real-time coaching for a single detection tick.

Runs phase classification, form evaluation and rep detection over one pose
snapshot and turns the result into candidate coaching messages. Whether a
message is actually spoken is left to the CoachingOrchestrator.
"""

import logging
import time
from typing import Optional

from src.pose import PoseSnapshot

from .config import FALLBACK_SCORE
from .form_evaluator import evaluate
from .knowledge_base import KnowledgeBase, get_knowledge_base
from .rep_detector import RepDetector, classify_phase
from .state import CoachingFeedback, ExerciseContext, WorkoutAnalysis

logger = logging.getLogger(__name__)


IMPROVEMENTS: dict[str, list[str]] = {
    "overhead-press": [
        "Focus on controlled movement",
        "Keep core engaged throughout",
        "Breathe out on the press up",
    ],
    "tennis-serve": [
        "Work on consistent ball toss",
        "Increase shoulder rotation",
    ],
    "boxing-combo": [
        "Snap punches back quickly",
        "Keep feet planted",
    ],
}


def _now_ms() -> float:
    return time.time() * 1000.0


def urgency_for_score(score: float) -> str:
    if score > 80:
        return "minor"
    if score > 60:
        return "important"
    return "critical"


def fallback_analysis() -> WorkoutAnalysis:
    return WorkoutAnalysis(
        form_score=FALLBACK_SCORE,
        rep_count=0,
        phase="execution",
        feedback=[
            CoachingFeedback(
                type="technique",
                message="Keep up the good work!",
                priority="low",
                timestamp=_now_ms(),
                should_speak=False,
            )
        ],
        improvements=["Focus on form", "Stay consistent"],
    )


class RealtimeCoach:
    """Per-session rule-based coach.

    Owns the session's RepDetector so the rep debounce is scoped to one
    workout.
    """

    def __init__(
        self,
        knowledge_base: Optional[KnowledgeBase] = None,
        rep_detector: Optional[RepDetector] = None,
    ):
        self.knowledge_base = knowledge_base or get_knowledge_base()
        self.rep_detector = rep_detector or RepDetector()

    def analyze(self, snapshot: PoseSnapshot, context: ExerciseContext) -> WorkoutAnalysis:
        try:
            return self._analyze_with_rules(snapshot, context)
        except Exception:
            logger.exception("Real-time analysis failed for '%s'", context.exercise_id)
            return fallback_analysis()

    def _analyze_with_rules(self, snapshot: PoseSnapshot, context: ExerciseContext) -> WorkoutAnalysis:
        exercise_id = context.exercise_id
        phase = classify_phase(snapshot, exercise_id)
        assessment = evaluate(exercise_id, snapshot, phase, knowledge_base=self.knowledge_base)
        rep_count = self.rep_detector.detect_rep(snapshot, exercise_id)
        now = _now_ms()

        feedback: list[CoachingFeedback] = []

        for mistake in assessment.mistakes:
            high_risk = mistake.risk_level == "high"
            feedback.append(CoachingFeedback(
                type="safety" if high_risk else "technique",
                message=mistake.correction,
                priority="high" if high_risk else "medium",
                timestamp=now,
                should_speak=high_risk,
            ))

        if assessment.score > 85:
            feedback.append(CoachingFeedback(
                type="encouragement",
                message="Excellent form!",
                priority="low",
                timestamp=now,
            ))

        if rep_count > 0:
            feedback.append(CoachingFeedback(
                type="rep_count",
                message=f"Rep {context.total_reps + rep_count} complete!",
                priority="medium",
                timestamp=now,
                should_speak=True,
            ))

        for cue in assessment.cues:
            feedback.append(CoachingFeedback(
                type="technique",
                message=cue,
                priority="medium",
                timestamp=now,
                should_speak=True,
            ))

        urgency = urgency_for_score(assessment.score)
        for cue in self.knowledge_base.realtime_cues(exercise_id, urgency):
            feedback.append(CoachingFeedback(
                type="technique",
                message=cue,
                priority="medium" if assessment.score > 60 else "high",
                timestamp=now,
                should_speak=assessment.score < 60,
            ))

        return WorkoutAnalysis(
            form_score=assessment.score,
            rep_count=rep_count,
            phase=phase,
            feedback=feedback,
            improvements=assessment.feedback,
        )


def suggested_improvements(exercise_id: str, limit: int = 2) -> list[str]:
    """General improvement tips shown on the summary screen."""
    return IMPROVEMENTS.get(exercise_id, [])[:limit]
