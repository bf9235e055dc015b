"""
Rule-based form scoring.

Combines the current pose angles with the exercise's knowledge base entry into
a 0-100 score, a list of corrections and a list of spoken cues.
"""

import logging
from typing import Optional

from src.pose import PoseSnapshot

from .config import (
    FALLBACK_SCORE,
    MAX_CUES,
    MAX_FEEDBACK_ITEMS,
    MAX_SCORE,
    PHASE_RANGE_DEDUCTION,
    RISK_DEDUCTIONS,
    SCORE_THRESHOLDS,
)
from .knowledge_base import KnowledgeBase, Mistake, get_knowledge_base
from .state import FormAssessment

logger = logging.getLogger(__name__)


def fallback_assessment() -> FormAssessment:
    """Assessment returned when the exercise is not in the knowledge base."""
    return FormAssessment(
        score=FALLBACK_SCORE,
        feedback=["Exercise knowledge not available"],
        mistakes=[],
        cues=[],
    )


def joint_label(joint: str) -> str:
    """'left_elbow' -> 'elbow'."""
    for prefix in ("left_", "right_"):
        if joint.startswith(prefix):
            joint = joint[len(prefix):]
    return joint.replace("_", " ")


def evaluate(
    exercise_id: str,
    snapshot: PoseSnapshot,
    phase: Optional[str] = None,
    knowledge_base: Optional[KnowledgeBase] = None,
) -> FormAssessment:
    """Score one pose against the exercise's knowledge base entry.

    Args:
        exercise_id: Catalog id, e.g. ``"overhead-press"``.
        snapshot: Current pose with derived joint angles.
        phase: Optional phase name; matched against the exercise's phases.
        knowledge_base: Defaults to the process-wide instance.

    Returns:
        FormAssessment with score clamped to [0, 100], at most 3 feedback
        entries and at most 2 cues.
    """
    kb = knowledge_base or get_knowledge_base()
    knowledge = kb.get(exercise_id)
    if knowledge is None:
        logger.debug("No knowledge for exercise '%s', using fallback assessment", exercise_id)
        return fallback_assessment()

    score = float(MAX_SCORE)
    feedback: list[str] = []
    cues: list[str] = []
    detected: list[Mistake] = []

    # Common mistakes
    for mistake in knowledge.common_mistakes:
        if mistake.matches(snapshot):
            detected.append(mistake)
            feedback.append(mistake.correction)
            cues.append(mistake.cue)
            score -= RISK_DEDUCTIONS[mistake.risk_level]

    # Phase-specific ranges
    if phase:
        phase_knowledge = kb.find_phase(exercise_id, phase)
        if phase_knowledge is not None:
            for joint, ideal in phase_knowledge.ideal_ranges.items():
                current = snapshot.angle(joint)
                # 0.0 means the joint could not be measured
                if current and not ideal.contains(current):
                    score -= PHASE_RANGE_DEDUCTION
                    feedback.append(f"Adjust {joint_label(joint)} position")

    if score > SCORE_THRESHOLDS["excellent"]:
        feedback.append("Excellent form!")
        cues.append("Keep it up!")
    elif score > SCORE_THRESHOLDS["good"]:
        feedback.append("Good technique, minor adjustments needed")

    return FormAssessment(
        score=max(0.0, min(float(MAX_SCORE), score)),
        feedback=feedback[:MAX_FEEDBACK_ITEMS],
        mistakes=detected,
        cues=cues[:MAX_CUES],
    )
