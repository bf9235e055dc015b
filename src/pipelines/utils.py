"""
Shared utilities for the FastAPI backend pipeline.

- Fallback summary generator (when Gemini LLM is unavailable)
"""

import logging

from src.agents import WorkoutSession

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Fallback feedback (no LLM)
# ---------------------------------------------------------------------------

def generate_fallback_feedback(session: WorkoutSession) -> list[str]:
    """Produce rule-based summary lines when the Gemini LLM is unavailable.

    Args:
        session: The finished workout.

    Returns:
        List of human-readable feedback strings.
    """
    tips: list[str] = []
    overall_score = session.average_form_score

    # Overall summary
    if overall_score >= 85:
        tips.append(
            f"Excellent form! Your average score was {overall_score:.0f}/100. Keep it up!"
        )
    elif overall_score >= 75:
        tips.append(
            f"Good form overall ({overall_score:.0f}/100). A few areas to refine."
        )
    elif overall_score >= 60:
        tips.append(
            f"Your average score was {overall_score:.0f}/100, so there's room for improvement."
        )
    else:
        tips.append(
            f"Your form needs attention (average {overall_score:.0f}/100). "
            "Consider reviewing proper technique or lowering the weight."
        )

    tips.append(
        f"You completed {session.total_reps} reps across {session.set_count} "
        f"set{'s' if session.set_count != 1 else ''}."
    )

    # Most frequent correction across sets
    note_counts: dict[str, int] = {}
    for exercise_set in session.sets:
        for note in exercise_set.feedback_notes:
            if note in ("Excellent form!", "Good technique, minor adjustments needed"):
                continue
            note_counts[note] = note_counts.get(note, 0) + 1
    if note_counts:
        top_note = max(note_counts.items(), key=lambda x: x[1])[0]
        tips.append(f"Focus on improving: {top_note}.")

    # Fatigue: first vs last scored set
    scored = [s for s in session.sets if s.form_scores]
    if len(scored) >= 2:
        early_avg = scored[0].average_score
        late_avg = scored[-1].average_score
        if early_avg - late_avg > 10:
            tips.append(
                f"Fatigue detected: your form dropped from {early_avg:.0f} "
                f"(set {scored[0].set_number}) to {late_avg:.0f} (set {scored[-1].set_number}). "
                "Consider reducing weight or taking longer rest."
            )

    return tips
