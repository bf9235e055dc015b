"""
State definitions for the coaching agents.

This module defines the Pydantic models exchanged between the real-time coach,
the coaching orchestrator and the post-workout LangGraph agent.
"""

from datetime import datetime, timezone
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

from .knowledge_base import Mistake


ExercisePhaseName = Literal["setup", "execution", "completion", "rest"]
FeedbackType = Literal["safety", "technique", "encouragement", "rep_count"]
Priority = Literal["high", "medium", "low"]


# ============================================================================
# Real-time models
# ============================================================================

class FormAssessment(BaseModel):
    """Form evaluator output for a single pose snapshot."""
    model_config = ConfigDict(frozen=True)

    score: float = Field(ge=0.0, le=100.0, description="Form score (0-100)")
    feedback: list[str] = Field(default_factory=list, description="At most 3 corrections")
    mistakes: list[Mistake] = Field(default_factory=list)
    cues: list[str] = Field(default_factory=list, description="At most 2 spoken cues")


class CoachingFeedback(BaseModel):
    """A candidate message for the user, on screen and possibly spoken."""
    type: FeedbackType
    message: str
    priority: Priority
    timestamp: float = Field(description="Creation time in milliseconds")
    should_speak: bool = Field(
        default=False,
        description="Eligible for speech; the orchestrator still applies its cooldown",
    )


class ExerciseContext(BaseModel):
    """What the coach knows about the current workout."""
    exercise_id: str
    current_set: int = 1
    total_reps: int = Field(default=0, description="Reps counted so far in this set")
    user_level: str = "beginner"
    previous_form_scores: list[float] = Field(default_factory=list)


class WorkoutAnalysis(BaseModel):
    """Per-tick result handed to the UI."""
    form_score: float
    rep_count: int = Field(description="Reps counted on this tick (0 or 1)")
    phase: ExercisePhaseName
    feedback: list[CoachingFeedback] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)


# ============================================================================
# Workout session models
# ============================================================================

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExerciseSet(BaseModel):
    """One completed set."""
    set_number: int
    reps: int = 0
    form_scores: list[float] = Field(default_factory=list)
    feedback_notes: list[str] = Field(default_factory=list)

    @property
    def average_score(self) -> float:
        if not self.form_scores:
            return 0.0
        return sum(self.form_scores) / len(self.form_scores)


class WorkoutSession(BaseModel):
    """User-visible workout aggregate, persisted when the workout ends."""
    id: str
    exercise_id: str
    exercise_name: str
    started_at: datetime = Field(default_factory=_utcnow)
    ended_at: Optional[datetime] = None
    duration: float = Field(default=0.0, description="Elapsed recording time in seconds")
    sets: list[ExerciseSet] = Field(default_factory=list)
    total_reps: int = 0
    average_form_score: float = 0.0

    @property
    def set_count(self) -> int:
        return len(self.sets)


# ============================================================================
# Post-workout analysis models (computed by Python, not LLM)
# ============================================================================

class SetTrend(BaseModel):
    """Form statistics for a single set."""
    set_number: int
    reps: int
    average_score: float
    min_score: float
    max_score: float


class SessionAnalysis(BaseModel):
    """Complete trend analysis across all sets."""
    set_trends: list[SetTrend]
    trend: str = Field(description="'improving', 'declining', or 'stable'")
    fatigue_detected: bool = Field(
        description="True if form dropped significantly in the final set"
    )
    consistency_score: float = Field(
        ge=0.0, le=100.0,
        description="How steady form was across the workout (100 = very consistent)"
    )
    best_set: Optional[int] = None
    worst_set: Optional[int] = None
    criteria_description: list[str] = Field(default_factory=list)


# ============================================================================
# State Model (flows through LangGraph)
# ============================================================================

class CoachingState(BaseModel):
    """
    State that flows through the post-workout LangGraph agent.

    This state is passed between nodes and accumulates information
    as the agent processes the finished workout.
    """
    # Input data
    session: WorkoutSession
    user_level: str = "beginner"

    # Exercise-specific context (loaded from the knowledge base)
    exercise_name: str = ""
    safety_notes: list[str] = Field(default_factory=list)
    level_cues: list[str] = Field(default_factory=list)

    # Trend analysis (computed by Python)
    analysis: Optional[SessionAnalysis] = None

    # LLM-generated feedback
    llm_feedback: str = ""

    # Warnings
    warnings: list[str] = Field(default_factory=list)

    # Final output
    final_response: Optional[dict] = None

    # Error tracking
    error: Optional[str] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)
