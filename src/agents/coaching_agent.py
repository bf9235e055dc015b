"""
Post-workout Coaching Agent - LangGraph Implementation.

This agent uses LangGraph to create a stateful workflow that:
1. Loads exercise knowledge (name, safety notes, level cues)
2. Analyzes per-set form scores and detects trends
3. Generates a personalized summary using Gemini LLM
4. Formats the final response

The real-time, per-frame coaching lives in realtime_coach.py; this agent
only runs once, when a workout ends.
"""

import statistics
from langgraph.graph import StateGraph, START, END
from langchain_google_genai import ChatGoogleGenerativeAI
from pydantic import BaseModel, Field

from .state import (
    CoachingState,
    SessionAnalysis,
    SetTrend,
    WorkoutSession,
)
from .prompts import (
    SUMMARY_PROMPT,
    format_bullets,
    format_per_set_breakdown,
    format_trend_analysis,
)
from .knowledge_base import get_knowledge_base
from .realtime_coach import suggested_improvements
from . import config


# ============================================================================
# Pydantic Models for Structured Output
# ============================================================================

class WorkoutSummaryResponse(BaseModel):
    """Structured post-workout summary sent to the app."""
    session_id: str
    exercise_id: str
    exercise_name: str = Field(description="Display name of the exercise")
    set_count: int
    total_reps: int
    duration: float = Field(description="Recording time in seconds")
    average_form_score: float

    # Per-set data
    set_scores: list[float] = Field(description="Average form score for each set")

    # Trend analysis
    trend: str = Field(description="'improving', 'declining' or 'stable'")
    consistency_score: float = Field(description="How consistent form was (0-100)")
    fatigue_detected: bool
    criteria_description: list[str] = Field(
        description="Description of the score band the average falls into"
    )
    improvements: list[str]

    # Feedback
    feedback_summary: str = Field(description="LLM-generated coaching feedback; empty if unavailable")
    warnings: list[str]


# ============================================================================
# Graph Nodes
# ============================================================================

def load_knowledge_node(state: CoachingState) -> dict:
    """
    Node 1: Load exercise knowledge for the session's exercise.
    """
    kb = get_knowledge_base()
    session = state.session
    knowledge = kb.get(session.exercise_id)
    if knowledge is None:
        return {
            "exercise_name": session.exercise_name,
            "warnings": state.warnings + [
                f"No coaching knowledge for '{session.exercise_id}'. Summary is generic."
            ],
        }

    return {
        "exercise_name": knowledge.name,
        "safety_notes": knowledge.safety_considerations,
        "level_cues": kb.cues_for_level(session.exercise_id, state.user_level),
    }


def analyze_session_node(state: CoachingState) -> dict:
    """
    Node 2: Per-set statistics, trend, fatigue and consistency (no LLM).
    """
    session = state.session
    warnings = list(state.warnings)

    scored_sets = [s for s in session.sets if s.form_scores]
    set_trends = [
        SetTrend(
            set_number=s.set_number,
            reps=s.reps,
            average_score=s.average_score,
            min_score=min(s.form_scores),
            max_score=max(s.form_scores),
        )
        for s in scored_sets
    ]

    if session.total_reps == 0:
        warnings.append("No repetitions were counted during this workout.")
    if scored_sets and session.average_form_score < config.SCORE_THRESHOLDS["needs_improvement"]:
        warnings.append(
            "Average form score is below 60. "
            "Consider reviewing proper technique or lowering the weight."
        )

    if not set_trends:
        return {"analysis": None, "warnings": warnings}

    first, last = set_trends[0].average_score, set_trends[-1].average_score
    diff = last - first
    if diff > 5:
        trend = "improving"
    elif diff < -5:
        trend = "declining"
    else:
        trend = "stable"

    fatigue_detected = len(set_trends) >= 2 and diff < -10

    all_scores = [score for s in scored_sets for score in s.form_scores]
    spread = statistics.pstdev(all_scores) if len(all_scores) > 1 else 0.0
    # Lower spread = higher consistency
    consistency_score = max(0.0, min(100.0, 100.0 - spread * 3))

    ranked = sorted(set_trends, key=lambda t: t.average_score, reverse=True)

    analysis = SessionAnalysis(
        set_trends=set_trends,
        trend=trend,
        fatigue_detected=fatigue_detected,
        consistency_score=consistency_score,
        best_set=ranked[0].set_number,
        worst_set=ranked[-1].set_number,
        criteria_description=get_knowledge_base().criteria_description(
            session.exercise_id, session.average_form_score
        ),
    )
    return {"analysis": analysis, "warnings": warnings}


def generate_llm_feedback_node(state: CoachingState) -> dict:
    """
    Node 3: Generate LLM-based coaching summary using Gemini.

    Leaves ``llm_feedback`` empty when the LLM is unavailable so callers can
    fall back to rule-based feedback.
    """
    if not config.GEMINI_API_KEY or not config.DEFAULT_USE_LLM:
        return {"llm_feedback": ""}

    try:
        llm = ChatGoogleGenerativeAI(
            model=config.GEMINI_MODEL_NAME,
            google_api_key=config.GEMINI_API_KEY,
            temperature=0.7,
        )

        session = state.session
        analysis = state.analysis

        chain = SUMMARY_PROMPT | llm
        response = chain.invoke({
            "exercise_name": state.exercise_name or session.exercise_name,
            "user_level": state.user_level,
            "set_count": session.set_count,
            "total_reps": session.total_reps,
            "duration_minutes": session.duration / 60.0,
            "safety_notes": format_bullets(state.safety_notes),
            "per_set_breakdown": format_per_set_breakdown(analysis.set_trends if analysis else []),
            "average_score": session.average_form_score,
            "consistency_score": analysis.consistency_score if analysis else 0,
            "criteria_description": ", ".join(analysis.criteria_description) if analysis else "N/A",
            "trend_analysis": format_trend_analysis(analysis),
            "max_words": config.MAX_FEEDBACK_WORDS,
        })

        return {"llm_feedback": response.content}

    except Exception as e:
        return {
            "llm_feedback": "",
            "error": f"Error generating feedback: {str(e)}",
        }


def format_response_node(state: CoachingState) -> dict:
    """
    Node 4: Format the final response combining all components.
    """
    session = state.session
    analysis = state.analysis

    response = WorkoutSummaryResponse(
        session_id=session.id,
        exercise_id=session.exercise_id,
        exercise_name=state.exercise_name or session.exercise_name,
        set_count=session.set_count,
        total_reps=session.total_reps,
        duration=session.duration,
        average_form_score=session.average_form_score,
        set_scores=[t.average_score for t in analysis.set_trends] if analysis else [],
        trend=analysis.trend if analysis else "stable",
        consistency_score=analysis.consistency_score if analysis else 0.0,
        fatigue_detected=analysis.fatigue_detected if analysis else False,
        criteria_description=analysis.criteria_description if analysis else [],
        improvements=state.level_cues[:1] + suggested_improvements(session.exercise_id),
        feedback_summary=state.llm_feedback,
        warnings=state.warnings,
    )

    return {"final_response": response.model_dump()}


# ============================================================================
# Build the Graph
# ============================================================================

def build_coaching_graph() -> StateGraph:
    """Build and return the coaching agent graph."""

    graph = StateGraph(CoachingState)

    graph.add_node("load_knowledge", load_knowledge_node)
    graph.add_node("analyze_session", analyze_session_node)
    graph.add_node("generate_llm", generate_llm_feedback_node)
    graph.add_node("format_response", format_response_node)

    # START → load_knowledge → analyze_session → generate_llm → format_response → END
    graph.add_edge(START, "load_knowledge")
    graph.add_edge("load_knowledge", "analyze_session")
    graph.add_edge("analyze_session", "generate_llm")
    graph.add_edge("generate_llm", "format_response")
    graph.add_edge("format_response", END)

    return graph.compile()


# ============================================================================
# Main Agent Class
# ============================================================================

class CoachingAgent:
    """
    LangGraph-based post-workout coaching agent.

    Example usage:
        agent = CoachingAgent()
        summary = agent.summarize(session, user_level="beginner")
    """

    def __init__(self):
        """Initialize the coaching agent with compiled graph."""
        self.graph = build_coaching_graph()

    def summarize(self, session: WorkoutSession, user_level: str = "beginner") -> WorkoutSummaryResponse:
        """
        Generate the post-workout summary for a finished session.

        Args:
            session: The finalized workout session
            user_level: "beginner", "intermediate" or "advanced"

        Returns:
            WorkoutSummaryResponse with all summary components
        """
        initial_state = CoachingState(session=session, user_level=user_level)
        result = self.graph.invoke(initial_state)
        return WorkoutSummaryResponse(**result["final_response"])


# ============================================================================
# Example Usage
# ============================================================================

if __name__ == "__main__":
    from .state import ExerciseSet

    session = WorkoutSession(
        id="demo",
        exercise_id="overhead-press",
        exercise_name="Overhead Press",
        duration=540,
        sets=[
            ExerciseSet(set_number=1, reps=10, form_scores=[95, 92, 90, 94, 91]),
            ExerciseSet(set_number=2, reps=9, form_scores=[88, 85, 86, 80, 82]),
            ExerciseSet(set_number=3, reps=7, form_scores=[78, 72, 70, 65, 68]),
        ],
        total_reps=26,
        average_form_score=82.4,
    )

    summary = CoachingAgent().summarize(session, user_level="intermediate")

    print(f"\n📋 Exercise: {summary.exercise_name}")
    print(f"📊 Sets: {summary.set_count}  Reps: {summary.total_reps}")
    print(f"🎯 Average Form: {summary.average_form_score:.0f}/100")
    print(f"🔄 Consistency: {summary.consistency_score:.0f}/100")
    print(f"📈 Trend: {summary.trend}")
    print(f"😓 Fatigue Detected: {'Yes' if summary.fatigue_detected else 'No'}")
    print("\n💬 COACH FEEDBACK")
    print(summary.feedback_summary or "(LLM unavailable)")
    for warning in summary.warnings:
        print(f"  ⚠️ {warning}")
