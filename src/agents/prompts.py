"""
Prompt templates for the post-workout coaching agent.

This module contains the prompt used by the LangGraph agent to turn a
finished workout's per-set form statistics into a short spoken-style summary.
"""

from langchain_core.prompts import ChatPromptTemplate


# System prompt that defines the coach's persona
COACH_SYSTEM_PROMPT = """You are an expert personal trainer reviewing a workout that was
tracked with real-time pose analysis. Your role is to provide encouraging, professional,
and actionable feedback to help users improve their exercise technique.

Key principles:
- Always be encouraging and supportive
- Provide specific, actionable advice based on the per-set data
- Reference specific sets when form issues occurred
- Identify patterns like fatigue-induced form breakdown
- Prioritize safety and proper form
- Keep feedback concise and conversational"""


# Post-workout summary prompt with per-set context
SUMMARY_PROMPT = ChatPromptTemplate.from_messages([
    ("system", COACH_SYSTEM_PROMPT),
    ("human", """The user performed: {exercise_name}
User level: {user_level}
Sets: {set_count} | Total reps: {total_reps} | Duration: {duration_minutes:.1f} min

Safety considerations for this exercise:
{safety_notes}

═══════════════════════════════════════════════════════════════
PER-SET FORM BREAKDOWN (form score 0-100)
═══════════════════════════════════════════════════════════════
{per_set_breakdown}

═══════════════════════════════════════════════════════════════
AGGREGATED ANALYSIS
═══════════════════════════════════════════════════════════════
Average Form Score: {average_score:.0f}/100
Consistency Score: {consistency_score:.0f}/100
What this score looks like: {criteria_description}
{trend_analysis}

═══════════════════════════════════════════════════════════════
YOUR TASK
═══════════════════════════════════════════════════════════════
1. Acknowledge what the user did well
2. Name the key issue, and which set it showed up in
3. If fatigue was detected, address it directly
4. Give 2-3 specific tips for the next workout, suited to a {user_level}
5. End with encouragement

Keep your response under {max_words} words. Be conversational, not a bullet list.""")
])


def format_per_set_breakdown(set_trends: list) -> str:
    """
    Format per-set statistics into a readable table for the LLM.

    Args:
        set_trends: List of SetTrend objects

    Returns:
        Formatted string table of all sets
    """
    if not set_trends:
        return "No set data available."

    header = "Set  | Reps | Avg  | Min  | Max"
    lines = [header, "-" * len(header)]
    for trend in set_trends:
        lines.append(
            f"{trend.set_number:>3}  | {trend.reps:>4} | {trend.average_score:>4.0f} "
            f"| {trend.min_score:>4.0f} | {trend.max_score:>4.0f}"
        )
    return "\n".join(lines)


def format_trend_analysis(analysis) -> str:
    """Format trend and fatigue lines for the prompt."""
    if analysis is None:
        return "- Trend: not enough data"
    lines = [f"- Trend across sets: {analysis.trend}"]
    if analysis.best_set is not None:
        lines.append(f"- Best set: {analysis.best_set}, weakest set: {analysis.worst_set}")
    if analysis.fatigue_detected:
        lines.append("- ⚠️ FATIGUE DETECTED: form dropped noticeably in the final set")
    else:
        lines.append("- Fatigue: Not detected")
    return "\n".join(lines)


def format_bullets(items: list[str]) -> str:
    """Format a list as a bullet-point string for prompts."""
    if not items:
        return "• None"
    return "\n".join(f"• {item}" for item in items)
