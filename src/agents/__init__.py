"""
Agents module for the form coach.

This module contains the exercise knowledge base, the rule-based form
evaluator and rep detector, the real-time coach and speech orchestrator, and
the post-workout coaching agent.
"""

from .knowledge_base import KnowledgeBase, ExerciseKnowledge, Mistake, get_knowledge_base
from .form_evaluator import evaluate, fallback_assessment
from .rep_detector import RepDetector, classify_phase
from .realtime_coach import RealtimeCoach
from .orchestrator import CoachingOrchestrator, OrchestratorDecision
from .speech import LoggingSpeechSynthesizer, SpeechSynthesizer
from .state import (
    CoachingFeedback,
    ExerciseContext,
    ExerciseSet,
    FormAssessment,
    WorkoutAnalysis,
    WorkoutSession,
)
from .coaching_agent import CoachingAgent, WorkoutSummaryResponse

__all__ = [
    "KnowledgeBase",
    "ExerciseKnowledge",
    "Mistake",
    "get_knowledge_base",
    "evaluate",
    "fallback_assessment",
    "RepDetector",
    "classify_phase",
    "RealtimeCoach",
    "CoachingOrchestrator",
    "OrchestratorDecision",
    "LoggingSpeechSynthesizer",
    "SpeechSynthesizer",
    "CoachingFeedback",
    "ExerciseContext",
    "ExerciseSet",
    "FormAssessment",
    "WorkoutAnalysis",
    "WorkoutSession",
    "CoachingAgent",
    "WorkoutSummaryResponse",
]
