"""
FastAPI entry point for the form coach backend.

Endpoints:
    GET  /api/exercises                 Exercise catalog
    GET  /api/exercises/{id}/knowledge  Reference data for one exercise
    POST /api/form/evaluate             Score a single pose
    POST /api/sessions                  Start a workout
    POST /api/sessions/{id}/frames      Process one detection tick
    POST /api/sessions/{id}/sets        Finish the current set
    POST /api/sessions/{id}/end         Finish the workout, persist and summarize
    GET  /api/workouts                  Workout history and stats

Run:
    cd <project_root>
    uvicorn src.pipelines.main:app --host 0.0.0.0 --port 8000 --reload
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Ensure project root is on sys.path so ``src.*`` imports work when running
# with ``uvicorn src.pipelines.main:app`` from the project root.
# ---------------------------------------------------------------------------
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from src.agents import (
    CoachingAgent,
    ExerciseSet,
    FormAssessment,
    WorkoutSession,
    WorkoutSummaryResponse,
    evaluate,
    get_knowledge_base,
)
from src.pipelines.config import EXERCISE_CATALOG, SESSION_IDLE_TIMEOUT_S, WORKOUTS_PATH
from src.pipelines.preprocessing import snapshot_from_landmarks
from src.pipelines.session import FrameResult, SessionTracker
from src.pipelines.storage import WorkoutStats, WorkoutStore
from src.pipelines.utils import generate_fallback_feedback

logger = logging.getLogger("form_coach")
logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(name)s | %(message)s")


# ============================================================================
# Pydantic request / response models
# ============================================================================

class PoseFrame(BaseModel):
    landmarks: list[list[Optional[float]]] = Field(
        ..., description="33 landmarks × 4 values (x, y, z, visibility); null for missing"
    )
    confidence: float = Field(default=0.9, ge=0.0, le=1.0)
    timestamp: Optional[float] = Field(default=None, description="Capture time (ms)")


class EvaluateRequest(PoseFrame):
    exercise_id: str
    phase: Optional[str] = None


class StartSessionRequest(BaseModel):
    exercise_id: str
    user_level: str = "beginner"


class ExerciseInfo(BaseModel):
    id: str
    name: str
    category: str
    difficulty: str
    duration: str
    description: str


class EndSessionResponse(BaseModel):
    session: WorkoutSession
    summary: Optional[WorkoutSummaryResponse] = None
    feedback: list[str]


class WorkoutHistoryResponse(BaseModel):
    workouts: list[WorkoutSession]
    stats: WorkoutStats


class ErrorResponse(BaseModel):
    error_code: str
    message: str


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error_code": code, "message": message})


# ============================================================================
# App lifecycle
# ============================================================================

_sessions: dict[str, SessionTracker] = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the knowledge base and workout history at startup."""
    logger.info("Starting form coach backend …")
    kb = get_knowledge_base()
    missing = [ex for ex in EXERCISE_CATALOG if kb.get(ex) is None]
    if missing:
        logger.warning("Catalog exercises without knowledge base entries: %s", missing)
    if getattr(app.state, "store", None) is None:
        app.state.store = WorkoutStore(WORKOUTS_PATH)
    logger.info("Knowledge base loaded (%d exercises), server is ready.", len(kb.exercise_ids()))
    yield
    for tracker in list(_sessions.values()):
        await tracker.stop()
    _sessions.clear()
    logger.info("Shutting down.")


app = FastAPI(
    title="Form Coach API",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS for browser-based testing
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Health-check & catalog
# ============================================================================

@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/exercises", response_model=list[ExerciseInfo])
async def list_exercises():
    return [ExerciseInfo(id=ex_id, **info) for ex_id, info in EXERCISE_CATALOG.items()]


@app.get("/api/exercises/{exercise_id}/knowledge", responses={404: {"model": ErrorResponse}})
async def exercise_knowledge(exercise_id: str):
    knowledge = get_knowledge_base().get(exercise_id)
    if knowledge is None:
        return _error(404, "UNKNOWN_EXERCISE", f"No knowledge available for '{exercise_id}'.")
    return knowledge.model_dump()


# ============================================================================
# Single-pose evaluation
# ============================================================================

@app.post(
    "/api/form/evaluate",
    response_model=FormAssessment,
    responses={400: {"model": ErrorResponse}},
)
async def evaluate_form(request: EvaluateRequest):
    try:
        snapshot = snapshot_from_landmarks(request.landmarks, request.confidence, request.timestamp)
    except ValueError as exc:
        return _error(400, "INVALID_POSE", str(exc))
    return evaluate(request.exercise_id, snapshot, request.phase)


# ============================================================================
# Workout sessions
# ============================================================================

def _get_tracker(session_id: str) -> Optional[SessionTracker]:
    return _sessions.get(session_id)


async def _evict_idle_sessions(timeout_s: float = SESSION_IDLE_TIMEOUT_S) -> list[str]:
    """Close sessions that have not received a frame within *timeout_s*.

    Sessions with recorded sets are ended (and saved); empty ones are dropped.
    """
    evicted = []
    for session_id, tracker in list(_sessions.items()):
        if tracker.idle_seconds() <= timeout_s:
            continue
        _sessions.pop(session_id, None)
        if tracker.session.sets or tracker.has_pending_set:
            await tracker.end()
        else:
            await tracker.stop()
        evicted.append(session_id)

    if evicted:
        logger.info("Closed %d idle session(s): %s", len(evicted), evicted)
    return evicted


@app.post("/api/sessions", response_model=WorkoutSession, responses={404: {"model": ErrorResponse}})
async def start_session(request: StartSessionRequest):
    if request.exercise_id not in EXERCISE_CATALOG:
        return _error(404, "UNKNOWN_EXERCISE", f"Exercise '{request.exercise_id}' is not in the catalog.")

    await _evict_idle_sessions()

    tracker = SessionTracker(
        request.exercise_id,
        user_level=request.user_level,
        store=app.state.store,
    )
    _sessions[tracker.session.id] = tracker
    return tracker.session


@app.post(
    "/api/sessions/{session_id}/frames",
    response_model=FrameResult,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def process_frame(session_id: str, frame: PoseFrame):
    tracker = _get_tracker(session_id)
    if tracker is None:
        return _error(404, "UNKNOWN_SESSION", f"No active session '{session_id}'.")

    try:
        snapshot = snapshot_from_landmarks(frame.landmarks, frame.confidence, frame.timestamp)
    except ValueError as exc:
        return _error(400, "INVALID_POSE", str(exc))

    return await tracker.process_frame(snapshot)


@app.post(
    "/api/sessions/{session_id}/sets",
    response_model=ExerciseSet,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def finish_set(session_id: str):
    tracker = _get_tracker(session_id)
    if tracker is None:
        return _error(404, "UNKNOWN_SESSION", f"No active session '{session_id}'.")
    if not tracker.has_pending_set:
        return _error(409, "EMPTY_SET", "No frames were recorded since the last set.")
    await tracker.stop()
    return tracker.finish_set()


@app.post(
    "/api/sessions/{session_id}/end",
    response_model=EndSessionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def end_session(session_id: str):
    tracker = _sessions.pop(session_id, None)
    if tracker is None:
        return _error(404, "UNKNOWN_SESSION", f"No active session '{session_id}'.")

    session = await tracker.end()

    # ── Post-workout summary ─────────────────────────────────────────────
    summary: Optional[WorkoutSummaryResponse] = None
    feedback_lines: list[str] = []
    try:
        agent = CoachingAgent()
        summary = await run_in_threadpool(agent.summarize, session, tracker.user_level)

        raw_feedback = summary.feedback_summary or ""
        feedback_lines = [line.strip() for line in raw_feedback.split("\n") if line.strip()]
        if not feedback_lines:
            feedback_lines = generate_fallback_feedback(session)
        if summary.warnings:
            feedback_lines.extend(summary.warnings)

    except Exception as exc:
        logger.warning("Coaching agent failed: %s, using fallback.", exc)
        feedback_lines = generate_fallback_feedback(session)

    return EndSessionResponse(session=session, summary=summary, feedback=feedback_lines)


@app.get("/api/workouts", response_model=WorkoutHistoryResponse)
async def workout_history(limit: int = Query(5, ge=1, le=100)):
    store: WorkoutStore = app.state.store
    return WorkoutHistoryResponse(workouts=store.recent(limit), stats=store.stats())
