"""
Stage 2/3: live workout session.

A SessionTracker owns one workout: its rep detector, real-time coach and
speech orchestrator. Each detection tick is scored, counted and routed to the
screen or speech; sets are closed explicitly and the finished workout is
handed to the store.
"""

import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from pydantic import BaseModel

from src.agents import (
    CoachingOrchestrator,
    ExerciseContext,
    ExerciseSet,
    OrchestratorDecision,
    RealtimeCoach,
    RepDetector,
    WorkoutAnalysis,
    WorkoutSession,
)
from src.agents.speech import LoggingSpeechSynthesizer, SpeechSynthesizer
from src.pose import PoseSnapshot

from .config import DETECTION_INTERVAL_MS, SIMULATE_SPEECH_DURATION, exercise_name
from .storage import WorkoutStore

logger = logging.getLogger(__name__)


def _now_ms() -> float:
    return time.monotonic() * 1000.0


class FrameResult(BaseModel):
    """Outcome of one detection tick."""
    analysis: WorkoutAnalysis
    display: list[str]
    spoken: list[str]
    current_set: int
    set_reps: int
    running_score: float


class SessionTracker:
    """Drives one workout from start to finish."""

    def __init__(
        self,
        exercise_id: str,
        user_level: str = "beginner",
        store: Optional[WorkoutStore] = None,
        speech: Optional[SpeechSynthesizer] = None,
        clock: Optional[Callable[[], float]] = None,
        session_id: Optional[str] = None,
    ):
        self.clock = clock or _now_ms
        self.user_level = user_level
        self.store = store
        self.coach = RealtimeCoach(rep_detector=RepDetector(clock=self.clock))
        self.orchestrator = CoachingOrchestrator(
            speech=speech or LoggingSpeechSynthesizer(simulate_duration=SIMULATE_SPEECH_DURATION),
            clock=self.clock,
        )
        self.session = WorkoutSession(
            id=session_id or uuid.uuid4().hex,
            exercise_id=exercise_id,
            exercise_name=exercise_name(exercise_id),
        )

        self.current_set = 1
        self.set_reps = 0
        self.set_scores: list[float] = []
        self.set_notes: list[str] = []

        self.is_recording = False
        self.is_finished = False
        self._started_ms = self.clock()
        self._last_activity_ms = self._started_ms

        logger.info("Started %s session %s", exercise_id, self.session.id)

    # ------------------------------------------------------------------
    # Per-tick processing
    # ------------------------------------------------------------------

    @property
    def running_score(self) -> float:
        scores = self._all_scores() + self.set_scores
        if not scores:
            return 0.0
        return sum(scores) / len(scores)

    def _all_scores(self) -> list[float]:
        return [score for s in self.session.sets for score in s.form_scores]

    def elapsed_seconds(self) -> float:
        return max(0.0, (self.clock() - self._started_ms) / 1000.0)

    def idle_seconds(self) -> float:
        """Time since the last processed frame (or the session start)."""
        return max(0.0, (self.clock() - self._last_activity_ms) / 1000.0)

    @property
    def has_pending_set(self) -> bool:
        """True once the current set has at least one frame or rep."""
        return bool(self.set_scores) or self.set_reps > 0

    async def process_frame(self, snapshot: PoseSnapshot) -> FrameResult:
        context = ExerciseContext(
            exercise_id=self.session.exercise_id,
            current_set=self.current_set,
            total_reps=self.set_reps,
            user_level=self.user_level,
            previous_form_scores=self.set_scores[-10:],
        )
        analysis = self.coach.analyze(snapshot, context)

        self.set_reps += analysis.rep_count
        self.set_scores.append(analysis.form_score)
        self._last_activity_ms = self.clock()
        for note in analysis.improvements:
            if note not in self.set_notes:
                self.set_notes.append(note)

        decision: OrchestratorDecision = await self.orchestrator.submit(analysis.feedback)
        self.orchestrator.schedule_drain()

        return FrameResult(
            analysis=analysis,
            display=decision.display,
            spoken=[item.message for item in decision.spoken],
            current_set=self.current_set,
            set_reps=self.set_reps,
            running_score=round(self.running_score, 1),
        )

    async def record(
        self,
        source: Iterable[PoseSnapshot],
        interval_ms: float = DETECTION_INTERVAL_MS,
        max_frames: Optional[int] = None,
    ) -> int:
        """Pull snapshots from *source* on a fixed interval until stopped.

        Returns the number of frames processed.
        """
        self.is_recording = True
        processed = 0
        try:
            for snapshot in source:
                if not self.is_recording or (max_frames is not None and processed >= max_frames):
                    break
                await self.process_frame(snapshot)
                processed += 1
                await asyncio.sleep(interval_ms / 1000.0)
        finally:
            self.is_recording = False
        return processed

    # ------------------------------------------------------------------
    # Set / session lifecycle
    # ------------------------------------------------------------------

    def finish_set(self) -> ExerciseSet:
        """Close the current set and start the next one.

        With nothing recorded since the last set, the last set is returned
        again and no empty set is added.
        """
        if not self.has_pending_set and self.session.sets:
            return self.session.sets[-1]

        completed = ExerciseSet(
            set_number=self.current_set,
            reps=self.set_reps,
            form_scores=list(self.set_scores),
            feedback_notes=list(self.set_notes),
        )
        self.session.sets.append(completed)
        self.session.total_reps += completed.reps
        self.session.duration = self.elapsed_seconds()

        all_scores = self._all_scores()
        if all_scores:
            self.session.average_form_score = round(sum(all_scores) / len(all_scores), 1)

        logger.info(
            "Session %s: set %d finished with %d reps (avg %.1f)",
            self.session.id, completed.set_number, completed.reps, completed.average_score,
        )

        self.current_set += 1
        self.set_reps = 0
        self.set_scores = []
        self.set_notes = []
        self.is_recording = False
        return completed

    async def stop(self) -> None:
        """Leave the recording state: stop the tick loop and drop pending speech."""
        self.is_recording = False
        await self.orchestrator.stop()

    async def end(self) -> WorkoutSession:
        """Finalize the workout and hand it to the store."""
        if self.is_finished:
            return self.session

        await self.stop()
        if self.has_pending_set:
            self.finish_set()

        self.session.duration = self.elapsed_seconds()
        self.session.ended_at = datetime.now(timezone.utc)
        self.is_finished = True

        if self.store is not None:
            self.store.save(self.session)

        logger.info(
            "Session %s ended: %d sets, %d reps, avg form %.1f",
            self.session.id, self.session.set_count, self.session.total_reps,
            self.session.average_form_score,
        )
        return self.session
