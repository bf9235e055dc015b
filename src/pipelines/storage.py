"""
Local workout history.

Finished workouts are kept newest-first in a JSON file. Storage failures are
logged and never interrupt the workout: the store keeps serving its in-memory
copy.
"""

import json
import logging
import math
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, TypeAdapter

from src.agents import WorkoutSession

logger = logging.getLogger(__name__)

_WORKOUT_LIST = TypeAdapter(list[WorkoutSession])


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class WorkoutStats(BaseModel):
    total_workouts: int
    average_score: int
    total_minutes: int


class WorkoutStore:
    """JSON-file workout history."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        self._workouts: list[WorkoutSession] = []
        self.load()

    def load(self) -> list[WorkoutSession]:
        if self.path is None or not self.path.exists():
            return self._workouts

        try:
            self._workouts = _WORKOUT_LIST.validate_json(self.path.read_bytes())
            logger.info("Loaded %d workouts from %s", len(self._workouts), self.path)
        except (OSError, ValueError) as e:
            # ValidationError and UnicodeDecodeError are both ValueErrors
            logger.error("Error loading workouts from %s: %s", self.path, e)
        return self._workouts

    def _write(self) -> None:
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            payload = [w.model_dump(mode="json") for w in self._workouts]
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
        except OSError as e:
            logger.error("Error saving workouts to %s: %s", self.path, e)

    def save(self, session: WorkoutSession) -> None:
        """Prepend *session* (replacing an older copy with the same id)."""
        self._workouts = [session] + [w for w in self._workouts if w.id != session.id]
        self._write()

    def list_workouts(self) -> list[WorkoutSession]:
        return list(self._workouts)

    def recent(self, limit: int = 5) -> list[WorkoutSession]:
        return self._workouts[:limit]

    def stats(self) -> WorkoutStats:
        workouts = self._workouts
        if not workouts:
            return WorkoutStats(total_workouts=0, average_score=0, total_minutes=0)
        return WorkoutStats(
            total_workouts=len(workouts),
            average_score=_round_half_up(sum(w.average_form_score for w in workouts) / len(workouts)),
            total_minutes=_round_half_up(sum(w.duration / 60 for w in workouts)),
        )
