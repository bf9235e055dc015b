"""
Repetition counting and phase classification from joint angles.
"""

import logging
import time
from typing import Callable, Optional

from src.pose import PoseSnapshot

from .config import REP_DEBOUNCE_MS
from .state import ExercisePhaseName

logger = logging.getLogger(__name__)

RepRule = Callable[[PoseSnapshot], bool]
PhaseRule = Callable[[PoseSnapshot], ExercisePhaseName]


def _now_ms() -> float:
    return time.monotonic() * 1000.0


def _overhead_press_rep(pose: PoseSnapshot) -> bool:
    # Both arms fully extended overhead
    return pose.angle("left_elbow") > 160 and pose.angle("right_elbow") > 160


def _overhead_press_phase(pose: PoseSnapshot) -> ExercisePhaseName:
    left, right = pose.angle("left_elbow"), pose.angle("right_elbow")
    if left < 100 and right < 100:
        return "setup"
    if left > 160 and right > 160:
        return "completion"
    return "execution"


REP_RULES: dict[str, RepRule] = {
    "overhead-press": _overhead_press_rep,
}

PHASE_RULES: dict[str, PhaseRule] = {
    "overhead-press": _overhead_press_phase,
}


def classify_phase(snapshot: PoseSnapshot, exercise_id: str) -> ExercisePhaseName:
    """Classify the movement phase; 'execution' when no rule exists."""
    rule = PHASE_RULES.get(exercise_id)
    if rule is None:
        return "execution"
    return rule(snapshot)


class RepDetector:
    """Debounced rep counter.

    A second rep within ``debounce_ms`` of the last counted one is refused.
    Exercises without a registered rule never count.
    """

    def __init__(
        self,
        debounce_ms: float = REP_DEBOUNCE_MS,
        clock: Optional[Callable[[], float]] = None,
        rules: Optional[dict[str, RepRule]] = None,
    ):
        self.debounce_ms = debounce_ms
        self.clock = clock or _now_ms
        self.rules = rules if rules is not None else REP_RULES
        self.last_rep_time: Optional[float] = None
        self._warned: set[str] = set()

    def detect_rep(self, snapshot: PoseSnapshot, exercise_id: str) -> int:
        now = self.clock()
        if self.last_rep_time is not None and now - self.last_rep_time < self.debounce_ms:
            return 0

        rule = self.rules.get(exercise_id)
        if rule is None:
            if exercise_id not in self._warned:
                logger.debug("No rep rule for exercise '%s'; reps will not be counted", exercise_id)
                self._warned.add(exercise_id)
            return 0

        if rule(snapshot):
            self.last_rep_time = now
            return 1
        return 0

    def reset(self) -> None:
        self.last_rep_time = None
