"""
Exercise knowledge base for the form coach.

Static, per-exercise reference data: movement phases with ideal joint-angle
ranges, common mistakes (each with a registered detection predicate), safety
notes, score bands and coaching cue banks. Loaded once and read-only for the
lifetime of the process.
"""

from functools import lru_cache
from typing import Callable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.json_schema import SkipJsonSchema

from src.pose import PoseSnapshot


RiskLevel = Literal["low", "medium", "high"]
UserLevel = Literal["beginner", "intermediate", "advanced"]
Urgency = Literal["critical", "important", "minor"]

MistakePredicate = Callable[[PoseSnapshot], bool]


# ============================================================================
# Models
# ============================================================================

class AngleRange(BaseModel):
    """Ideal range for one joint angle during a phase."""
    model_config = ConfigDict(frozen=True)

    min: float
    max: float
    optimal: Optional[float] = None

    def contains(self, angle: float) -> bool:
        return self.min <= angle <= self.max


class Phase(BaseModel):
    """A named sub-stage of a repetition."""
    model_config = ConfigDict(frozen=True)

    name: str
    duration: str = Field(description="Expected time window within the rep")
    key_points: list[str] = Field(default_factory=list)
    ideal_ranges: dict[str, AngleRange] = Field(default_factory=dict)


class Mistake(BaseModel):
    """A detectable form error and how to correct it."""
    model_config = ConfigDict(frozen=True)

    name: str
    detection: str = Field(description="Human-readable detection condition")
    risk_level: RiskLevel
    correction: str
    cue: str
    detect: SkipJsonSchema[Optional[MistakePredicate]] = Field(
        default=None,
        exclude=True,
        description="Predicate over the current pose; None means not detectable yet",
    )

    def matches(self, snapshot: PoseSnapshot) -> bool:
        if self.detect is None:
            return False
        return bool(self.detect(snapshot))


class ScoreBand(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: float
    description: list[str]


class FormCriteria(BaseModel):
    """Four score bands, checked from the top down."""
    model_config = ConfigDict(frozen=True)

    excellent: ScoreBand
    good: ScoreBand
    acceptable: ScoreBand
    poor: ScoreBand

    def describe(self, score: float) -> list[str]:
        for band in (self.excellent, self.good, self.acceptable):
            if score >= band.min:
                return band.description
        return self.poor.description


class RealTimeCues(BaseModel):
    model_config = ConfigDict(frozen=True)

    critical: list[str]
    important: list[str]
    minor: list[str]


class CoachingCues(BaseModel):
    model_config = ConfigDict(frozen=True)

    beginner: list[str]
    intermediate: list[str]
    advanced: list[str]
    real_time: RealTimeCues


class ExerciseKnowledge(BaseModel):
    """Everything the coach knows about one exercise."""
    model_config = ConfigDict(frozen=True)

    exercise_id: str
    name: str
    overview: str
    phases: list[Phase]
    common_mistakes: list[Mistake]
    safety_considerations: list[str]
    form_criteria: FormCriteria
    coaching_cues: CoachingCues


# ============================================================================
# Detection predicates
# ============================================================================

def _either_elbow_below(threshold: float) -> MistakePredicate:
    def detect(pose: PoseSnapshot) -> bool:
        return pose.angle("left_elbow") < threshold or pose.angle("right_elbow") < threshold
    return detect


def _both_elbows_above(threshold: float) -> MistakePredicate:
    def detect(pose: PoseSnapshot) -> bool:
        return pose.angle("left_elbow") > threshold and pose.angle("right_elbow") > threshold
    return detect


def _elbow_difference_above(threshold: float) -> MistakePredicate:
    def detect(pose: PoseSnapshot) -> bool:
        return abs(pose.angle("left_elbow") - pose.angle("right_elbow")) > threshold
    return detect


def _shoulder_difference_below(threshold: float) -> MistakePredicate:
    def detect(pose: PoseSnapshot) -> bool:
        return abs(pose.angle("left_shoulder") - pose.angle("right_shoulder")) < threshold
    return detect


# ============================================================================
# Exercise data
# ============================================================================

def _overhead_press() -> ExerciseKnowledge:
    return ExerciseKnowledge(
        exercise_id="overhead-press",
        name="Overhead Press",
        overview="Fundamental upper body strength exercise targeting shoulders, triceps, and core.",
        phases=[
            Phase(
                name="Setup",
                duration="0-1 seconds",
                key_points=["Feet shoulder-width apart", "Core engaged", "Elbows at 90°"],
                ideal_ranges={
                    "left_elbow": AngleRange(min=90, max=100, optimal=95),
                    "right_elbow": AngleRange(min=90, max=100, optimal=95),
                    "left_shoulder": AngleRange(min=30, max=50, optimal=40),
                    "right_shoulder": AngleRange(min=30, max=50, optimal=40),
                },
            ),
            Phase(
                name="Press",
                duration="1-2 seconds",
                key_points=["Straight bar path", "Progressive elbow extension", "Core braced"],
                ideal_ranges={
                    "left_elbow": AngleRange(min=100, max=180, optimal=140),
                    "right_elbow": AngleRange(min=100, max=180, optimal=140),
                },
            ),
            Phase(
                name="Lockout",
                duration="2-2.5 seconds",
                key_points=["Full extension", "Shoulders stable", "Core still engaged"],
                ideal_ranges={
                    "left_elbow": AngleRange(min=170, max=180, optimal=175),
                    "right_elbow": AngleRange(min=170, max=180, optimal=175),
                },
            ),
            Phase(
                name="Descent",
                duration="2.5-4 seconds",
                key_points=["Controlled lowering", "Maintain tension", "Prepare for next rep"],
                ideal_ranges={
                    "left_elbow": AngleRange(min=90, max=180, optimal=135),
                    "right_elbow": AngleRange(min=90, max=180, optimal=135),
                },
            ),
        ],
        common_mistakes=[
            Mistake(
                name="Insufficient Elbow Height",
                detection="Elbow angle < 90° at start",
                risk_level="high",
                correction="Lift your elbows higher",
                cue="Elbows up, under the bar",
                detect=_either_elbow_below(90),
            ),
            Mistake(
                name="Incomplete Lockout",
                detection="Elbow angle < 170° at top",
                risk_level="low",
                correction="Full lockout overhead",
                cue="Push the ceiling away",
                detect=_either_elbow_below(170),
            ),
            Mistake(
                name="Asymmetrical Press",
                detection="Left/right elbow difference > 15°",
                risk_level="medium",
                correction="Keep both arms even",
                cue="Press evenly",
                detect=_elbow_difference_above(15),
            ),
        ],
        safety_considerations=[
            "Adequate shoulder mobility required",
            "Warm up shoulders thoroughly",
            "Start with light weight",
            "Stop if shoulder pain occurs",
        ],
        form_criteria=FormCriteria(
            excellent=ScoreBand(min=90, description=["Perfect elbow positioning", "Straight bar path", "Full ROM"]),
            good=ScoreBand(min=80, description=["Minor bar path deviation", "Good control overall"]),
            acceptable=ScoreBand(min=70, description=["Moderate form issues", "Safe execution"]),
            poor=ScoreBand(min=60, description=["Multiple form breaks", "Safety concerns present"]),
        ),
        coaching_cues=CoachingCues(
            beginner=["Feet shoulder-width apart", "Elbows up and under", "Press straight up"],
            intermediate=["Drive through your heels", "Maintain upper back tightness"],
            advanced=["Generate power from the ground up", "Time your breathing"],
            real_time=RealTimeCues(
                critical=["Elbows higher!", "Core tight!", "Control the weight!"],
                important=["Full lockout", "Even pressure", "Straight path"],
                minor=["Good tempo", "Stay tight", "Nice control"],
            ),
        ),
    )


def _tennis_serve() -> ExerciseKnowledge:
    return ExerciseKnowledge(
        exercise_id="tennis-serve",
        name="Tennis Serve",
        overview="Complex kinetic chain movement combining power, precision, and technique.",
        phases=[
            Phase(
                name="Ball Toss",
                duration="0-1 seconds",
                key_points=["Consistent height", "Proper placement", "Smooth release"],
                ideal_ranges={
                    "left_shoulder": AngleRange(min=20, max=40, optimal=30),
                    "right_shoulder": AngleRange(min=30, max=60, optimal=45),
                },
            ),
            Phase(
                name="Loading",
                duration="1-1.5 seconds",
                key_points=["Shoulder turn", "Trophy position", "Core coiled"],
                ideal_ranges={
                    "left_shoulder": AngleRange(min=40, max=80, optimal=60),
                    "right_shoulder": AngleRange(min=60, max=100, optimal=80),
                },
            ),
            Phase(
                name="Acceleration",
                duration="1.5-1.8 seconds",
                key_points=["Explosive leg drive", "Hip rotation", "Shoulder turn"],
                ideal_ranges={
                    "left_elbow": AngleRange(min=120, max=180, optimal=150),
                    "right_elbow": AngleRange(min=100, max=160, optimal=130),
                },
            ),
            Phase(
                name="Contact",
                duration="1.8-1.9 seconds",
                key_points=["Highest reach point", "Full extension", "Clean contact"],
                ideal_ranges={
                    "left_elbow": AngleRange(min=170, max=180, optimal=175),
                    "right_elbow": AngleRange(min=170, max=180, optimal=175),
                },
            ),
        ],
        common_mistakes=[
            # Needs toss timing across frames; not detectable from a single pose
            Mistake(
                name="Low Ball Toss",
                detection="Rushed swing timing",
                risk_level="medium",
                correction="Toss higher and more consistent",
                cue="Let the ball come down to you",
            ),
            Mistake(
                name="Poor Shoulder Rotation",
                detection="Limited shoulder turn",
                risk_level="medium",
                correction="Turn your shoulders more",
                cue="Show your back to your opponent",
                detect=_shoulder_difference_below(20),
            ),
        ],
        safety_considerations=[
            "Proper warm-up essential",
            "Gradual intensity increase",
            "Watch for shoulder/elbow pain",
        ],
        form_criteria=FormCriteria(
            excellent=ScoreBand(min=90, description=["Consistent toss", "Perfect timing", "Full rotation"]),
            good=ScoreBand(min=80, description=["Minor toss variations", "Good timing"]),
            acceptable=ScoreBand(min=70, description=["Basic technique present", "Room for improvement"]),
            poor=ScoreBand(min=60, description=["Major timing issues", "Inconsistent execution"]),
        ),
        coaching_cues=CoachingCues(
            beginner=["Stand sideways", "Consistent toss", "Reach high"],
            intermediate=["Use your legs", "Full shoulder turn", "Accelerate through"],
            advanced=["Coordinate kinetic chain", "Generate racquet speed"],
            real_time=RealTimeCues(
                critical=["Toss higher!", "Turn more!", "Stay sideways!"],
                important=["Good extension", "Nice rotation", "Follow through"],
                minor=["Great timing", "Smooth motion", "Perfect toss"],
            ),
        ),
    )


def _boxing_combo() -> ExerciseKnowledge:
    return ExerciseKnowledge(
        exercise_id="boxing-combo",
        name="Boxing Combo (Jab-Cross-Hook)",
        overview="Fundamental boxing combination developing coordination, power, and defense.",
        phases=[
            Phase(
                name="Jab",
                duration="0-0.3 seconds",
                key_points=["Straight extension", "Quick snap back", "Guard maintained"],
                ideal_ranges={
                    "left_elbow": AngleRange(min=160, max=180, optimal=170),
                    "right_elbow": AngleRange(min=90, max=120, optimal=100),
                },
            ),
            Phase(
                name="Cross",
                duration="0.3-0.6 seconds",
                key_points=["Hip rotation", "Power from ground", "Straight line"],
                ideal_ranges={
                    "right_elbow": AngleRange(min=160, max=180, optimal=170),
                    "left_elbow": AngleRange(min=90, max=120, optimal=100),
                },
            ),
            Phase(
                name="Hook",
                duration="0.6-1.0 seconds",
                key_points=["90° elbow", "Circular motion", "Pivot on foot"],
                ideal_ranges={
                    "left_elbow": AngleRange(min=80, max=100, optimal=90),
                    "right_elbow": AngleRange(min=90, max=120, optimal=100),
                },
            ),
        ],
        common_mistakes=[
            # Hand height is not a joint angle; no predicate yet
            Mistake(
                name="Dropping Guard",
                detection="Hand below chin level",
                risk_level="high",
                correction="Keep your hands up",
                cue="Protect your face",
            ),
            Mistake(
                name="Overreaching",
                detection="Full arm extension on all punches",
                risk_level="medium",
                correction="Don't overextend",
                cue="Punch through, not at",
                detect=_both_elbows_above(175),
            ),
        ],
        safety_considerations=[
            "Always use hand wraps",
            "Proper warm-up required",
            "Focus on technique before power",
        ],
        form_criteria=FormCriteria(
            excellent=ScoreBand(min=90, description=["Perfect guard", "Optimal power", "Flawless sequence"]),
            good=ScoreBand(min=80, description=["Minor guard lapses", "Good technique"]),
            acceptable=ScoreBand(min=70, description=["Moderate flaws", "Basic competency"]),
            poor=ScoreBand(min=60, description=["Major issues", "Poor power generation"]),
        ),
        coaching_cues=CoachingCues(
            beginner=["Hands up", "Jab straight out", "Cross with hip rotation"],
            intermediate=["Coordinate footwork", "Flow between punches", "Power from legs"],
            advanced=["Vary timing", "Integrate head movement", "Develop power"],
            real_time=RealTimeCues(
                critical=["Hands up!", "Don't drop guard!", "Stay balanced!"],
                important=["Good rotation", "Sharp punches", "Nice flow"],
                minor=["Great combo", "Perfect timing", "Excellent form"],
            ),
        ),
    )


# ============================================================================
# Service
# ============================================================================

class KnowledgeBase:
    """Read-only lookup over the exercise table.

    Unknown exercise ids resolve to None (or an empty result from the
    accessors), never an exception.
    """

    def __init__(self, exercises: Optional[list[ExerciseKnowledge]] = None):
        if exercises is None:
            exercises = [_overhead_press(), _tennis_serve(), _boxing_combo()]
        self._exercises: dict[str, ExerciseKnowledge] = {
            ex.exercise_id: ex for ex in exercises
        }

    def get(self, exercise_id: str) -> Optional[ExerciseKnowledge]:
        return self._exercises.get(exercise_id)

    def exercise_ids(self) -> list[str]:
        return list(self._exercises.keys())

    def find_phase(self, exercise_id: str, phase: str) -> Optional[Phase]:
        """First phase whose name contains *phase* (case-insensitive)."""
        knowledge = self.get(exercise_id)
        if knowledge is None or not phase:
            return None
        needle = phase.lower()
        for candidate in knowledge.phases:
            if needle in candidate.name.lower():
                return candidate
        return None

    def cues_for_level(self, exercise_id: str, level: str) -> list[str]:
        knowledge = self.get(exercise_id)
        if knowledge is None or level not in ("beginner", "intermediate", "advanced"):
            return []
        return list(getattr(knowledge.coaching_cues, level))

    def realtime_cues(self, exercise_id: str, urgency: str) -> list[str]:
        knowledge = self.get(exercise_id)
        if knowledge is None or urgency not in ("critical", "important", "minor"):
            return []
        return list(getattr(knowledge.coaching_cues.real_time, urgency))

    def criteria_description(self, exercise_id: str, score: float) -> list[str]:
        knowledge = self.get(exercise_id)
        if knowledge is None:
            return ["Form analysis not available"]
        return list(knowledge.form_criteria.describe(score))


@lru_cache(maxsize=1)
def get_knowledge_base() -> KnowledgeBase:
    """Process-wide knowledge base, built on first use."""
    return KnowledgeBase()
