"""
Configuration constants for the form coach FastAPI backend.

Centralizes storage paths, the exercise catalog, detection timing and
environment variable loading.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_PATH = PROJECT_ROOT / ".env"
load_dotenv(_ENV_PATH)

WORKOUTS_PATH = Path(os.environ.get("WORKOUTS_PATH", PROJECT_ROOT / "data" / "workouts.json"))

# ---------------------------------------------------------------------------
# Pose input
# ---------------------------------------------------------------------------
NUM_LANDMARKS: int = 33
VALUES_PER_LANDMARK: int = 4       # x, y, z, visibility
DETECTION_INTERVAL_MS: float = float(os.environ.get("DETECTION_INTERVAL_MS", 100))

# Sessions with no frames for this long are closed on the next session start
SESSION_IDLE_TIMEOUT_S: float = float(os.environ.get("SESSION_IDLE_TIMEOUT_S", 1800))

# ---------------------------------------------------------------------------
# Speech
# ---------------------------------------------------------------------------
SIMULATE_SPEECH_DURATION: bool = os.environ.get("SIMULATE_SPEECH_DURATION", "0") == "1"

# ---------------------------------------------------------------------------
# Exercise catalog
# ---------------------------------------------------------------------------
# Every id here needs a matching knowledge base record.
EXERCISE_CATALOG: dict[str, dict[str, str]] = {
    "tennis-serve": {
        "name": "Tennis Serve",
        "category": "Sports",
        "difficulty": "Intermediate",
        "duration": "15 min",
        "description": "Perfect your serve technique with real-time form analysis",
    },
    "boxing-combo": {
        "name": "Boxing Combo",
        "category": "Combat",
        "difficulty": "Beginner",
        "duration": "10 min",
        "description": "Master the jab-cross-hook combination",
    },
    "overhead-press": {
        "name": "Overhead Press",
        "category": "Strength",
        "difficulty": "All Levels",
        "duration": "12 min",
        "description": "Build shoulder strength with perfect form",
    },
}


def exercise_name(exercise_id: str) -> str:
    entry = EXERCISE_CATALOG.get(exercise_id)
    return entry["name"] if entry else "Unknown Exercise"
