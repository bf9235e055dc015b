"""
Configuration file for the coaching agents.

Loads configuration from environment variables with sensible defaults.
API keys should be set in .env file (not committed to version control).
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
# Look for .env in project root
_project_root = Path(__file__).parent.parent.parent
_env_path = _project_root / ".env"
load_dotenv(_env_path)

# Gemini API Configuration
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "")
if not GEMINI_API_KEY:
    import warnings
    warnings.warn(
        "GEMINI_API_KEY not set. Post-workout summaries will use rule-based feedback. "
        "See .env.example for reference."
    )

# Model configuration
GEMINI_MODEL_NAME = os.environ.get("GEMINI_MODEL_NAME", "gemini-2.5-flash")

# Agent settings
DEFAULT_USE_LLM = True
MAX_FEEDBACK_WORDS = 100

# Real-time coaching timing (milliseconds)
SPEECH_COOLDOWN_MS = float(os.environ.get("SPEECH_COOLDOWN_MS", 3000))
REP_DEBOUNCE_MS = float(os.environ.get("REP_DEBOUNCE_MS", 1000))

# Form scoring
MAX_SCORE = 100
FALLBACK_SCORE = 80
MAX_FEEDBACK_ITEMS = 3
MAX_CUES = 2
PHASE_RANGE_DEDUCTION = 5
RISK_DEDUCTIONS = {
    "high": 20,
    "medium": 10,
    "low": 5,
}

# Score thresholds for feedback categorization (0-100 scale)
SCORE_THRESHOLDS = {
    "excellent": 85,
    "good": 75,
    "needs_improvement": 60,
    "poor": 0,
}
