"""
Speech output boundary.

The orchestrator hands cue text to a SpeechSynthesizer and awaits completion.
No audible output is guaranteed: the default implementation only logs.
"""

import asyncio
import logging
from typing import Optional, Protocol

from .state import Priority

logger = logging.getLogger(__name__)


# Predefined coaching phrases
COACHING_PHRASES: dict[str, str] = {
    "good_form": "Great form! Keep it up!",
    "rep_complete": "Rep complete! Nice work!",
    "elbow_position": "Keep your elbows higher",
    "shoulder_level": "Keep your shoulders level",
    "core_engaged": "Remember to keep your core tight",
    "full_extension": "Great full extension!",
    "control_movement": "Focus on controlled movement",
    "breathe": "Don't forget to breathe",
    "setup_position": "Good setup position",
    "finish_strong": "Finish strong!",
}


class SpeechSynthesizer(Protocol):
    async def speak(self, text: str, priority: Priority, interrupt: bool) -> None:
        ...

    async def stop(self) -> None:
        ...


class LoggingSpeechSynthesizer:
    """Fallback synthesizer: logs what would be spoken.

    With ``simulate_duration`` it also waits roughly as long as the phrase
    would take to say (50 ms per character, at least one second).
    """

    def __init__(self, simulate_duration: bool = False, enabled: bool = True):
        self.simulate_duration = simulate_duration
        self.enabled = enabled
        self.spoken: list[str] = []
        self._current: Optional[asyncio.Task] = None

    async def speak(self, text: str, priority: Priority = "medium", interrupt: bool = False) -> None:
        if not self.enabled or not text.strip():
            return
        logger.info("[Voice Feedback] (%s) %s", priority, text)
        self.spoken.append(text)

        if self.simulate_duration:
            duration_s = max(1000, len(text) * 50) / 1000.0
            self._current = asyncio.ensure_future(asyncio.sleep(duration_s))
            try:
                await self._current
            except asyncio.CancelledError:
                logger.debug("Speech interrupted: %s", text)
            finally:
                self._current = None

    async def stop(self) -> None:
        if self._current is not None and not self._current.done():
            self._current.cancel()


def phrase_feedback(phrase_type: str, custom_text: Optional[str] = None) -> tuple[str, Priority, bool]:
    """Resolve a phrase id into (text, priority, interrupt).

    Phrase types prefixed with ``safety_`` are high priority and interrupt
    whatever is being said.
    """
    text = custom_text or COACHING_PHRASES.get(phrase_type, phrase_type)
    is_safety = phrase_type.startswith("safety_")
    return text, ("high" if is_safety else "medium"), is_safety
