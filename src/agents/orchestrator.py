"""
Coaching orchestrator: decides which feedback is spoken.

Every candidate message is shown on screen. Speech is rate limited: a message
is spoken only when it asks to be and at least ``cooldown_ms`` have passed
since the last spoken cue. Spoken messages are queued and played one at a
time; urgent safety messages interrupt current speech and jump the queue.
"""

import asyncio
import logging
import time
from collections import deque
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, Field

from .config import SPEECH_COOLDOWN_MS
from .speech import LoggingSpeechSynthesizer, SpeechSynthesizer
from .state import CoachingFeedback, Priority

logger = logging.getLogger(__name__)


def _now_ms() -> float:
    return time.monotonic() * 1000.0


class SpeechRequest(BaseModel):
    text: str
    priority: Priority
    interrupt: bool = False


class OrchestratorDecision(BaseModel):
    """What to show and what was accepted for speech on this tick."""
    display: list[str] = Field(default_factory=list)
    spoken: list[CoachingFeedback] = Field(default_factory=list)
    suppressed: list[CoachingFeedback] = Field(
        default_factory=list,
        description="Wanted speech but fell inside the cooldown window",
    )


class CoachingOrchestrator:
    """Rate limiter plus priority queue in front of a speech synthesizer."""

    def __init__(
        self,
        speech: Optional[SpeechSynthesizer] = None,
        cooldown_ms: float = SPEECH_COOLDOWN_MS,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.speech = speech or LoggingSpeechSynthesizer()
        self.cooldown_ms = cooldown_ms
        self.clock = clock or _now_ms
        self.last_spoken_time: Optional[float] = None
        self.queue: deque[SpeechRequest] = deque()
        self.is_speaking = False
        self._drain_task: Optional[asyncio.Task] = None

    def cooldown_elapsed(self, now: Optional[float] = None) -> bool:
        if self.last_spoken_time is None:
            return True
        now = self.clock() if now is None else now
        return now - self.last_spoken_time >= self.cooldown_ms

    async def submit(self, items: Iterable[CoachingFeedback]) -> OrchestratorDecision:
        """Route a batch of candidate feedback items.

        Returns the decision; accepted speech is queued but not played until
        ``process_queue`` runs.
        """
        decision = OrchestratorDecision()
        for item in items:
            decision.display.append(item.message)
            if not item.should_speak:
                continue

            now = self.clock()
            if not self.cooldown_elapsed(now):
                decision.suppressed.append(item)
                continue

            self.last_spoken_time = now
            await self._enqueue(item)
            decision.spoken.append(item)

        return decision

    async def _enqueue(self, item: CoachingFeedback) -> None:
        interrupt = item.priority == "high" and item.type == "safety"
        request = SpeechRequest(text=item.message, priority=item.priority, interrupt=interrupt)

        if interrupt:
            if self.is_speaking:
                try:
                    await self.speech.stop()
                except Exception as e:
                    logger.warning("Failed to stop current speech: %s", e)
            self.queue.clear()

        if item.priority == "high":
            self.queue.appendleft(request)
        else:
            self.queue.append(request)

    async def process_queue(self) -> None:
        """Speak queued requests one after another until the queue is empty."""
        if self.is_speaking:
            return
        self.is_speaking = True
        try:
            while self.queue:
                request = self.queue.popleft()
                try:
                    await self.speech.speak(request.text, request.priority, request.interrupt)
                except Exception as e:
                    logger.warning("Speech synthesis failed for '%s': %s", request.text, e)
        finally:
            self.is_speaking = False

    def schedule_drain(self) -> Optional[asyncio.Task]:
        """Start draining in the background if nothing is draining already."""
        if not self.queue or self.is_speaking:
            return None
        if self._drain_task is not None and not self._drain_task.done():
            return self._drain_task
        self._drain_task = asyncio.ensure_future(self.process_queue())
        return self._drain_task

    def clear_queue(self) -> None:
        self.queue.clear()

    async def stop(self) -> None:
        """Empty the queue and silence the synthesizer."""
        self.clear_queue()
        if self._drain_task is not None and not self._drain_task.done():
            self._drain_task.cancel()
        self._drain_task = None
        try:
            await self.speech.stop()
        except Exception as e:
            logger.warning("Failed to stop speech: %s", e)
        self.is_speaking = False
