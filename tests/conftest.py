"""Shared fixtures for the form coach tests."""

import os

import pytest

# Keep the agent on its rule-based path during tests
os.environ.setdefault("GEMINI_API_KEY", "")


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class RecordingSpeech:
    """Speech synthesizer stub that remembers what it was asked to say."""

    def __init__(self, fail_on: str | None = None):
        self.spoken: list[tuple[str, str, bool]] = []
        self.stop_calls = 0
        self.fail_on = fail_on

    async def speak(self, text, priority, interrupt):
        if self.fail_on is not None and text == self.fail_on:
            raise RuntimeError("synthesis backend unavailable")
        self.spoken.append((text, priority, interrupt))

    async def stop(self):
        self.stop_calls += 1

    @property
    def texts(self) -> list[str]:
        return [text for text, _, _ in self.spoken]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def speech():
    return RecordingSpeech()
