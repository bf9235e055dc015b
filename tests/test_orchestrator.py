"""Tests for speech rate limiting and the speech queue."""

import asyncio

import pytest

from src.agents.orchestrator import CoachingOrchestrator
from src.agents.speech import LoggingSpeechSynthesizer, phrase_feedback
from src.agents.state import CoachingFeedback

from conftest import RecordingSpeech


def _feedback(message, priority="medium", type="technique", should_speak=True, timestamp=0.0):
    return CoachingFeedback(
        type=type, message=message, priority=priority,
        timestamp=timestamp, should_speak=should_speak,
    )


@pytest.fixture
def orchestrator(speech, clock):
    return CoachingOrchestrator(speech=speech, cooldown_ms=3000, clock=clock)


# ============================================================================
# Test: cooldown
# ============================================================================

class TestCooldown:

    def test_everything_is_displayed(self, orchestrator):
        items = [_feedback("A"), _feedback("B", should_speak=False), _feedback("C")]
        decision = asyncio.run(orchestrator.submit(items))
        assert decision.display == ["A", "B", "C"]

    def test_only_first_speakable_item_per_window(self, orchestrator):
        decision = asyncio.run(orchestrator.submit([_feedback("A"), _feedback("B")]))
        assert [i.message for i in decision.spoken] == ["A"]
        assert [i.message for i in decision.suppressed] == ["B"]

    def test_second_cue_inside_window_is_dropped(self, orchestrator, clock):
        asyncio.run(orchestrator.submit([_feedback("Elbows up")]))
        clock.advance(500)
        decision = asyncio.run(orchestrator.submit([_feedback("Press evenly")]))
        assert decision.spoken == []
        assert decision.display == ["Press evenly"]
        assert [r.text for r in orchestrator.queue] == ["Elbows up"]

    def test_cue_after_window_is_spoken(self, orchestrator, clock):
        asyncio.run(orchestrator.submit([_feedback("Elbows up")]))
        clock.advance(3000)
        decision = asyncio.run(orchestrator.submit([_feedback("Press evenly")]))
        assert [i.message for i in decision.spoken] == ["Press evenly"]

    def test_suppressed_items_do_not_extend_window(self, orchestrator, clock):
        asyncio.run(orchestrator.submit([_feedback("A")]))
        clock.advance(2000)
        asyncio.run(orchestrator.submit([_feedback("B")]))
        clock.advance(1000)
        decision = asyncio.run(orchestrator.submit([_feedback("C")]))
        assert [i.message for i in decision.spoken] == ["C"]

    def test_display_only_items_never_enqueue(self, orchestrator):
        asyncio.run(orchestrator.submit([_feedback("Nice", should_speak=False)]))
        assert len(orchestrator.queue) == 0
        assert orchestrator.last_spoken_time is None


# ============================================================================
# Test: queue ordering & interrupts
# ============================================================================

class TestSpeechQueue:

    def _submit_spaced(self, orchestrator, clock, items):
        async def run():
            for item in items:
                await orchestrator.submit([item])
                clock.advance(3000)
        asyncio.run(run())

    def test_fifo_order(self, orchestrator, clock, speech):
        self._submit_spaced(orchestrator, clock, [_feedback("first"), _feedback("second")])
        asyncio.run(orchestrator.process_queue())
        assert speech.texts == ["first", "second"]
        assert orchestrator.is_speaking is False

    def test_high_priority_goes_to_front(self, orchestrator, clock, speech):
        self._submit_spaced(orchestrator, clock, [
            _feedback("tempo"),
            _feedback("Rep 3 complete!", priority="high", type="rep_count"),
        ])
        asyncio.run(orchestrator.process_queue())
        assert speech.texts == ["Rep 3 complete!", "tempo"]
        # Only safety messages interrupt
        assert [interrupt for _, _, interrupt in speech.spoken] == [False, False]

    def test_safety_message_interrupts_and_clears(self, orchestrator, clock, speech):
        self._submit_spaced(orchestrator, clock, [_feedback("one"), _feedback("two")])
        orchestrator.is_speaking = True
        self._submit_spaced(orchestrator, clock, [
            _feedback("Lift your elbows higher", priority="high", type="safety"),
        ])
        assert speech.stop_calls == 1
        assert [r.text for r in orchestrator.queue] == ["Lift your elbows higher"]
        assert orchestrator.queue[0].interrupt is True

        orchestrator.is_speaking = False
        asyncio.run(orchestrator.process_queue())
        assert speech.texts == ["Lift your elbows higher"]

    def test_safety_message_when_idle_does_not_stop(self, orchestrator, clock, speech):
        self._submit_spaced(orchestrator, clock, [
            _feedback("Keep your hands up", priority="high", type="safety"),
        ])
        assert speech.stop_calls == 0

    def test_process_queue_is_single_flight(self, orchestrator, clock, speech):
        self._submit_spaced(orchestrator, clock, [_feedback("one")])
        orchestrator.is_speaking = True
        asyncio.run(orchestrator.process_queue())
        assert speech.texts == []
        assert len(orchestrator.queue) == 1

    def test_failed_utterance_does_not_stop_queue(self, clock):
        speech = RecordingSpeech(fail_on="broken")
        orchestrator = CoachingOrchestrator(speech=speech, cooldown_ms=3000, clock=clock)
        self._submit_spaced(orchestrator, clock, [_feedback("broken"), _feedback("works")])
        asyncio.run(orchestrator.process_queue())
        assert speech.texts == ["works"]
        assert orchestrator.is_speaking is False

    def test_schedule_drain_runs_in_background(self, orchestrator, clock, speech):
        async def run():
            await orchestrator.submit([_feedback("Push the ceiling away")])
            task = orchestrator.schedule_drain()
            assert task is not None
            await task

        asyncio.run(run())
        assert speech.texts == ["Push the ceiling away"]

    def test_schedule_drain_with_empty_queue(self, orchestrator):
        async def run():
            return orchestrator.schedule_drain()

        assert asyncio.run(run()) is None

    def test_stop_clears_queue(self, orchestrator, clock, speech):
        self._submit_spaced(orchestrator, clock, [_feedback("one"), _feedback("two")])
        asyncio.run(orchestrator.stop())
        assert len(orchestrator.queue) == 0
        assert speech.stop_calls == 1


# ============================================================================
# Test: speech synthesizer
# ============================================================================

class TestLoggingSpeech:

    def test_records_spoken_text(self):
        synth = LoggingSpeechSynthesizer()
        asyncio.run(synth.speak("Great form! Keep it up!"))
        assert synth.spoken == ["Great form! Keep it up!"]

    def test_disabled_or_blank_is_silent(self):
        synth = LoggingSpeechSynthesizer(enabled=False)
        asyncio.run(synth.speak("hello"))
        assert synth.spoken == []

        synth = LoggingSpeechSynthesizer()
        asyncio.run(synth.speak("   "))
        assert synth.spoken == []

    def test_stop_cuts_simulated_speech_short(self):
        synth = LoggingSpeechSynthesizer(simulate_duration=True)

        async def run():
            talking = asyncio.ensure_future(synth.speak("x" * 400))
            await asyncio.sleep(0.05)
            await synth.stop()
            await asyncio.wait_for(talking, timeout=1.0)

        asyncio.run(run())
        assert synth.spoken == ["x" * 400]

    def test_phrase_feedback(self):
        assert phrase_feedback("good_form") == ("Great form! Keep it up!", "medium", False)
        text, priority, interrupt = phrase_feedback("safety_guard", "Hands up!")
        assert (text, priority, interrupt) == ("Hands up!", "high", True)
