"""Tests for the live workout session and workout history."""

import asyncio
import json

import pytest

from src.agents.state import ExerciseSet, WorkoutSession
from src.pipelines.session import SessionTracker
from src.pipelines.storage import WorkoutStore
from src.pipelines.utils import generate_fallback_feedback
from src.pose import MockPoseSource, pose_from_angles


def _session(session_id, score, duration, sets=None):
    return WorkoutSession(
        id=session_id,
        exercise_id="overhead-press",
        exercise_name="Overhead Press",
        duration=duration,
        sets=sets or [],
        total_reps=sum(s.reps for s in sets or []),
        average_form_score=score,
    )


@pytest.fixture
def store(tmp_path):
    return WorkoutStore(tmp_path / "workouts.json")


@pytest.fixture
def tracker(store, speech, clock):
    return SessionTracker("overhead-press", store=store, speech=speech, clock=clock, session_id="s1")


# ============================================================================
# Test: SessionTracker
# ============================================================================

class TestSessionTracker:

    def test_counts_reps_with_debounce(self, tracker, clock):
        extended = pose_from_angles(175, 175)

        async def run():
            results = []
            for step in (0, 500, 1000):
                clock.advance(step)
                results.append(await tracker.process_frame(extended))
            return results

        results = asyncio.run(run())
        assert [r.analysis.rep_count for r in results] == [1, 0, 1]
        assert results[-1].set_reps == 2
        assert results[0].spoken == ["Rep 1 complete!"]
        assert results[1].spoken == []
        assert results[-1].running_score == 100

    def test_finish_set_rolls_totals(self, tracker, clock):
        async def run():
            await tracker.process_frame(pose_from_angles(175, 175))
            clock.advance(1500)
            await tracker.process_frame(pose_from_angles(80, 170))

        asyncio.run(run())
        clock.advance(60_000)
        completed = tracker.finish_set()

        assert completed.set_number == 1
        assert completed.reps == 1
        assert completed.form_scores == [100, 65]
        assert "Lift your elbows higher" in completed.feedback_notes
        assert tracker.current_set == 2
        assert tracker.set_reps == 0
        assert tracker.session.total_reps == 1
        assert tracker.session.average_form_score == 82.5
        assert tracker.session.duration == pytest.approx(61.5)

    def test_end_persists_once(self, tracker, store, tmp_path):
        asyncio.run(tracker.process_frame(pose_from_angles(175, 175)))
        session = asyncio.run(tracker.end())

        assert session.set_count == 1
        assert session.ended_at is not None
        assert tracker.is_finished

        again = asyncio.run(tracker.end())
        assert again is session
        assert [w.id for w in WorkoutStore(tmp_path / "workouts.json").list_workouts()] == ["s1"]

    def test_end_without_pending_frames_adds_no_set(self, tracker):
        asyncio.run(tracker.process_frame(pose_from_angles(175, 175)))
        tracker.finish_set()
        session = asyncio.run(tracker.end())
        assert session.set_count == 1

    def test_repeated_finish_set_adds_no_empty_set(self, tracker):
        asyncio.run(tracker.process_frame(pose_from_angles(175, 175)))
        first = tracker.finish_set()
        assert tracker.has_pending_set is False

        again = tracker.finish_set()
        assert again is first
        assert tracker.session.set_count == 1
        assert tracker.current_set == 2

    def test_idle_time_resets_on_frames(self, tracker, clock):
        clock.advance(5000)
        assert tracker.idle_seconds() == 5
        asyncio.run(tracker.process_frame(pose_from_angles(120, 120)))
        assert tracker.idle_seconds() == 0
        clock.advance(2500)
        assert tracker.idle_seconds() == 2.5

    def test_record_stops_after_max_frames(self, store, speech):
        tracker = SessionTracker("boxing-combo", store=store, speech=speech)
        processed = asyncio.run(
            tracker.record(MockPoseSource(seed=5).frames(), interval_ms=0, max_frames=4)
        )
        assert processed == 4
        assert len(tracker.set_scores) == 4
        assert tracker.is_recording is False
        assert tracker.session.exercise_name == "Boxing Combo"

    def test_unknown_exercise_name(self, store, speech):
        tracker = SessionTracker("deadlift", store=store, speech=speech)
        assert tracker.session.exercise_name == "Unknown Exercise"


# ============================================================================
# Test: WorkoutStore
# ============================================================================

class TestWorkoutStore:

    def test_newest_first_and_replace_by_id(self, store):
        store.save(_session("a", 80, 600))
        store.save(_session("b", 90, 300))
        store.save(_session("a", 85, 600))
        assert [w.id for w in store.list_workouts()] == ["a", "b"]
        assert store.recent(1)[0].average_form_score == 85

    def test_stats(self, store):
        store.save(_session("a", 80, 600))
        store.save(_session("b", 90, 300))
        stats = store.stats()
        assert stats.total_workouts == 2
        assert stats.average_score == 85
        assert stats.total_minutes == 15

    def test_empty_stats(self, store):
        assert store.stats().model_dump() == {
            "total_workouts": 0, "average_score": 0, "total_minutes": 0,
        }

    def test_round_trip_through_file(self, store, tmp_path):
        sets = [ExerciseSet(set_number=1, reps=8, form_scores=[90, 85])]
        store.save(_session("a", 87.5, 420, sets))
        reloaded = WorkoutStore(tmp_path / "workouts.json").list_workouts()
        assert reloaded[0].sets[0].form_scores == [90, 85]
        assert reloaded[0].total_reps == 8

    def test_corrupt_file_is_ignored(self, tmp_path):
        path = tmp_path / "workouts.json"
        path.write_text("{not json", encoding="utf-8")
        store = WorkoutStore(path)
        assert store.list_workouts() == []

        store.save(_session("a", 80, 60))
        assert json.loads(path.read_text(encoding="utf-8"))[0]["id"] == "a"

    @pytest.mark.parametrize("content", [
        b"\xff\xfe\x00garbage",
        b"5",
        b'{"id": "a"}',
        b'[{"id": "a"}]',
    ])
    def test_malformed_history_is_ignored(self, tmp_path, content):
        path = tmp_path / "workouts.json"
        path.write_bytes(content)
        store = WorkoutStore(path)
        assert store.list_workouts() == []
        assert store.stats().total_workouts == 0

    def test_stats_round_halves_up(self, store):
        store.save(_session("a", 80, 90))
        store.save(_session("b", 85, 60))
        stats = store.stats()
        assert stats.average_score == 83
        assert stats.total_minutes == 3

    def test_memory_only_store(self):
        store = WorkoutStore()
        store.save(_session("a", 80, 60))
        assert len(store.list_workouts()) == 1


# ============================================================================
# Test: fallback summary
# ============================================================================

class TestFallbackFeedback:

    def test_fatigue_and_top_note(self):
        sets = [
            ExerciseSet(set_number=1, reps=10, form_scores=[95, 92],
                        feedback_notes=["Excellent form!", "Keep both arms even"]),
            ExerciseSet(set_number=2, reps=6, form_scores=[70, 72],
                        feedback_notes=["Keep both arms even", "Full lockout overhead"]),
        ]
        tips = generate_fallback_feedback(_session("a", 82, 600, sets))

        assert tips[0].startswith("Good form overall (82/100)")
        assert tips[1] == "You completed 16 reps across 2 sets."
        assert tips[2] == "Focus on improving: Keep both arms even."
        assert tips[3].startswith("Fatigue detected")

    @pytest.mark.parametrize("score, prefix", [
        (90, "Excellent form!"),
        (65, "Your average score was 65/100"),
        (40, "Your form needs attention"),
    ])
    def test_score_tiers(self, score, prefix):
        tips = generate_fallback_feedback(_session("a", score, 60))
        assert tips[0].startswith(prefix)
        assert tips[1] == "You completed 0 reps across 0 sets."
