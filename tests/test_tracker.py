"""Tests for the mood tracking orchestrator."""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timezone
from typing import Any

import pytest

from mindwell.cache import MoodCache
from mindwell.config import TrackerConfig
from mindwell.errors import (
    NETWORK,
    RATE_LIMITED,
    SERVER,
    UNAUTHORIZED,
    ConcurrencyGuardError,
    TransportError,
    ValidationError,
)
from mindwell.history import DaySeries
from mindwell.moods import MOOD_MAPPINGS
from mindwell.notify import Notifier
from mindwell.tracker import HISTORY_CACHE_KEY, MoodTracker, SubmissionState, parse_mood_value

FIXED_NOW = datetime(2024, 1, 10, 8, 30, tzinfo=timezone.utc)


class FakeClient:
    """Stands in for ApiClient; records calls and replays canned outcomes."""

    def __init__(self, post_result: Any = None, history: Any = None):
        self.post_result = {"_id": "entry-1"} if post_result is None else post_result
        self.history = [] if history is None else history
        self.calls: list[tuple[str, str, Any]] = []
        self.events: list[str] = []
        self.post_gate: asyncio.Event | None = None

    async def retry_request(self, endpoint: str, method: str = "GET", body: Any = None, **kwargs) -> Any:
        self.calls.append((method, endpoint, body))
        if method == "POST":
            self.events.append("submit")
            if self.post_gate is not None:
                await self.post_gate.wait()
            outcome = self.post_result
        else:
            self.events.append("fetch")
            outcome = self.history
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def posts(self) -> list[tuple[str, str, Any]]:
        return [c for c in self.calls if c[0] == "POST"]


class FakeRenderer:
    def __init__(self):
        self.renders: list[tuple[list, list]] = []
        self.destroyed = False

    def render(self, labels, data_points):
        self.renders.append((list(labels), list(data_points)))

    def destroy(self) -> None:
        self.destroyed = True


class RecordingNotifier(Notifier):
    def __init__(self):
        super().__init__()
        self.messages: list[tuple[str, str]] = []

    def notify(self, message: str, kind: str = "error") -> None:
        self.messages.append((kind, message))


class EventCache(MoodCache):
    def __init__(self, events: list[str]):
        super().__init__()
        self.events = events

    def clear(self) -> None:
        self.events.append("invalidate")
        super().clear()


def _tracker(client: FakeClient, **kwargs) -> tuple[MoodTracker, FakeRenderer, RecordingNotifier]:
    renderer = FakeRenderer()
    notifier = RecordingNotifier()
    tracker = MoodTracker(
        client,
        config=kwargs.pop("config", TrackerConfig()),
        renderer=renderer,
        notifier=notifier,
        clock=lambda: FIXED_NOW,
        **kwargs,
    )
    return tracker, renderer, notifier


class TestValidation:
    @pytest.mark.parametrize("mood", ["", None, 5, "Ecstatic", "happy"])
    def test_bad_mood_rejected_without_requests(self, mood) -> None:
        client = FakeClient()
        tracker, _, notifier = _tracker(client)
        with pytest.raises(ValidationError):
            asyncio.run(tracker.log_mood(mood, 3))
        assert client.calls == []
        assert notifier.messages == []
        assert tracker.state is SubmissionState.IDLE

    @pytest.mark.parametrize("value", [0, 6, -1, "abc", "", None, 3.5, True])
    def test_bad_value_rejected_without_requests(self, value) -> None:
        client = FakeClient()
        tracker, _, _ = _tracker(client)
        with pytest.raises(ValidationError):
            asyncio.run(tracker.log_mood("Okay", value))
        assert client.calls == []

    def test_parse_mood_value(self) -> None:
        assert parse_mood_value(4) == 4
        assert parse_mood_value("4") == 4
        assert parse_mood_value(" 2 ") == 2
        assert parse_mood_value(3.0) == 3
        assert parse_mood_value(3.5) is None
        assert parse_mood_value(False) is None
        assert parse_mood_value([4]) is None

    def test_custom_mood_table(self) -> None:
        config = TrackerConfig(moods={"Calm": MOOD_MAPPINGS["Okay"]})
        tracker, _, _ = _tracker(FakeClient(), config=config)
        assert tracker.validate_mood_input("Calm", 3) == 3
        with pytest.raises(ValidationError):
            tracker.validate_mood_input("Happy", 5)


class TestLogMood:
    @pytest.mark.parametrize("mood", list(MOOD_MAPPINGS))
    def test_each_mood_submits_one_entry(self, mood) -> None:
        client = FakeClient()
        tracker, _, _ = _tracker(client)
        value = MOOD_MAPPINGS[mood].value

        result = asyncio.run(tracker.log_mood(mood, value))

        assert result == {"_id": "entry-1"}
        assert len(client.posts) == 1
        body = client.posts[0][2]
        assert body["mood"] == mood
        assert body["value"] == value
        assert tracker.state is SubmissionState.CONFIRMED
        assert tracker.last_entry.mood == mood

    def test_payload_shape(self) -> None:
        client = FakeClient()
        tracker, _, _ = _tracker(client)
        asyncio.run(tracker.log_mood("Good", "4"))

        method, endpoint, body = client.posts[0]
        assert endpoint == "/api/mood"
        assert body["value"] == 4
        assert body["timestamp"] == "2024-01-10T08:30:00.000Z"
        assert set(body["clientInfo"]) == {"userAgent", "timezone"}

    def test_submit_invalidate_refetch_order(self) -> None:
        client = FakeClient()
        tracker, _, _ = _tracker(client, cache=EventCache(client.events))
        asyncio.run(tracker.log_mood("Okay", 3))
        assert client.events == ["submit", "invalidate", "fetch"]

    def test_cached_history_is_bypassed_after_submit(self) -> None:
        client = FakeClient(history=[{"date": date.today().isoformat(), "value": 5}])
        tracker, _, _ = _tracker(client)
        stale = DaySeries(labels=["x"] * 7, data_points=[1] * 7)
        tracker.cache.set(HISTORY_CACHE_KEY, stale)

        asyncio.run(tracker.log_mood("Happy", 5))

        cached = tracker.cache.get(HISTORY_CACHE_KEY)
        assert cached is not stale
        assert cached.data_points[-1] == 5

    def test_success_notification(self) -> None:
        tracker, _, notifier = _tracker(FakeClient())
        asyncio.run(tracker.log_mood("Happy", 5))
        assert notifier.messages[-1] == ("success", "Mood logged successfully: Happy 😊")

    def test_submission_failure_rolls_back(self) -> None:
        client = FakeClient(post_result=TransportError("HTTP 500: Internal Server Error", kind=SERVER, status=500))
        tracker, _, notifier = _tracker(client)
        tracker.selected_mood = "Good"

        with pytest.raises(TransportError):
            asyncio.run(tracker.log_mood("Sad", 1))

        assert tracker.state is SubmissionState.FAILED
        assert tracker.selected_mood == "Good"
        assert tracker.last_entry is None
        assert tracker.pending_entry is None
        assert not tracker.is_loading
        # No refetch after a failed submission
        assert [c[0] for c in client.calls] == ["POST"]
        assert notifier.messages == [("error", "Failed to log mood. Please try again later.")]

    @pytest.mark.parametrize(
        "kind, hint",
        [
            (NETWORK, "Please check your internet connection."),
            (UNAUTHORIZED, "Please log in again."),
            (RATE_LIMITED, "Too many requests. Please wait a moment."),
        ],
    )
    def test_failure_notification_categories(self, kind, hint) -> None:
        client = FakeClient(post_result=TransportError("failed", kind=kind))
        tracker, _, notifier = _tracker(client)
        with pytest.raises(TransportError):
            asyncio.run(tracker.log_mood("Okay", 3))
        assert notifier.messages == [("error", f"Failed to log mood. {hint}")]

    def test_state_is_submitting_while_in_flight(self) -> None:
        client = FakeClient()
        tracker, _, _ = _tracker(client)

        async def scenario() -> None:
            client.post_gate = asyncio.Event()
            task = asyncio.create_task(tracker.log_mood("Good", 4))
            while not client.posts:
                await asyncio.sleep(0)

            assert tracker.state is SubmissionState.SUBMITTING
            assert tracker.pending_entry is not None
            assert tracker.pending_entry.mood == "Good"
            assert tracker.selected_mood == "Good"
            assert tracker.is_loading

            client.post_gate.set()
            await task

        asyncio.run(scenario())
        assert tracker.state is SubmissionState.CONFIRMED
        assert tracker.pending_entry is None

    def test_second_call_while_pending_is_rejected(self) -> None:
        client = FakeClient()
        tracker, _, _ = _tracker(client)

        async def scenario() -> Any:
            client.post_gate = asyncio.Event()
            first = asyncio.create_task(tracker.log_mood("Good", 4))
            while not client.posts:
                await asyncio.sleep(0)

            with pytest.raises(ConcurrencyGuardError, match="still in progress"):
                await tracker.log_mood("Sad", 1)

            client.post_gate.set()
            return await first

        result = asyncio.run(scenario())
        assert result == {"_id": "entry-1"}
        assert len(client.posts) == 1
        assert client.posts[0][2]["mood"] == "Good"
        assert tracker.state is SubmissionState.CONFIRMED

    def test_guard_released_after_completion(self) -> None:
        client = FakeClient()
        tracker, _, _ = _tracker(client)
        asyncio.run(tracker.log_mood("Good", 4))
        asyncio.run(tracker.log_mood("Okay", 3))
        assert len(client.posts) == 2

    def test_refresh_failure_after_confirmed_submit(self) -> None:
        client = FakeClient(history=TransportError("down", kind=NETWORK))
        tracker, renderer, notifier = _tracker(client)

        with pytest.raises(TransportError):
            asyncio.run(tracker.log_mood("Good", 4))

        assert tracker.state is SubmissionState.CONFIRMED
        assert renderer.renders[-1] == ([], [])
        assert ("error", "Unable to load mood history. Please try again later.") in notifier.messages
        assert notifier.messages[-1] == ("error", "Failed to log mood. Please check your internet connection.")


class TestFetchMoodHistory:
    def test_fetch_processes_caches_and_renders(self) -> None:
        today = datetime.now().astimezone().date()
        client = FakeClient(history=[{"date": today.isoformat(), "value": 4}])
        tracker, renderer, _ = _tracker(client)

        series = asyncio.run(tracker.fetch_mood_history())

        assert series.data_points == [None] * 6 + [4]
        assert tracker.cache.get(HISTORY_CACHE_KEY) is series
        assert renderer.renders == [(series.labels, series.data_points)]

    def test_cache_hit_skips_network(self) -> None:
        client = FakeClient()
        tracker, renderer, _ = _tracker(client)
        cached = DaySeries(labels=["a"] * 7, data_points=[3] * 7)
        tracker.cache.set(HISTORY_CACHE_KEY, cached)

        assert asyncio.run(tracker.fetch_mood_history()) is cached
        assert client.calls == []
        assert renderer.renders == [(["a"] * 7, [3] * 7)]

    def test_force_refresh_bypasses_cache(self) -> None:
        client = FakeClient()
        tracker, _, _ = _tracker(client)
        cached = DaySeries(labels=["a"] * 7, data_points=[3] * 7)
        tracker.cache.set(HISTORY_CACHE_KEY, cached)

        series = asyncio.run(tracker.fetch_mood_history(force_refresh=True))
        assert series is not cached
        assert client.calls == [("GET", "/api/mood/history", None)]

    def test_failure_renders_empty_chart_and_reraises(self) -> None:
        client = FakeClient(history=TransportError("HTTP 500: oops", kind=SERVER, status=500))
        tracker, renderer, notifier = _tracker(client)

        with pytest.raises(TransportError, match="oops"):
            asyncio.run(tracker.fetch_mood_history())

        assert renderer.renders == [([], [])]
        assert notifier.messages == [("error", "Unable to load mood history. Please try again later.")]
        assert tracker.cache.get(HISTORY_CACHE_KEY) is None

    def test_injected_empty_cache_is_used(self) -> None:
        now = [0.0]
        cache = MoodCache(ttl=10, clock=lambda: now[0])
        client = FakeClient()
        tracker, _, _ = _tracker(client, cache=cache)
        assert tracker.cache is cache

        asyncio.run(tracker.fetch_mood_history())
        assert HISTORY_CACHE_KEY in cache

        now[0] = 11.0
        asyncio.run(tracker.fetch_mood_history())
        assert [c[0] for c in client.calls] == ["GET", "GET"]

    def test_unexpected_payload(self) -> None:
        client = FakeClient(history={"items": []})
        tracker, renderer, _ = _tracker(client)
        with pytest.raises(TransportError, match="Unexpected mood history payload"):
            asyncio.run(tracker.fetch_mood_history())
        assert renderer.renders == [([], [])]

    def test_destroy(self) -> None:
        tracker, renderer, _ = _tracker(FakeClient())
        asyncio.run(tracker.fetch_mood_history())
        tracker.destroy()
        assert renderer.destroyed
        assert tracker.cache.get(HISTORY_CACHE_KEY) is None
