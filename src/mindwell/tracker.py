"""Mood tracking pipeline: submit entries, refresh and chart the history."""

from __future__ import annotations

import logging
import platform
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

from mindwell.api_client import ApiClient
from mindwell.cache import MoodCache
from mindwell.chart import ChartRenderer
from mindwell.config import TrackerConfig
from mindwell.errors import INVALID_RESPONSE, ConcurrencyGuardError, TransportError, ValidationError
from mindwell.history import DaySeries, process_history_data
from mindwell.moods import MAX_MOOD_VALUE, MIN_MOOD_VALUE
from mindwell.notify import Notifier, describe_failure

logger = logging.getLogger(__name__)

HISTORY_CACHE_KEY = "mood_history"


class SubmissionState(Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class MoodEntry:
    """A single mood observation as sent to the backend."""

    mood: str
    value: int
    timestamp: str  # ISO 8601, UTC

    def to_payload(self, client_info: dict[str, str] | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "mood": self.mood,
            "value": self.value,
            "timestamp": self.timestamp,
        }
        if client_info is not None:
            payload["clientInfo"] = client_info
        return payload


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso_utc(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def client_info() -> dict[str, str]:
    """Metadata attached to submitted entries."""
    return {
        "userAgent": f"mindwell-client Python/{platform.python_version()}",
        "timezone": datetime.now().astimezone().tzname() or "UTC",
    }


def parse_mood_value(value: Any) -> int | None:
    """Parse a mood value given as an int, integral float or numeric string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


class MoodTracker:
    """Orchestrates mood submission and the 7-day history chart.

    Submission goes through a two-phase state: SUBMITTING while the entry is
    in flight, then CONFIRMED or FAILED. The optimistic selected_mood set on
    entering SUBMITTING is rolled back on failure. Only one log_mood call may
    be in progress at a time.
    """

    def __init__(
        self,
        client: ApiClient,
        config: TrackerConfig | None = None,
        cache: MoodCache | None = None,
        renderer: ChartRenderer | None = None,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.client = client
        self.config = config if config is not None else TrackerConfig()
        self.cache = cache if cache is not None else MoodCache(ttl=self.config.cache_ttl)
        self.renderer = renderer
        if notifier is None:
            notifier = Notifier(duration_ms=self.config.notification_duration)
        self.notifier = notifier
        self._clock = clock

        self.state = SubmissionState.IDLE
        self.pending_entry: MoodEntry | None = None
        self.last_entry: MoodEntry | None = None
        self.selected_mood: str | None = None
        self._busy = False

    @property
    def is_loading(self) -> bool:
        return self._busy

    def validate_mood_input(self, mood: Any, value: Any) -> int:
        """Check a mood/value pair and return the parsed value.

        Raises:
            ValidationError: If the mood is unknown or the value is not an
                integer in 1..5.
        """
        if not mood or not isinstance(mood, str):
            raise ValidationError("Invalid mood data provided: mood must be a non-empty string")
        if mood not in self.config.moods:
            raise ValidationError(f"Invalid mood data provided: unknown mood {mood!r}")

        parsed = parse_mood_value(value)
        if parsed is None or not MIN_MOOD_VALUE <= parsed <= MAX_MOOD_VALUE:
            raise ValidationError(
                f"Invalid mood data provided: value must be an integer "
                f"{MIN_MOOD_VALUE}-{MAX_MOOD_VALUE}, got {value!r}"
            )
        return parsed

    async def log_mood(self, mood: str, value: Any) -> Any:
        """Validate, submit and confirm a mood entry, then refresh the history.

        Returns:
            The backend's JSON response for the created entry.

        Raises:
            ValidationError: Bad input; nothing is sent.
            ConcurrencyGuardError: Another log_mood call is still running.
            TransportError: Submission or history refresh failed.
        """
        parsed = self.validate_mood_input(mood, value)
        if self._busy:
            raise ConcurrencyGuardError(
                "Please wait for the previous mood entry to complete: previous entry still in progress"
            )

        self._busy = True
        try:
            result = await self._submit(mood.strip(), parsed)

            # Submission confirmed; force the next history read to hit the network
            self.cache.clear()
            await self.fetch_mood_history()

            emoji = self.config.moods[mood].emoji
            self.notifier.success(f"Mood logged successfully: {mood} {emoji}")
            return result
        except Exception as e:
            logger.error("Mood logging failed: %s", e)
            self.notifier.error(describe_failure(e, prefix="Failed to log mood. "))
            raise
        finally:
            self._busy = False

    async def _submit(self, mood: str, value: int) -> Any:
        entry = MoodEntry(mood=mood, value=value, timestamp=_iso_utc(self._clock()))
        previous_selection = self.selected_mood

        self.state = SubmissionState.SUBMITTING
        self.pending_entry = entry
        self.selected_mood = entry.mood
        logger.debug("Submitting mood entry: %s", entry)

        try:
            result = await self.client.retry_request(
                self.config.api_endpoint,
                method="POST",
                body=entry.to_payload(client_info()),
            )
        except Exception:
            self.state = SubmissionState.FAILED
            self.selected_mood = previous_selection
            raise
        else:
            self.state = SubmissionState.CONFIRMED
            self.last_entry = entry
            logger.info("Logged mood %s (%d)", entry.mood, entry.value)
            return result
        finally:
            self.pending_entry = None

    async def fetch_mood_history(self, force_refresh: bool = False) -> DaySeries:
        """Return the 7-day series, from cache unless forced or expired.

        The series is rendered either way. On failure an empty chart is
        rendered and the error re-raised.
        """
        if not force_refresh:
            cached = self.cache.get(HISTORY_CACHE_KEY)
            if cached is not None:
                self._render(cached.labels, cached.data_points)
                return cached

        try:
            history = await self.client.retry_request(self.config.history_endpoint)
            if history is None:
                history = []
            if not isinstance(history, list):
                raise TransportError(
                    f"Unexpected mood history payload: {type(history).__name__}",
                    kind=INVALID_RESPONSE,
                )
            series = process_history_data(history)
        except Exception as e:
            logger.error("Failed to fetch mood history: %s", e)
            self.notifier.error("Unable to load mood history. Please try again later.")
            self._render([], [])
            raise

        self.cache.set(HISTORY_CACHE_KEY, series)
        self._render(series.labels, series.data_points)
        return series

    def _render(self, labels: list[str], data_points: list[int | None]) -> None:
        if self.renderer is not None:
            self.renderer.render(labels, data_points)

    def destroy(self) -> None:
        if self.renderer is not None:
            self.renderer.destroy()
        self.cache.clear()
