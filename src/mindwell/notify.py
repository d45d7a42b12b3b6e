"""User-facing notifications."""

from __future__ import annotations

from typing import Callable

from mindwell.errors import NETWORK, RATE_LIMITED, UNAUTHORIZED, TransportError

DEFAULT_DURATION_MS = 3000

SUCCESS = "success"
ERROR = "error"

ShowCallback = Callable[[str, str, int], None]

_FAILURE_HINTS = {
    NETWORK: "Please check your internet connection.",
    UNAUTHORIZED: "Please log in again.",
    RATE_LIMITED: "Too many requests. Please wait a moment.",
}
_GENERIC_HINT = "Please try again later."


class Notifier:
    """Routes messages to a display callback, or prints them when there is none."""

    def __init__(self, show: ShowCallback | None = None, duration_ms: int = DEFAULT_DURATION_MS):
        self.show = show
        self.duration_ms = duration_ms

    def notify(self, message: str, kind: str = ERROR) -> None:
        if self.show is not None:
            self.show(message, kind, self.duration_ms)
        else:
            print(f"{kind.upper()}: {message}")

    def success(self, message: str) -> None:
        self.notify(message, SUCCESS)

    def error(self, message: str) -> None:
        self.notify(message, ERROR)


def describe_failure(error: BaseException, prefix: str = "") -> str:
    """Turn an error into a short user-facing sentence.

    The hint is chosen from the TransportError kind; anything else gets the
    generic hint.
    """
    kind = error.kind if isinstance(error, TransportError) else None
    return prefix + _FAILURE_HINTS.get(kind, _GENERIC_HINT)
