"""Exception types raised by the MindWell client."""

from __future__ import annotations

# TransportError.kind values
NETWORK = "network"
UNAUTHORIZED = "unauthorized"
RATE_LIMITED = "rate_limited"
CLIENT = "client"
SERVER = "server"
INVALID_RESPONSE = "invalid_response"


class MindWellError(Exception):
    """Base class for all MindWell client errors."""


class ValidationError(MindWellError):
    """Raised when user input is rejected before reaching the network."""


class ConcurrencyGuardError(MindWellError):
    """Raised when an operation is already in progress."""


class TransportError(MindWellError):
    """Raised when an HTTP call fails.

    Attributes:
        kind: Failure category, tagged where the failure is detected.
        status: HTTP status code, or None for network-level failures.
    """

    def __init__(self, message: str, kind: str = NETWORK, status: int | None = None):
        super().__init__(message)
        self.kind = kind
        self.status = status

    @classmethod
    def from_status(cls, status: int, message: str) -> TransportError:
        return cls(message, kind=kind_for_status(status), status=status)

    @property
    def retryable(self) -> bool:
        """Whether repeating the same request could plausibly succeed."""
        return self.kind not in (CLIENT, UNAUTHORIZED)


def kind_for_status(status: int) -> str:
    """Map an HTTP status code to a TransportError kind."""
    if status == 401:
        return UNAUTHORIZED
    if status == 429:
        return RATE_LIMITED
    if 400 <= status < 500:
        return CLIENT
    return SERVER
