"""JSON-over-HTTP client for the MindWell backend, using urllib.request."""

from __future__ import annotations

import asyncio
import http.client
import json
import logging
import urllib.error
import urllib.request
from typing import Any, Awaitable, Callable

from mindwell.credentials import CredentialStore
from mindwell.errors import INVALID_RESPONSE, NETWORK, TransportError

logger = logging.getLogger(__name__)

AUTH_HEADER = "x-auth-token"


class ApiClient:
    """Minimal MindWell API client with bounded linear-backoff retry.

    Blocking socket I/O runs in a worker thread via asyncio.to_thread so the
    event loop stays free while a request is in flight.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        credentials: CredentialStore | None = None,
        timeout: float = 30,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        retry_client_errors: bool = False,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.retry_client_errors = retry_client_errors
        self._sleep = sleep

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Issue a single JSON request.

        Args:
            endpoint: Path appended to the base URL, e.g. "/api/mood".
            method: HTTP method.
            body: JSON-serialisable request body, or None.
            headers: Extra headers; these win over the defaults.

        Returns:
            The decoded JSON response body (None for an empty body).

        Raises:
            TransportError: On any network, HTTP or decoding failure.
        """
        req = self._build_request(endpoint, method, body, headers)
        return await asyncio.to_thread(self._send, req)

    async def retry_request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any = None,
        headers: dict[str, str] | None = None,
        attempts: int | None = None,
    ) -> Any:
        """Call request() up to `attempts` times.

        Between failures the client sleeps retry_delay * attempt number
        (1x, 2x, ...). The last failure is re-raised unchanged. Client
        errors (4xx other than 429) fail immediately unless
        retry_client_errors is set.
        """
        attempts = self.retry_attempts if attempts is None else attempts
        if attempts < 1:
            raise ValueError(f"attempts must be at least 1, got {attempts}")

        for attempt in range(1, attempts + 1):
            try:
                return await self.request(endpoint, method=method, body=body, headers=headers)
            except TransportError as e:
                if attempt == attempts or not self._should_retry(e):
                    raise
                delay = self.retry_delay * attempt
                logger.warning(
                    "%s %s failed (attempt %d/%d): %s; retrying in %.1fs",
                    method, endpoint, attempt, attempts, e, delay,
                )
                await self._sleep(delay)

    def _should_retry(self, error: TransportError) -> bool:
        return self.retry_client_errors or error.retryable

    def _build_request(
        self,
        endpoint: str,
        method: str,
        body: Any,
        headers: dict[str, str] | None,
    ) -> urllib.request.Request:
        all_headers = {"Content-Type": "application/json"}
        token = self.credentials.load_token() if self.credentials else None
        if token:
            all_headers[AUTH_HEADER] = token
        if headers:
            all_headers.update(headers)

        data = json.dumps(body).encode("utf-8") if body is not None else None
        return urllib.request.Request(
            f"{self.base_url}{endpoint}",
            data=data,
            headers=all_headers,
            method=method,
        )

    def _send(self, req: urllib.request.Request) -> Any:
        logger.debug("%s %s", req.get_method(), req.full_url)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as e:
            raise TransportError.from_status(e.code, _error_message(e)) from e
        except urllib.error.URLError as e:
            raise TransportError(
                f"Network error: cannot reach {self.base_url}: {e.reason}", kind=NETWORK
            ) from e
        except OSError as e:
            raise TransportError(f"Network request failed: {e}", kind=NETWORK) from e
        except http.client.HTTPException as e:
            raise TransportError(f"Network request failed: {e!r}", kind=NETWORK) from e

        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TransportError(
                f"Invalid JSON response from {req.full_url}: {e}", kind=INVALID_RESPONSE
            ) from e


def _error_message(error: urllib.error.HTTPError) -> str:
    """Prefer the server's own message, fall back to the status line."""
    fallback = f"HTTP {error.code}: {error.reason}"
    if error.fp is None:
        return fallback
    try:
        data = json.loads(error.read().decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError, OSError):
        return fallback
    if isinstance(data, dict):
        message = data.get("message") or data.get("msg")
        if message:
            return str(message)
    return fallback
