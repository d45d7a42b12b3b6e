"""Client-side persisted auth token."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class CredentialStore:
    """Stores the auth token returned by the backend in a small JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load_token(self) -> str | None:
        """Return the stored token, or None if there is no usable one."""
        if not self.path.exists():
            return None
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Failed to load credentials from %s: %s", self.path, e)
            return None

        if not isinstance(data, dict):
            return None
        token = data.get("token")
        return token if isinstance(token, str) and token else None

    def save_token(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump({"token": token}, f)
        # O_CREAT only applies the mode to new files
        try:
            os.chmod(self.path, 0o600)
        except OSError as e:
            logger.debug("Could not restrict permissions on %s: %s", self.path, e)
        logger.debug("Saved credentials to %s", self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
