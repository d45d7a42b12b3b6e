"""Account operations against the MindWell backend."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from mindwell.api_client import ApiClient
from mindwell.credentials import CredentialStore
from mindwell.errors import INVALID_RESPONSE, TransportError, ValidationError

logger = logging.getLogger(__name__)

ROLES = ("student", "admin")


@dataclass
class UserProfile:
    id: str
    name: str
    email: str
    role: str = "student"


class AuthClient:
    """Login, registration and profile lookup.

    Auth calls go through ApiClient.request, never the retrying path: a bad
    password will not get better on the second try.
    """

    def __init__(self, client: ApiClient, credentials: CredentialStore):
        self.client = client
        self.credentials = credentials

    async def login(self, email: str, password: str) -> str:
        """Log in and persist the returned token.

        Returns:
            The auth token.

        Raises:
            ValidationError: If email or password is empty.
            TransportError: On HTTP failure or a response without a token.
        """
        _require(email=email, password=password)
        data = await self.client.request(
            "/api/auth/login",
            method="POST",
            body={"email": email.strip(), "password": password},
        )
        token = self._store_token(data)
        logger.info("Logged in as %s", email.strip())
        return token

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: str = "student",
        admin_code: str | None = None,
    ) -> str:
        """Create an account and persist the returned token."""
        _require(name=name, email=email, password=password)
        if role not in ROLES:
            raise ValidationError(f"Unknown role {role!r}; expected one of {', '.join(ROLES)}")
        if role == "admin" and not admin_code:
            raise ValidationError("An admin code is required to register as admin")

        body = {"name": name.strip(), "email": email.strip(), "password": password, "role": role}
        if admin_code:
            body["adminCode"] = admin_code

        data = await self.client.request("/api/auth/register", method="POST", body=body)
        token = self._store_token(data)
        logger.info("Registered %s (%s)", email.strip(), role)
        return token

    def logout(self) -> None:
        self.credentials.clear()
        logger.info("Logged out")

    async def profile(self) -> UserProfile:
        """Fetch the logged-in user's profile."""
        data = await self.client.request("/api/users/profile")
        if not isinstance(data, dict):
            raise TransportError("Unexpected profile payload", kind=INVALID_RESPONSE)
        return UserProfile(
            id=str(data.get("_id", "")),
            name=data.get("name", ""),
            email=data.get("email", ""),
            role=data.get("role", "student"),
        )

    def _store_token(self, data: object) -> str:
        token = data.get("token") if isinstance(data, dict) else None
        if not token or not isinstance(token, str):
            raise TransportError("Auth response did not include a token", kind=INVALID_RESPONSE)
        self.credentials.save_token(token)
        return token


def _require(**fields: str) -> None:
    for name, value in fields.items():
        if not value or not value.strip():
            raise ValidationError(f"{name} is required")
