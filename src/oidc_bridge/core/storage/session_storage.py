"""Storage for logins that left for the provider and have not come back yet.

An ``AuthSession`` is created by ``/auth/login`` and consumed exactly once by
``/auth/callback``. Entries expire after the configured TTL.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from cachetools import TTLCache
from pydantic import BaseModel, Field

from oidc_bridge.core.security import generate_secure_token
from oidc_bridge.entities._base import utc_now


class AuthSession(BaseModel):
    """A pending authorization code flow."""

    id: str = Field(default_factory=generate_secure_token)
    state: str
    code_verifier: str
    nonce: str
    redirect_uri: str
    return_to: str | None = None
    created_at: datetime = Field(default_factory=utc_now)


class SessionStorage(ABC):
    """Abstract interface for auth session storage backends."""

    @abstractmethod
    def set(self, session: AuthSession) -> None:
        """Store a session until it is popped or expires."""

    @abstractmethod
    def get(self, session_id: str) -> AuthSession | None:
        """Return the session, or None if unknown or expired."""

    @abstractmethod
    def pop(self, session_id: str) -> AuthSession | None:
        """Remove and return the session."""

    @abstractmethod
    def __len__(self) -> int: ...


class InMemorySessionStorage(SessionStorage):
    """In-memory session storage with TTL support."""

    def __init__(self, ttl_seconds: int = 600, maxsize: int = 10_000):
        self._data: TTLCache[str, str] = TTLCache(maxsize=maxsize, ttl=ttl_seconds)

    def set(self, session: AuthSession) -> None:
        self._data[session.id] = session.model_dump_json()

    def get(self, session_id: str) -> AuthSession | None:
        raw = self._data.get(session_id)
        return AuthSession.model_validate_json(raw) if raw is not None else None

    def pop(self, session_id: str) -> AuthSession | None:
        raw = self._data.pop(session_id, None)
        return AuthSession.model_validate_json(raw) if raw is not None else None

    def __len__(self) -> int:
        return len(self._data)
