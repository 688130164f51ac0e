from __future__ import annotations

from typing import Protocol

from src.tasksync.domain.models.user import Identity, IssuedToken, User


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str:
        """Return a salted hash suitable for storage."""

    def verify(self, password: str, password_hash: str) -> bool:
        """Check ``password`` against a stored hash."""


class TokenIssuer(Protocol):
    """Mints and validates session tokens; the only authority on token validity."""

    def issue(self, user: User) -> IssuedToken:
        """Sign a time-bounded token for ``user``."""

    def validate(self, token: str) -> Identity:
        """Return the identity bound to ``token`` or raise ``InvalidTokenError``."""
