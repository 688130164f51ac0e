from __future__ import annotations

from datetime import UTC, datetime

import jwt
from pydantic import BaseModel, ConfigDict

from src.tasksync.domain.models.user import IssuedToken


class SessionCredential(BaseModel):
    """A session token together with the instant it stops being accepted."""

    model_config = ConfigDict(frozen=True)

    token: str
    expires_at: datetime

    @classmethod
    def from_issued(cls, issued: IssuedToken) -> SessionCredential:
        return cls(token=issued.token, expires_at=issued.expiration)

    @classmethod
    def from_token(cls, token: str) -> SessionCredential:
        """
        Read the expiry from the token itself. The client cannot check the
        signature; the server does that on every request and handshake.
        """
        claims = jwt.decode(token, options={"verify_signature": False})
        return cls(token=token, expires_at=datetime.fromtimestamp(claims["exp"], UTC))

    def seconds_remaining(self, now: datetime | None = None) -> float:
        now = now or datetime.now(UTC)
        return (self.expires_at - now).total_seconds()

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.seconds_remaining(now) <= 0
