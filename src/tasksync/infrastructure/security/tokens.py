from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import jwt

from src.setup.auth_config import AuthSettings, get_auth_settings
from src.tasksync.application.security import TokenIssuer
from src.tasksync.domain.exceptions import InvalidTokenError
from src.tasksync.domain.models.user import Identity, IssuedToken, User

logger = logging.getLogger(__name__)

_REQUIRED_CLAIMS = ["exp", "sub", "iss", "aud"]


class JwtTokenIssuer(TokenIssuer):
    """
    HMAC-signed JWTs carrying the user id, email, issuer, audience and expiry.

    The same ``validate`` call guards HTTP requests and realtime handshakes.
    """

    def __init__(self, settings: AuthSettings | None = None) -> None:
        self._settings = settings or get_auth_settings()

    def issue(self, user: User) -> IssuedToken:
        now = datetime.now(UTC).replace(microsecond=0)
        expires_at = now + timedelta(days=self._settings.JWT_DURATION_DAYS)
        claims = {
            "sub": user.id,
            "email": user.email,
            "jti": uuid4().hex,
            "iss": self._settings.JWT_ISSUER,
            "aud": self._settings.JWT_AUDIENCE,
            "iat": now,
            "exp": expires_at,
        }
        token = jwt.encode(claims, self._settings.JWT_KEY, algorithm=self._settings.JWT_ALGORITHM)
        return IssuedToken(token=token, expiration=expires_at)

    def validate(self, token: str) -> Identity:
        try:
            claims = jwt.decode(
                token,
                self._settings.JWT_KEY,
                algorithms=[self._settings.JWT_ALGORITHM],
                audience=self._settings.JWT_AUDIENCE,
                issuer=self._settings.JWT_ISSUER,
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidTokenError("Token expired") from exc
        except jwt.InvalidTokenError as exc:
            logger.debug("Rejected token", extra={"reason": str(exc)})
            raise InvalidTokenError("Invalid token") from exc

        return Identity(
            user_id=str(claims["sub"]),
            email=str(claims.get("email", "")),
            expires_at=datetime.fromtimestamp(claims["exp"], UTC),
        )
