from __future__ import annotations

from typing import cast

import inject
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.tasksync.application.security import TokenIssuer
from src.tasksync.domain.exceptions import InvalidTokenError
from src.tasksync.domain.models.user import Identity

_bearer = HTTPBearer(auto_error=False)


def authenticate_token(token: str | None) -> Identity:
    """
    Resolve a session token to an identity.

    Shared by bearer-authenticated requests and the realtime handshake so both
    accept exactly the same tokens.
    """
    if not token:
        raise InvalidTokenError("Missing token")
    tokens = cast(TokenIssuer, inject.instance(TokenIssuer))
    return tokens.validate(token)


async def require_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Identity:
    try:
        return authenticate_token(credentials.credentials if credentials else None)
    except InvalidTokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
