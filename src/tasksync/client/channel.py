from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Protocol
from urllib.parse import urlencode

from pydantic import ValidationError
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidStatus

from src.tasksync.client.credentials import SessionCredential
from src.tasksync.client.exceptions import CredentialRejectedError, RealtimeDisconnectedError
from src.tasksync.domain.models.notification import ACCESS_TOKEN_PARAM, TaskNotification

logger = logging.getLogger(__name__)

# A refused upgrade surfaces as one of these HTTP statuses.
_REJECTED_STATUSES = {401, 403}


class RealtimeChannel(Protocol):
    async def receive(self) -> TaskNotification | None:
        """
        Wait for the next server push. ``None`` means a frame arrived that could
        not be parsed; it still signals that something changed.
        """


ChannelFactory = Callable[[SessionCredential], AbstractAsyncContextManager[RealtimeChannel]]


class WebSocketChannel:
    def __init__(self, websocket: ClientConnection) -> None:
        self._websocket = websocket

    async def receive(self) -> TaskNotification | None:
        try:
            raw = await self._websocket.recv()
        except ConnectionClosed as exc:
            raise RealtimeDisconnectedError(str(exc)) from exc
        try:
            return TaskNotification.model_validate_json(raw)
        except ValidationError:
            logger.warning("Ignoring malformed realtime payload", extra={"raw": str(raw)[:200]})
            return None


def websocket_channel_factory(ws_url: str, *, open_timeout: float = 10.0) -> ChannelFactory:
    """Build a factory that opens authenticated websocket channels against ``ws_url``."""

    @asynccontextmanager
    async def _open(credential: SessionCredential) -> AsyncIterator[RealtimeChannel]:
        url = f"{ws_url}?{urlencode({ACCESS_TOKEN_PARAM: credential.token})}"
        try:
            websocket = await connect(url, open_timeout=open_timeout)
        except InvalidStatus as exc:
            if exc.response.status_code in _REJECTED_STATUSES:
                raise CredentialRejectedError("Realtime handshake refused") from exc
            raise RealtimeDisconnectedError(str(exc)) from exc
        except (InvalidHandshake, OSError, TimeoutError) as exc:
            raise RealtimeDisconnectedError(str(exc)) from exc

        try:
            yield WebSocketChannel(websocket)
        finally:
            await websocket.close()

    return _open
