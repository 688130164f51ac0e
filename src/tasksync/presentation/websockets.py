from __future__ import annotations

import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from src.setup.api_config import get_api_settings
from src.tasksync.application.broadcaster import TaskChangeBroadcaster
from src.tasksync.application.connections import ConnectionRegistry
from src.tasksync.domain.exceptions import InvalidTokenError
from src.tasksync.domain.models.notification import ACCESS_TOKEN_PARAM, TaskNotification
from src.tasksync.presentation.dependencies import authenticate_token

router = APIRouter(tags=["ws"])
logger = logging.getLogger(__name__)


class WebSocketTaskBroadcaster(TaskChangeBroadcaster):
    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry

    async def broadcast(self, notification: TaskNotification) -> None:
        delivered = await self._registry.broadcast(notification.to_message())
        logger.debug(
            "Broadcast task change",
            extra={
                "task_id": notification.task.id,
                "action": notification.action.value,
                "delivered": delivered,
            },
        )


connection_registry = ConnectionRegistry(send_timeout=get_api_settings().WS_SEND_TIMEOUT)


@router.websocket("/ws/tasks")
async def task_updates(
    websocket: WebSocket,
    access_token: str | None = Query(default=None, alias=ACCESS_TOKEN_PARAM),
) -> None:
    # Browsers cannot set headers on a websocket upgrade, so the token rides in the query.
    try:
        identity = authenticate_token(access_token)
    except InvalidTokenError as exc:
        logger.info("Refused realtime handshake", extra={"reason": str(exc)})
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    connection = await connection_registry.open(
        identity.user_id, websocket, handshake=websocket.accept
    )
    try:
        while True:
            # Inbound frames carry no meaning; reading detects the disconnect.
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await connection_registry.close(connection.id)
