from __future__ import annotations

from typing import Protocol

from src.tasksync.domain.models.notification import TaskNotification


class TaskChangeBroadcaster(Protocol):
    async def broadcast(self, notification: TaskNotification) -> None:
        """Push a committed task change to every connected client."""
