from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from src.tasksync.domain.models.task import Task

TASK_RECEIVED = "TaskReceived"
# Query parameter carrying the session token on the realtime handshake.
ACCESS_TOKEN_PARAM = "access_token"


class ChangeAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class TaskNotification(BaseModel):
    """Ephemeral change hint pushed to every live connection."""

    type: Literal["TaskReceived"] = Field(default=TASK_RECEIVED)
    task: Task = Field(description="Best-effort snapshot of the affected task.")
    action: ChangeAction = Field(description="Kind of mutation that was committed.")

    @classmethod
    def created(cls, task: Task) -> TaskNotification:
        return cls(task=task, action=ChangeAction.CREATED)

    @classmethod
    def updated(cls, task: Task) -> TaskNotification:
        return cls(task=task, action=ChangeAction.UPDATED)

    @classmethod
    def deleted(cls, task: Task) -> TaskNotification:
        return cls(task=task, action=ChangeAction.DELETED)

    def to_message(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)
