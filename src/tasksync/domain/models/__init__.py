from src.tasksync.domain.models.notification import ChangeAction, TaskNotification
from src.tasksync.domain.models.payloads import (
    CreateTaskPayload,
    TaskPayload,
    UpdateTaskPayload,
)
from src.tasksync.domain.models.task import Task
from src.tasksync.domain.models.user import Identity, IssuedToken, LoginPayload, User

__all__ = [
    "Task",
    "TaskPayload",
    "CreateTaskPayload",
    "UpdateTaskPayload",
    "ChangeAction",
    "TaskNotification",
    "User",
    "LoginPayload",
    "Identity",
    "IssuedToken",
]
