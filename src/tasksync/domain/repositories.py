from __future__ import annotations

from typing import Protocol

from src.tasksync.domain.models.payloads import CreateTaskPayload, UpdateTaskPayload
from src.tasksync.domain.models.task import Task
from src.tasksync.domain.models.user import User


class TaskRepository(Protocol):
    """Storage contract for tasks. Each mutating call commits before returning."""

    async def list_tasks(self) -> list[Task]:
        """Return every task in insertion order."""

    async def get_task(self, task_id: int) -> Task:
        """Fetch one task or raise ``TaskNotFoundError``."""

    async def create_task(self, payload: CreateTaskPayload) -> Task:
        """Persist a new task, assigning its id and creation instant."""

    async def update_task(self, payload: UpdateTaskPayload) -> Task:
        """Overwrite the mutable fields of ``payload.id`` and return the stored task."""

    async def delete_task(self, task_id: int) -> Task:
        """Remove a task and return its last stored state."""


class UserRepository(Protocol):
    async def get_by_email(self, email: str) -> User | None:
        """Return the user registered under ``email``, if any."""

    async def create_user(self, email: str, password_hash: str) -> User:
        """Persist a user; raise ``UserAlreadyExistsError`` on a duplicate email."""
