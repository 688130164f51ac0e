import asyncio
import logging
from typing import cast

import inject

from src.tasksync.application.broadcaster import TaskChangeBroadcaster
from src.tasksync.application.security import PasswordHasher, TokenIssuer
from src.tasksync.domain.exceptions import (
    InvalidCredentialsError,
    TaskIdMismatchError,
    UserAlreadyExistsError,
)
from src.tasksync.domain.models import (
    CreateTaskPayload,
    IssuedToken,
    LoginPayload,
    Task,
    TaskNotification,
    UpdateTaskPayload,
    User,
)
from src.tasksync.domain.repositories import TaskRepository, UserRepository

logger = logging.getLogger(__name__)


class TaskService:
    """Task CRUD; every committed mutation is announced to live clients exactly once."""

    def __init__(
        self,
        repository: TaskRepository | None = None,
        broadcaster: TaskChangeBroadcaster | None = None,
    ) -> None:
        self._repository = repository or cast(TaskRepository, inject.instance(TaskRepository))
        self._broadcaster = broadcaster or cast(
            TaskChangeBroadcaster, inject.instance(TaskChangeBroadcaster)
        )

    async def list_tasks(self) -> list[Task]:
        return await self._repository.list_tasks()

    async def create_task(self, payload: CreateTaskPayload) -> Task:
        task = await self._repository.create_task(payload)
        await self._notify(TaskNotification.created(task))
        return task

    async def update_task(self, task_id: int, payload: UpdateTaskPayload) -> Task:
        """
        Overwrite a task's mutable fields. Concurrent updates are last-write-wins.
        """
        if task_id != payload.id:
            raise TaskIdMismatchError(task_id, payload.id)
        task = await self._repository.update_task(payload)
        await self._notify(TaskNotification.updated(task))
        return task

    async def delete_task(self, task_id: int) -> Task:
        task = await self._repository.delete_task(task_id)
        await self._notify(TaskNotification.deleted(task))
        return task

    async def _notify(self, notification: TaskNotification) -> None:
        # The change is already committed; delivery problems stay out of the caller's response.
        try:
            await self._broadcaster.broadcast(notification)
        except Exception:
            logger.exception(
                "Failed to broadcast task change",
                extra={"task_id": notification.task.id, "action": notification.action.value},
            )


class AuthService:
    """Account registration and login."""

    def __init__(
        self,
        users: UserRepository | None = None,
        hasher: PasswordHasher | None = None,
        tokens: TokenIssuer | None = None,
    ) -> None:
        self._users = users or cast(UserRepository, inject.instance(UserRepository))
        self._hasher = hasher or cast(PasswordHasher, inject.instance(PasswordHasher))
        self._tokens = tokens or cast(TokenIssuer, inject.instance(TokenIssuer))

    async def register(self, payload: LoginPayload) -> User:
        if await self._users.get_by_email(payload.email) is not None:
            raise UserAlreadyExistsError(payload.email)
        password_hash = await asyncio.to_thread(self._hasher.hash, payload.password)
        user = await self._users.create_user(payload.email, password_hash)
        logger.info("Registered user", extra={"user_id": user.id})
        return user

    async def login(self, payload: LoginPayload) -> IssuedToken:
        user = await self._users.get_by_email(payload.email)
        if user is None:
            raise InvalidCredentialsError()
        matches = await asyncio.to_thread(self._hasher.verify, payload.password, user.password_hash)
        if not matches:
            raise InvalidCredentialsError()
        return self._tokens.issue(user)
