from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from src.tasksync.application.broadcaster import TaskChangeBroadcaster
from src.tasksync.application.connections import ConnectionRegistry
from src.tasksync.application.security import TokenIssuer
from src.tasksync.client.credentials import SessionCredential
from src.tasksync.client.exceptions import CredentialRejectedError, RealtimeDisconnectedError
from src.tasksync.domain.exceptions import (
    InvalidTokenError,
    TaskNotFoundError,
    UserAlreadyExistsError,
)
from src.tasksync.domain.models import (
    CreateTaskPayload,
    Task,
    TaskNotification,
    UpdateTaskPayload,
    User,
)
from src.tasksync.domain.repositories import TaskRepository, UserRepository

TEST_JWT_KEY = "test-signing-key-0123456789-abcdefghijklmnopqrstuvwxyz"


class InMemoryTaskRepository(TaskRepository):
    """Dict-backed task store; ids are never reused, like a database sequence."""

    def __init__(self) -> None:
        self._tasks: dict[int, Task] = {}
        self._last_id = 0
        self.fail_next_commit = False

    async def list_tasks(self) -> list[Task]:
        return [task.model_copy() for task in self._tasks.values()]

    async def get_task(self, task_id: int) -> Task:
        if task_id not in self._tasks:
            raise TaskNotFoundError(task_id)
        return self._tasks[task_id].model_copy()

    async def create_task(self, payload: CreateTaskPayload) -> Task:
        self._commit()
        self._last_id += 1
        task = Task(
            id=self._last_id,
            title=payload.title,
            description=payload.description,
            is_complete=False,
            created_at=datetime.now(UTC),
            due_date=payload.due_date,
        )
        self._tasks[task.id] = task
        return task.model_copy()

    async def update_task(self, payload: UpdateTaskPayload) -> Task:
        if payload.id not in self._tasks:
            raise TaskNotFoundError(payload.id)
        self._commit()
        task = self._tasks[payload.id].model_copy(
            update={
                "title": payload.title,
                "description": payload.description,
                "is_complete": payload.is_complete,
                "due_date": payload.due_date,
            }
        )
        self._tasks[task.id] = task
        return task.model_copy()

    async def delete_task(self, task_id: int) -> Task:
        if task_id not in self._tasks:
            raise TaskNotFoundError(task_id)
        self._commit()
        return self._tasks.pop(task_id)

    def _commit(self) -> None:
        if self.fail_next_commit:
            self.fail_next_commit = False
            raise RuntimeError("commit failed")


class InMemoryUserRepository(UserRepository):
    def __init__(self) -> None:
        self.users: dict[str, User] = {}

    async def get_by_email(self, email: str) -> User | None:
        return self.users.get(email)

    async def create_user(self, email: str, password_hash: str) -> User:
        if email in self.users:
            raise UserAlreadyExistsError(email)
        user = User(id=f"user-{len(self.users) + 1}", email=email, password_hash=password_hash)
        self.users[email] = user
        return user


class RecordingBroadcaster(TaskChangeBroadcaster):
    def __init__(self, error: Exception | None = None) -> None:
        self.notifications: list[TaskNotification] = []
        self._error = error

    async def broadcast(self, notification: TaskNotification) -> None:
        self.notifications.append(notification)
        if self._error is not None:
            raise self._error


class QueueChannel:
    """
    In-process stand-in for a websocket: the server side writes with
    ``send_json``, the client side reads with ``receive``.
    """

    def __init__(self) -> None:
        self.queue: asyncio.Queue[Any] = asyncio.Queue()
        self.sent: list[dict[str, Any]] = []

    async def send_json(self, data: Any) -> None:
        self.sent.append(data)
        await self.queue.put(data)

    async def receive(self) -> TaskNotification | None:
        item = await self.queue.get()
        if isinstance(item, BaseException):
            raise item
        return TaskNotification.model_validate(item)

    def drop(self) -> None:
        self.queue.put_nowait(RealtimeDisconnectedError("connection reset"))


def in_process_channel_factory(
    registry: ConnectionRegistry, tokens: TokenIssuer
) -> Callable[[SessionCredential], Any]:
    """Channel factory that performs the same handshake check as the websocket route."""
    channels: list[QueueChannel] = []

    @asynccontextmanager
    async def _open(credential: SessionCredential) -> AsyncIterator[QueueChannel]:
        try:
            identity = tokens.validate(credential.token)
        except InvalidTokenError as exc:
            raise CredentialRejectedError(str(exc)) from exc
        channel = QueueChannel()
        channels.append(channel)
        connection = await registry.open(identity.user_id, channel)
        try:
            yield channel
        finally:
            await registry.close(connection.id)

    _open.channels = channels  # type: ignore[attr-defined]
    return _open


def issue_token(tokens: TokenIssuer, user_id: str = "user-1", email: str = "a@example.com") -> str:
    return tokens.issue(User(id=user_id, email=email, password_hash="unused")).token


class FakeTaskReader:
    """Read endpoint stand-in whose server-side list the test edits directly."""

    def __init__(self, tasks: list[Task] | None = None) -> None:
        self.tasks: list[Task] = tasks or []
        self.calls = 0
        self.error: Exception | None = None

    async def list_tasks(self) -> list[Task]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return [task.model_copy() for task in self.tasks]


class ScriptedChannels:
    """
    Channel factory that plays back one outcome per connection attempt: an
    exception raised at open, or a channel to hand out. Once the script runs
    out every attempt gets a fresh ``QueueChannel``.
    """

    def __init__(self, *outcomes: BaseException | QueueChannel) -> None:
        self._outcomes = list(outcomes)
        self.attempts = 0
        self.channels: list[QueueChannel] = []
        self.closed = 0

    @asynccontextmanager
    async def __call__(self, credential: SessionCredential) -> AsyncIterator[QueueChannel]:
        self.attempts += 1
        outcome = self._outcomes.pop(0) if self._outcomes else QueueChannel()
        if isinstance(outcome, BaseException):
            raise outcome
        self.channels.append(outcome)
        try:
            yield outcome
        finally:
            self.closed += 1


def make_task(task_id: int, title: str = "Buy milk", is_complete: bool = False) -> Task:
    return Task(
        id=task_id,
        title=title,
        is_complete=is_complete,
        created_at=datetime(2026, 1, 1, tzinfo=UTC),
    )


def notification_message(task: Task, action: str) -> dict[str, Any]:
    return {"type": "TaskReceived", "task": task.model_dump(mode="json", by_alias=True), "action": action}


async def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)
