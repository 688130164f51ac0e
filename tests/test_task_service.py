import pytest

from src.tasksync.application.services import AuthService, TaskService
from src.tasksync.domain.exceptions import (
    InvalidCredentialsError,
    TaskIdMismatchError,
    TaskNotFoundError,
    UserAlreadyExistsError,
)
from src.tasksync.domain.models import (
    ChangeAction,
    CreateTaskPayload,
    LoginPayload,
    UpdateTaskPayload,
)
from src.tasksync.infrastructure.security.passwords import PasslibPasswordHasher

from tests.fakes import InMemoryTaskRepository, InMemoryUserRepository, RecordingBroadcaster


@pytest.mark.asyncio
async def test_each_mutation_broadcasts_once_after_commit() -> None:
    repository = InMemoryTaskRepository()
    broadcaster = RecordingBroadcaster()
    service = TaskService(repository=repository, broadcaster=broadcaster)

    created = await service.create_task(CreateTaskPayload(title="Buy milk"))
    await service.update_task(
        created.id,
        UpdateTaskPayload(id=created.id, title="Buy milk", is_complete=True),
    )
    await service.delete_task(created.id)

    assert [n.action for n in broadcaster.notifications] == [
        ChangeAction.CREATED,
        ChangeAction.UPDATED,
        ChangeAction.DELETED,
    ]
    assert broadcaster.notifications[1].task.is_complete is True
    assert await repository.list_tasks() == []


@pytest.mark.asyncio
async def test_commit_failure_emits_no_notification() -> None:
    repository = InMemoryTaskRepository()
    repository.fail_next_commit = True
    broadcaster = RecordingBroadcaster()
    service = TaskService(repository=repository, broadcaster=broadcaster)

    with pytest.raises(RuntimeError, match="commit failed"):
        await service.create_task(CreateTaskPayload(title="Buy milk"))

    assert broadcaster.notifications == []


@pytest.mark.asyncio
async def test_broadcast_failure_does_not_reach_the_caller() -> None:
    repository = InMemoryTaskRepository()
    broadcaster = RecordingBroadcaster(error=RuntimeError("fan-out exploded"))
    service = TaskService(repository=repository, broadcaster=broadcaster)

    task = await service.create_task(CreateTaskPayload(title="Buy milk"))

    assert task.id == 1
    assert len(broadcaster.notifications) == 1
    assert [t.id for t in await repository.list_tasks()] == [1]


@pytest.mark.asyncio
async def test_update_rejects_mismatched_ids_without_touching_the_store() -> None:
    repository = InMemoryTaskRepository()
    broadcaster = RecordingBroadcaster()
    service = TaskService(repository=repository, broadcaster=broadcaster)
    task = await service.create_task(CreateTaskPayload(title="Buy milk"))

    with pytest.raises(TaskIdMismatchError):
        await service.update_task(task.id, UpdateTaskPayload(id=99, title="x", is_complete=True))

    assert (await repository.get_task(task.id)).is_complete is False
    assert len(broadcaster.notifications) == 1


@pytest.mark.asyncio
async def test_missing_task_raises_and_does_not_notify() -> None:
    broadcaster = RecordingBroadcaster()
    service = TaskService(repository=InMemoryTaskRepository(), broadcaster=broadcaster)

    with pytest.raises(TaskNotFoundError):
        await service.delete_task(7)
    with pytest.raises(TaskNotFoundError):
        await service.update_task(7, UpdateTaskPayload(id=7, title="x", is_complete=False))

    assert broadcaster.notifications == []


@pytest.mark.asyncio
async def test_update_keeps_creation_time() -> None:
    service = TaskService(repository=InMemoryTaskRepository(), broadcaster=RecordingBroadcaster())
    task = await service.create_task(CreateTaskPayload(title="Buy milk"))

    updated = await service.update_task(
        task.id, UpdateTaskPayload(id=task.id, title="Buy oat milk", is_complete=False)
    )

    assert updated.created_at == task.created_at
    assert updated.title == "Buy oat milk"


@pytest.mark.asyncio
async def test_register_then_login_issues_a_token(token_issuer) -> None:
    users = InMemoryUserRepository()
    service = AuthService(users=users, hasher=PasslibPasswordHasher(), tokens=token_issuer)

    user = await service.register(LoginPayload(email="a@example.com", password="s3cret"))
    issued = await service.login(LoginPayload(email="a@example.com", password="s3cret"))

    assert users.users["a@example.com"].password_hash != "s3cret"
    assert token_issuer.validate(issued.token).user_id == user.id


@pytest.mark.asyncio
async def test_login_rejects_bad_credentials_and_duplicates(token_issuer) -> None:
    service = AuthService(
        users=InMemoryUserRepository(), hasher=PasslibPasswordHasher(), tokens=token_issuer
    )
    await service.register(LoginPayload(email="a@example.com", password="s3cret"))

    with pytest.raises(UserAlreadyExistsError):
        await service.register(LoginPayload(email="a@example.com", password="other"))
    with pytest.raises(InvalidCredentialsError):
        await service.login(LoginPayload(email="a@example.com", password="wrong"))
    with pytest.raises(InvalidCredentialsError):
        await service.login(LoginPayload(email="nobody@example.com", password="s3cret"))
