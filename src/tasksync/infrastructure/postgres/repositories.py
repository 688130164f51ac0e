from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from src.tasksync.domain.exceptions import TaskNotFoundError, UserAlreadyExistsError
from src.tasksync.domain.models.payloads import CreateTaskPayload, UpdateTaskPayload
from src.tasksync.domain.models.task import Task
from src.tasksync.domain.models.user import User
from src.tasksync.domain.repositories import TaskRepository, UserRepository
from src.tasksync.infrastructure.postgres.mappers import OrmMapper
from src.tasksync.infrastructure.postgres.orm import PostgresOrm, TaskRow, UserRow


class PostgresTaskRepository(TaskRepository):
    """Postgres-backed task store using SQLAlchemy async sessions."""

    def __init__(self, orm: PostgresOrm) -> None:
        self._orm = orm

    async def list_tasks(self) -> list[Task]:
        """List all tasks in insertion order."""
        async with self._orm.session_factory() as session:
            result = await session.execute(select(TaskRow).order_by(TaskRow.id))
            rows = result.scalars().all()
        return [OrmMapper.to_domain_task(row) for row in rows]

    async def get_task(self, task_id: int) -> Task:
        async with self._orm.session_factory() as session:
            row = await session.get(TaskRow, task_id)
        if row is None:
            raise TaskNotFoundError(task_id)
        return OrmMapper.to_domain_task(row)

    async def create_task(self, payload: CreateTaskPayload) -> Task:
        """Persist a new task and return it with its assigned id."""
        row = OrmMapper.to_task_row(payload, created_at=datetime.now(UTC))
        async with self._orm.session_factory() as session:
            async with session.begin():
                session.add(row)
        return OrmMapper.to_domain_task(row)

    async def update_task(self, payload: UpdateTaskPayload) -> Task:
        async with self._orm.session_factory() as session:
            async with session.begin():
                # Row lock serialises overlapping updates; the later commit wins.
                row = await session.get(TaskRow, payload.id, with_for_update=True)
                if row is None:
                    raise TaskNotFoundError(payload.id)
                OrmMapper.apply_update(row, payload)
        return OrmMapper.to_domain_task(row)

    async def delete_task(self, task_id: int) -> Task:
        async with self._orm.session_factory() as session:
            async with session.begin():
                row = await session.get(TaskRow, task_id, with_for_update=True)
                if row is None:
                    raise TaskNotFoundError(task_id)
                snapshot = OrmMapper.to_domain_task(row)
                await session.delete(row)
        return snapshot


class PostgresUserRepository(UserRepository):
    def __init__(self, orm: PostgresOrm) -> None:
        self._orm = orm

    async def get_by_email(self, email: str) -> User | None:
        async with self._orm.session_factory() as session:
            result = await session.execute(select(UserRow).where(UserRow.email == email))
            row = result.scalar_one_or_none()
        return OrmMapper.to_domain_user(row) if row is not None else None

    async def create_user(self, email: str, password_hash: str) -> User:
        row = OrmMapper.to_user_row(uuid4().hex, email, password_hash)
        try:
            async with self._orm.session_factory() as session:
                async with session.begin():
                    session.add(row)
        except IntegrityError as exc:
            raise UserAlreadyExistsError(email) from exc
        return OrmMapper.to_domain_user(row)
