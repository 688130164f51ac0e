from __future__ import annotations

from datetime import datetime

from src.tasksync.domain.models.payloads import CreateTaskPayload, UpdateTaskPayload
from src.tasksync.domain.models.task import Task
from src.tasksync.domain.models.user import User
from src.tasksync.infrastructure.postgres.orm import TaskRow, UserRow


class OrmMapper:
    @staticmethod
    def to_task_row(payload: CreateTaskPayload, created_at: datetime) -> TaskRow:
        return TaskRow(
            title=payload.title,
            description=payload.description,
            is_complete=False,
            created_at=created_at,
            due_date=payload.due_date,
        )

    @staticmethod
    def apply_update(row: TaskRow, payload: UpdateTaskPayload) -> None:
        # created_at is deliberately absent: it is fixed at insert time.
        row.title = payload.title
        row.description = payload.description
        row.is_complete = payload.is_complete
        row.due_date = payload.due_date

    @staticmethod
    def to_domain_task(row: TaskRow) -> Task:
        return Task(
            id=row.id,
            title=row.title,
            description=row.description,
            is_complete=row.is_complete,
            created_at=row.created_at,
            due_date=row.due_date,
        )

    @staticmethod
    def to_user_row(user_id: str, email: str, password_hash: str) -> UserRow:
        return UserRow(id=user_id, email=email, password_hash=password_hash)

    @staticmethod
    def to_domain_user(row: UserRow) -> User:
        return User(id=row.id, email=row.email, password_hash=row.password_hash)
