from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from src.tasksync.client.credentials import SessionCredential
from src.tasksync.client.exceptions import ApiError, CredentialRejectedError
from src.tasksync.domain.models import (
    CreateTaskPayload,
    IssuedToken,
    LoginPayload,
    Task,
    UpdateTaskPayload,
)

logger = logging.getLogger(__name__)

_TASK_LIST = TypeAdapter(list[Task])


class TaskApiClient:
    """Async HTTP client for the task API. Attaches the bearer token to every call."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        self._token = token

    async def __aenter__(self) -> TaskApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def set_token(self, token: str | None) -> None:
        self._token = token

    async def register(self, email: str, password: str) -> None:
        body = LoginPayload(email=email, password=password).model_dump()
        await self._request("POST", "/auth/register", json=body)

    async def login(self, email: str, password: str) -> SessionCredential:
        body = LoginPayload(email=email, password=password).model_dump()
        response = await self._request("POST", "/auth/login", json=body)
        return SessionCredential.from_issued(IssuedToken.model_validate(response.json()))

    async def list_tasks(self) -> list[Task]:
        response = await self._request("GET", "/tasks")
        try:
            return _TASK_LIST.validate_json(response.content)
        except ValidationError as exc:
            # A 200 that is not a task list (e.g. a gateway page) is a failed read.
            raise ApiError(response.status_code, "Malformed task list") from exc

    async def create_task(
        self, title: str, description: str = "", due_date: datetime | None = None
    ) -> Task:
        payload = CreateTaskPayload(title=title, description=description, due_date=due_date)
        response = await self._request("POST", "/tasks", json=_dump(payload))
        return Task.model_validate(response.json())

    async def update_task(self, task: Task) -> None:
        payload = UpdateTaskPayload(
            id=task.id,
            title=task.title,
            description=task.description,
            is_complete=task.is_complete,
            due_date=task.due_date,
        )
        await self._request("PUT", f"/tasks/{task.id}", json=_dump(payload))

    async def toggle_task(self, task: Task) -> None:
        await self.update_task(task.model_copy(update={"is_complete": not task.is_complete}))

    async def delete_task(self, task_id: int) -> None:
        await self._request("DELETE", f"/tasks/{task_id}")

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
        response = await self._http.request(method, url, headers=headers, **kwargs)
        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise CredentialRejectedError(f"{method} {url} was not authorized")
        if response.is_error:
            logger.debug(
                "Task API error",
                extra={"method": method, "url": url, "status": response.status_code},
            )
            raise ApiError(response.status_code, response.text)
        return response


def _dump(payload: Any) -> dict[str, Any]:
    return payload.model_dump(mode="json", by_alias=True)
