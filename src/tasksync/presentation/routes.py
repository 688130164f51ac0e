from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from src.tasksync.application.services import AuthService, TaskService
from src.tasksync.domain.exceptions import (
    InvalidCredentialsError,
    TaskIdMismatchError,
    TaskNotFoundError,
    UserAlreadyExistsError,
)
from src.tasksync.domain.models import (
    CreateTaskPayload,
    Identity,
    IssuedToken,
    LoginPayload,
    Task,
    UpdateTaskPayload,
)
from src.tasksync.presentation.dependencies import require_identity

router = APIRouter()

# Instantiate services once (simple DI)
_task_service = TaskService()
_auth_service = AuthService()


class StatusResponse(BaseModel):
    status: str = Field(..., description="'Success' or 'Error'")
    message: str


@router.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.post(
    "/auth/register",
    response_model=StatusResponse,
    tags=["auth"],
    summary="Register a user",
    responses={400: {"description": "A user with this email already exists."}},
)
async def register(body: LoginPayload) -> StatusResponse:
    try:
        await _auth_service.register(body)
    except UserAlreadyExistsError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return StatusResponse(status="Success", message="User created successfully!")


@router.post(
    "/auth/login",
    response_model=IssuedToken,
    tags=["auth"],
    summary="Exchange credentials for a session token",
    responses={401: {"description": "Unknown email or wrong password."}},
)
async def login(body: LoginPayload) -> IssuedToken:
    try:
        return await _auth_service.login(body)
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED) from exc


@router.get(
    "/tasks",
    response_model=list[Task],
    tags=["tasks"],
    summary="List all tasks",
    description="Authoritative task list in insertion order. Clients re-read it after every change notification.",
)
async def list_tasks(identity: Identity = Depends(require_identity)) -> list[Task]:
    return await _task_service.list_tasks()


@router.post(
    "/tasks",
    response_model=Task,
    status_code=status.HTTP_201_CREATED,
    tags=["tasks"],
    summary="Create a task",
)
async def create_task(
    body: CreateTaskPayload, identity: Identity = Depends(require_identity)
) -> Task:
    return await _task_service.create_task(body)


@router.put(
    "/tasks/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["tasks"],
    summary="Replace a task's mutable fields",
    responses={
        400: {"description": "Body id does not match the path id."},
        404: {"description": "Unknown task id."},
    },
)
async def update_task(
    task_id: int, body: UpdateTaskPayload, identity: Identity = Depends(require_identity)
) -> Response:
    try:
        await _task_service.update_task(task_id, body)
    except TaskIdMismatchError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except TaskNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/tasks/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["tasks"],
    summary="Delete a task",
    responses={404: {"description": "Unknown task id."}},
)
async def delete_task(task_id: int, identity: Identity = Depends(require_identity)) -> Response:
    try:
        await _task_service.delete_task(task_id)
    except TaskNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
