from __future__ import annotations

import importlib
from types import SimpleNamespace

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.setup.auth_config import AuthSettings
from src.tasksync.application.broadcaster import TaskChangeBroadcaster
from src.tasksync.application.security import PasswordHasher, TokenIssuer
from src.tasksync.domain.repositories import TaskRepository, UserRepository
from src.tasksync.infrastructure.security.passwords import PasslibPasswordHasher
from src.tasksync.infrastructure.security.tokens import JwtTokenIssuer

from tests.fakes import TEST_JWT_KEY, InMemoryTaskRepository, InMemoryUserRepository, issue_token


@pytest.fixture
def env_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Provide required environment variables for the settings classes."""
    monkeypatch.setenv("JWT_KEY", TEST_JWT_KEY)
    monkeypatch.setenv("APP_NAME", "Test API")
    monkeypatch.setenv("APP_VERSION", "0.1.0")


@pytest.fixture
def token_issuer(env_settings: None) -> JwtTokenIssuer:
    return JwtTokenIssuer(AuthSettings())


@pytest.fixture
def auth_headers(token_issuer: JwtTokenIssuer) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_token(token_issuer)}"}


@pytest.fixture
def app_modules(
    env_settings: None, monkeypatch: pytest.MonkeyPatch, token_issuer: JwtTokenIssuer
) -> SimpleNamespace:
    """
    Build the HTTP and websocket routers against in-memory repositories.

    Modules are reloaded so their module-level singletons pick up the patched injector.
    """
    import inject

    tasks = InMemoryTaskRepository()
    users = InMemoryUserRepository()
    ws_module = importlib.reload(importlib.import_module("src.tasksync.presentation.websockets"))
    broadcaster = ws_module.WebSocketTaskBroadcaster(ws_module.connection_registry)
    bindings: dict[object, object] = {
        TaskRepository: tasks,
        UserRepository: users,
        PasswordHasher: PasslibPasswordHasher(),
        TokenIssuer: token_issuer,
        TaskChangeBroadcaster: broadcaster,
    }

    def fake_instance(interface: object) -> object:
        if interface in bindings:
            return bindings[interface]
        raise RuntimeError(f"Unexpected dependency request: {interface}")

    monkeypatch.setattr(inject, "instance", fake_instance)

    importlib.reload(importlib.import_module("src.tasksync.application.services"))
    routes_module = importlib.reload(importlib.import_module("src.tasksync.presentation.routes"))

    app = FastAPI()
    app.include_router(routes_module.router)
    app.include_router(ws_module.router)
    return SimpleNamespace(
        app=app,
        registry=ws_module.connection_registry,
        tasks=tasks,
        users=users,
        tokens=token_issuer,
    )


@pytest.fixture
def api_client(app_modules: SimpleNamespace):
    """FastAPI test client; one portal so HTTP requests and websockets share a loop."""
    with TestClient(app_modules.app) as client:
        yield client
