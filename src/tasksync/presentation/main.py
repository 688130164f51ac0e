import inject
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.setup.api_config import get_api_settings
from src.setup.app_config import configure_di
from src.setup.db_config import get_database_settings
from src.setup.logging_config import configure_logging
from src.tasksync.infrastructure.postgres.orm import PostgresOrm
from src.tasksync.presentation.websockets import (
    WebSocketTaskBroadcaster,
    connection_registry,
    router as ws_router,
)

configure_logging()
settings = get_api_settings()
configure_di(WebSocketTaskBroadcaster(connection_registry))

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Task tracker with realtime change notifications",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def _create_schema() -> None:
    if get_database_settings().DB_CREATE_SCHEMA:
        await inject.instance(PostgresOrm).create_schema()


async def _dispose_engine() -> None:
    await inject.instance(PostgresOrm).dispose()


app.add_event_handler("startup", _create_schema)
app.add_event_handler("shutdown", _dispose_engine)

from src.tasksync.presentation.routes import router as api_router  # noqa: E402

app.include_router(api_router, prefix="")
app.include_router(ws_router, prefix="")
