import inject

from src.setup.auth_config import get_auth_settings
from src.setup.db_config import get_database_settings
from src.tasksync.application.broadcaster import TaskChangeBroadcaster
from src.tasksync.application.security import PasswordHasher, TokenIssuer
from src.tasksync.domain.repositories import TaskRepository, UserRepository
from src.tasksync.infrastructure.postgres.orm import PostgresOrm
from src.tasksync.infrastructure.postgres.repositories import (
    PostgresTaskRepository,
    PostgresUserRepository,
)
from src.tasksync.infrastructure.security.passwords import PasslibPasswordHasher
from src.tasksync.infrastructure.security.tokens import JwtTokenIssuer


def configure_di(broadcaster: TaskChangeBroadcaster) -> None:
    """Bind storage, security and the realtime broadcaster once per process."""
    if inject.is_configured():
        return

    db_settings = get_database_settings()
    orm = PostgresOrm(db_settings.DATABASE_URL, echo=db_settings.DB_ECHO)

    def _config(binder: inject.Binder) -> None:
        binder.bind(PostgresOrm, orm)
        binder.bind(TaskRepository, PostgresTaskRepository(orm))
        binder.bind(UserRepository, PostgresUserRepository(orm))
        binder.bind(PasswordHasher, PasslibPasswordHasher())
        binder.bind(TokenIssuer, JwtTokenIssuer(get_auth_settings()))
        binder.bind(TaskChangeBroadcaster, broadcaster)

    inject.configure(_config)
