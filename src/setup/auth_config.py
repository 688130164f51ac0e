from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class AuthSettings(BaseSettings):
    """Signing parameters shared by HTTP bearer auth and the realtime handshake."""
    JWT_KEY: str
    JWT_ISSUER: str = "tasksync-api"
    JWT_AUDIENCE: str = "tasksync-clients"
    JWT_DURATION_DAYS: float = 7.0
    JWT_ALGORITHM: str = "HS256"

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_auth_settings() -> AuthSettings:
    return AuthSettings()  # type: ignore[call-arg]
