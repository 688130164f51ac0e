from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class ClientSettings(BaseSettings):
    """Configuration for the sync client (console watcher and library use)."""
    API_BASE_URL: str = "http://localhost:8000"
    WS_URL: str = "ws://localhost:8000/ws/tasks"
    # Seconds to wait before each reconnect attempt; the last value repeats.
    RECONNECT_DELAYS: list[float] = [0.0, 2.0, 10.0, 30.0]
    REQUEST_TIMEOUT: float = 10.0

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_client_settings() -> ClientSettings:
    """Return a fresh client settings instance."""
    return ClientSettings()
