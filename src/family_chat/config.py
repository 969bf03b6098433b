from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    API_BASE_URL: str = "http://localhost:5000/api"
    SOCKET_URL: str = "ws://localhost:5000/ws"

    TYPING_TIMEOUT_MS: int = 3000

    LOG_LEVEL: str = "INFO"

    @property
    def typing_timeout_seconds(self) -> float:
        return self.TYPING_TIMEOUT_MS / 1000

    model_config = ConfigDict(
        env_file=".env",
        env_prefix="FAMILY_CHAT_",
        extra="ignore",
    )


settings = Settings()
