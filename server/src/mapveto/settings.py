"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Frontend
    frontend_url: str = "http://localhost:3000"

    # Draft defaults
    coin_flip_default: bool = True
    strict_turn_order: bool = True
    team_name_max_length: int = 32

    # Seconds to hold the turn reveal after a coin flip (client animation)
    coin_flip_reveal_seconds: float = 3.0

    # Seconds between the steps of an observer replay
    replay_step_seconds: float = 5.0

    # Rate limiting
    rate_limiting_enabled: bool = True
    lobby_create_limit: str = "30/minute"

    # Development mode
    dev_mode: bool = False

    @property
    def cors_origins(self) -> list[str]:
        """Origins allowed to call the API."""
        if self.dev_mode:
            return ["http://localhost:3000", "http://127.0.0.1:3000"]
        return [self.frontend_url]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
