"""Application configuration loaded from environment variables and .env file."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from environment variables first,
    then from a .env file in the project root as fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    DATABASE_URL: str = "sqlite:///./wardrobe.db"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Resolver settings
    RESOLVER_WORKERS: int = 1
    DEFAULT_CHANCE: int = 100


settings = Settings()
