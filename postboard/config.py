"""Application configuration via environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Server (python -m postboard)
    bind_host: str = "127.0.0.1"
    bind_port: int = 3000

    # Relational store, e.g. sqlite+aiosqlite:///./postboard.db
    database_url: str
    create_schema_on_startup: bool = False

    # Page shell with the {{ BLOGS }} placeholder; empty = bundled template
    page_shell_path: str = ""

    # Treat 4xx/5xx avatar responses as fetch failures
    avatar_reject_error_status: bool = False

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
