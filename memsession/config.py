"""Application configuration via environment variables."""

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    session_provider: str = "memory"
    session_cookie_name: str = "sid"
    session_max_lifetime: int = 3600  # seconds idle before a sweep removes it
    session_gc_interval: float = 60.0  # 0 disables the background sweeper
    session_secret: str = ""  # empty: cookie carries the bare identifier
    session_https_only: bool = False
    session_same_site: Literal["lax", "strict", "none"] = "lax"
    session_max_entries: int | None = None

    model_config = {"env_prefix": "", "case_sensitive": False}


settings: Settings | None = None


def get_settings() -> Settings:
    global settings
    if settings is None:
        settings = Settings()
    return settings


def override_settings(s: Settings) -> None:
    """For testing: inject a Settings instance."""
    global settings
    settings = s
