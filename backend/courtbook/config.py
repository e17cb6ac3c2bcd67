# backend/courtbook/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repo root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./courtbook.db"
    redis_url: str = "redis://localhost:6379/0"

    # Facility-local wall clock; reservations and rules are in this zone
    timezone: str = "UTC"

    # Background sweep of lapsed holds and elapsed reservations
    reaper_enabled: bool = True

    # Cache base blocks in Redis (set False to always compute live)
    cache_blocks: bool = True

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # relative sqlite path is anchored at the repo root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
