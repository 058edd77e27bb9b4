from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from code_router_updater.catalog_sync import OPENROUTER_MODELS_URL

DEFAULT_CONFIG_PATH = "~/.config/opencode/opencode.json"
DEFAULT_BACKUP_PATH = "~/.config/opencode/opencode.bak"
DEFAULT_TIMEOUT_MS = 30000


class Settings(BaseSettings):
    openrouter_api_key: str | None = None
    openrouter_models_url: str = OPENROUTER_MODELS_URL
    code_router_config_path: str = DEFAULT_CONFIG_PATH
    code_router_backup_path: str = DEFAULT_BACKUP_PATH
    code_router_timeout_ms: str = str(DEFAULT_TIMEOUT_MS)
    log_level: str = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @property
    def api_key(self) -> str | None:
        if self.openrouter_api_key is None:
            return None
        return self.openrouter_api_key.strip() or None


@lru_cache
def get_settings() -> Settings:
    return Settings()
