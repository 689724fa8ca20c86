from enum import Enum
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


ASSETS_DIR = Path(__file__).resolve().parent.parent / "assets"


class Env(Enum):
    local = "local"
    dev = "dev"
    prod = "prod"


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: Env = Env.local
    port: int = 3001
    log_level: str = "INFO"
    html_dir: Path = ASSETS_DIR / "html"
    db_url: str = "sqlite+aiosqlite:///collegemeals.db"
    cors_origins: list[str] = ["*"]
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-1.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta/"
    gemini_timeout: float = 60
    recipes_per_request: int = 5
    fallback_on_error: bool = True
    trial_days: int = 7
