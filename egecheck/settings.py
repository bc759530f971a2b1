"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]
DEFAULT_LOCAL_DATA_DIR = BASE_DIR / "data"
DEFAULT_VERCEL_DATA_DIR = Path("/tmp/egecheck")


TRUTHY_VALUES = {"1", "true", "yes", "on"}


def _is_truthy(value: str | None) -> bool:
    return bool(value and value.strip().lower() in TRUTHY_VALUES)


def _running_on_vercel() -> bool:
    return bool(os.getenv("VERCEL") or os.getenv("VERCEL_ENV") or _is_truthy(os.getenv("EGECHECK_VERCEL_ENVIRONMENT")))


def _default_data_dir() -> str:
    if _running_on_vercel():
        return str(DEFAULT_VERCEL_DATA_DIR)
    return str(DEFAULT_LOCAL_DATA_DIR)


class Settings(BaseSettings):
    """Runtime configuration for the essay checker backend."""

    model_config = SettingsConfigDict(env_prefix="EGECHECK_", extra="ignore", populate_by_name=True)

    app_name: str = "EGE Essay Checker API"
    data_dir: str = Field(
        default_factory=_default_data_dir,
        validation_alias=AliasChoices("EGECHECK_DATA_DIR", "DATA_DIR"),
    )
    sqlite_path: str | None = Field(
        default=None,
        validation_alias=AliasChoices("EGECHECK_SQLITE_PATH", "SQLITE_PATH"),
    )

    # Persistence: "sql" keeps history in SQLite, "memory" is local-only mode
    persistence_backend: str = "sql"
    initial_free_checks: int = Field(default=5, ge=0)
    max_essay_chars: int = Field(default=20_000, gt=0)

    # Grading backend: "openai", "http" or "mock"
    grading_backend: str = "openai"
    openai_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("EGECHECK_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    grading_model: str = "gpt-5-mini"
    generation_model: str = "gpt-5-mini"
    grading_timeout_seconds: float = 180.0
    grading_function_url: str = ""
    grading_function_key: str = ""

    # Deployment-wide key checked against X-API-Key when set
    backend_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("EGECHECK_BACKEND_API_KEY", "BACKEND_API_KEY"),
    )

    # CORS configuration
    cors_allow_origins: str = Field(
        default="*",
        validation_alias=AliasChoices("EGECHECK_CORS_ALLOW_ORIGINS", "CORS_ALLOW_ORIGINS"),
    )

    @model_validator(mode="after")
    def _set_sqlite_path(self) -> "Settings":
        if not self.sqlite_path:
            self.sqlite_path = str(Path(self.data_dir) / "egecheck.db")
        return self

    @property
    def sqlite_url(self) -> str:
        return f"sqlite:///{self.sqlite_path}"

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    @property
    def cors_origin_list(self) -> list[str]:
        if self.cors_allow_origins.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]

    @property
    def grading_configured(self) -> bool:
        backend = self.grading_backend.lower().strip()
        if backend == "mock":
            return True
        if backend == "http":
            return bool(self.grading_function_url.strip())
        return bool(self.openai_api_key.strip())


settings = Settings()


def get_settings() -> Settings:
    """Return the process-wide settings object built at startup."""
    return settings
