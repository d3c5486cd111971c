# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Application configuration via environment variables and .env files."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="KVMODEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        protected_namespaces=(),
    )

    # Model
    model_name: str = "KeyValue"
    namespace: str = ""  # default ``namespace`` option for every call

    # Backend
    backend: str = "memory"  # "memory", "redis", "sqlite" or "none"
    memory_max_size: int | None = None  # per namespace; unset means unbounded
    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = "kvmodel:"
    sqlite_path: Path = Path("kvmodel.db")
    iterate_batch_size: int = 100

    # API server
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    api_base_path: str = ""  # empty derives "/api/v1/<model name>"
    cors_origins: list[str] = []

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v: object) -> list[str]:
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v if isinstance(v, list) else []

    @field_validator("backend", mode="before")
    @classmethod
    def _normalise_backend(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"


def get_settings() -> Settings:
    return Settings()
