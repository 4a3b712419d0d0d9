"""Application settings and configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    APP_NAME: str = "algolia-sync"

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # comma-separated list or "*"
    CORS_ORIGINS: str = "*"

    # Secrets, validated per request rather than at import time so that the
    # endpoints can report which ones are missing.
    ALGOLIA_API_KEY: str | None = None
    KONTENT_SECRET: str | None = None

    # Kontent.ai Delivery API
    KONTENT_DELIVERY_URL: str = "https://deliver.kontent.ai"
    KONTENT_FETCH_DEPTH: int = 100
    KONTENT_SOURCE_HEADER: str = "kontent-ai-integration-algolia;0.1.0"

    # Algolia REST API
    ALGOLIA_HOST_TEMPLATE: str = "https://{app_id}.algolia.net"
    ALGOLIA_TASK_POLL_INTERVAL: float = 0.5
    ALGOLIA_TASK_MAX_POLLS: int = 120

    HTTP_TIMEOUT_SECONDS: float = 30.0

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origins_list(self) -> List[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@dataclass(frozen=True)
class EnvCheck:
    """Outcome of checking that required settings are present."""

    values: Dict[str, str] = field(default_factory=dict)
    missing: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing


def check_required_env(config: Settings, names: Iterable[str]) -> EnvCheck:
    """
    Collect the values of the named settings, reporting any that are unset or empty.

    Pure function: evaluated once per invocation by the endpoints.
    """
    values: Dict[str, str] = {}
    missing: List[str] = []
    for name in names:
        value = getattr(config, name, None)
        if value:
            values[name] = value
        else:
            missing.append(name)
    return EnvCheck(values=values, missing=missing)


# Global settings instance
settings = Settings()
