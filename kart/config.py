"""Runtime configuration: env-driven.

Centralized settings using pydantic-settings.  Reads from a .env file and
KART_* environment variables.  Only the CLI reads these; the catalog and
promotion engine receive their collaborators explicitly.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class KartSettings(BaseSettings):
    """Runtime settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export KART_STORAGE_BACKEND=s3
        export KART_S3_REGION=eu-west-1
        export KART_PROJECTS_FILE=/etc/kart/projects.toml

    Or via .env file::

        KART_STORAGE_ROOT=/srv/kart
        KART_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="KART_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Project/channel registry
    projects_file: Path = Path("kart.toml")

    # Storage
    storage_backend: Literal["filesystem", "s3"] = "filesystem"
    storage_root: Path = Path(".kart/storage")

    # S3 backend
    s3_region: str | None = None
    s3_endpoint_url: str | None = None
    s3_request_timeout_s: float = 30.0
    s3_max_attempts: int = 5

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"
