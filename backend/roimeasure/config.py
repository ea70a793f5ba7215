"""Library configuration from environment variables."""

from __future__ import annotations

import logging

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    roimeasure_env: str = "development"
    roimeasure_log_level: str = "info"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for scripts and batch jobs using this library."""
    level_name = (level or settings.roimeasure_log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
