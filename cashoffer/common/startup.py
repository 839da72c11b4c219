"""Startup banner: the effective settings a process runs with, secrets masked."""

from cashoffer.common.config import CommonSettings, settings
from cashoffer.common.logging import logger

SECRET_FIELDS = frozenset({"api_key", "postgres_dsn", "redis_url"})


def effective_config(cfg: CommonSettings, fields: list[str]) -> dict[str, object]:
    values = cfg.model_dump(include=set(fields))
    return {
        name: ("<redacted>" if name in SECRET_FIELDS and values[name] else values[name])
        for name in fields
    }


def log_startup_config(service_name: str, fields: list[str], cfg: CommonSettings = settings) -> None:
    """Log the chosen settings once at process start."""

    logger.info("startup service=%s config=%s", service_name, effective_config(cfg, fields))
