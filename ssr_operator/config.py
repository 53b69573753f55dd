"""Ambient configuration read from environment variables and ``.env``."""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ssr_operator.services.errors import ConfigurationException

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Operator properties.

    Dotted property names map onto fields by replacing dots with underscores,
    so ``operator.domain.name`` is read from ``OPERATOR_DOMAIN_NAME``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Base DNS domain of the cluster router
    operator_domain_name: Optional[str] = None

    # Worker pool size for request processing, defaults to the CPU count
    operator_worker_pool_size: Optional[int] = None

    operator_log_level: Optional[str] = None


def _field_name(key: str) -> str:
    return key.strip().lower().replace(".", "_").replace("-", "_")


def _load_settings(key: str, name: str) -> Settings:
    """Load settings, ignoring invalid properties other than ``name``.

    Invalid properties are overridden with ``None`` through init arguments,
    which take precedence over the environment and ``.env``.
    """
    try:
        return Settings()
    except ValidationError as exc:
        invalid = {str(error["loc"][0]) for error in exc.errors() if error.get("loc")}
        if name in invalid:
            raise ConfigurationException(f"Property {key} is invalid: {exc}") from exc
        logger.warning("Ignoring invalid properties %s while resolving %s", ", ".join(sorted(invalid)), key)
        return Settings(**{field: None for field in invalid})


def get_value(key: str, settings: Settings | None = None) -> Any:
    """Resolve one dotted property, raising when it is unknown, invalid or unset.

    Settings are loaded fresh unless given, so changes to the environment are
    picked up by the next lookup.
    """
    name = _field_name(key)
    if name not in Settings.model_fields:
        raise ConfigurationException(f"Unknown property {key}")
    active = settings or _load_settings(key, name)
    value = getattr(active, name)
    if value is None or value == "":
        raise ConfigurationException(f"Property {key} is not set")
    return value


def get_optional_value(key: str, settings: Settings | None = None) -> Any:
    try:
        return get_value(key, settings)
    except ConfigurationException as exc:
        logger.debug("Property %s unavailable: %s", key, exc)
        return None
