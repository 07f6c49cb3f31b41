"""
Host Configuration: конфигурация движка расширений.

Источники (в порядке применения):
- значения по умолчанию
- YAML/JSON файл (аргумент или EXTENSION_CONFIG_FILE)
- переменные окружения
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .constants import CORE_NAMESPACE, EXTENSION_LOAD_TIMEOUT
from .errors import ConfigError

logger = logging.getLogger(__name__)


def _default_db_url() -> str:
    return "sqlite:///" + os.path.join(os.getcwd(), "core_admin.db")


class ExtensionHostConfig(BaseModel):
    """Конфигурация хоста расширений"""

    db_url: str = Field(default_factory=_default_db_url)
    sql_echo: bool = False
    # None или <= 0 отключает таймаут
    load_timeout: Optional[float] = EXTENSION_LOAD_TIMEOUT
    protected_namespaces: List[str] = Field(default_factory=lambda: [CORE_NAMESPACE])
    log_level: str = "INFO"

    @field_validator("load_timeout")
    @classmethod
    def _normalize_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is None or value <= 0:
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level '{value}'")
        return level


# env var -> поле конфигурации
ENV_OVERRIDES = {
    "CORE_DB_URL": "db_url",
    "CORE_DB_ECHO": "sql_echo",
    "EXTENSION_LOAD_TIMEOUT": "load_timeout",
    "EXTENSION_PROTECTED_NAMESPACES": "protected_namespaces",
    "LOG_LEVEL": "log_level",
}


def _read_file(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


def _env_values() -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for env_name, field_name in ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or raw == "":
            continue
        if field_name == "sql_echo":
            values[field_name] = raw.lower() in ["true", "1", "yes", "on"]
        elif field_name == "protected_namespaces":
            values[field_name] = [ns.strip() for ns in raw.split(",") if ns.strip()]
        else:
            values[field_name] = raw
    return values


def load_config(path: Optional[Union[str, Path]] = None) -> ExtensionHostConfig:
    """Собрать конфигурацию из файла и окружения."""
    data: Dict[str, Any] = {}

    config_path = path or os.getenv("EXTENSION_CONFIG_FILE")
    if config_path:
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        try:
            data.update(_read_file(config_path))
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot parse config file {config_path}: {e}") from e
        logger.info(f"📋 Loaded host config from {config_path}")

    data.update(_env_values())

    try:
        return ExtensionHostConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid host configuration: {e}") from e


__all__ = ["ExtensionHostConfig", "load_config"]
