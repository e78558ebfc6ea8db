"""Configuration loading from config.yaml."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from nomilog.intake.calculator import DEFAULT_DAILY_GUIDELINE_ML
from nomilog.storage.errors import InvalidInputError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"
DEFAULT_DB_PATH = "data/nomilog.db"
DEFAULT_LOG_LEVEL = "INFO"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class AppConfig:
    """Settings shared by every entry point."""

    db_path: str = DEFAULT_DB_PATH
    log_level: str = DEFAULT_LOG_LEVEL
    daily_guideline_ml: float = DEFAULT_DAILY_GUIDELINE_ML

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AppConfig:
        database = data.get("database") or {}
        logging_cfg = data.get("logging") or {}
        intake = data.get("intake") or {}

        level = str(logging_cfg.get("level", DEFAULT_LOG_LEVEL)).upper()
        if level not in _LOG_LEVELS:
            raise InvalidInputError(f"logging.level must be one of {', '.join(_LOG_LEVELS)}")

        guideline = intake.get("daily_guideline_ml", DEFAULT_DAILY_GUIDELINE_ML)
        try:
            guideline = float(guideline)
        except (TypeError, ValueError):
            raise InvalidInputError("intake.daily_guideline_ml must be a number") from None
        if guideline <= 0:
            raise InvalidInputError("intake.daily_guideline_ml must be positive")

        return cls(
            db_path=str(database.get("path") or DEFAULT_DB_PATH),
            log_level=level,
            daily_guideline_ml=guideline,
        )

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level, logging.INFO)


def load_config(path: Optional[Union[str, Path]] = None) -> AppConfig:
    """Read a YAML config file; a missing or empty file yields defaults."""
    config_path = Path(path or DEFAULT_CONFIG_PATH)
    if not config_path.exists():
        logger.debug("No config at %s, using defaults", config_path)
        return AppConfig()

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise InvalidInputError(f"cannot parse {config_path}: {exc}") from exc
    if not data:
        return AppConfig()
    if not isinstance(data, dict):
        raise InvalidInputError(f"{config_path} must contain a mapping")

    return AppConfig.from_dict(data)
