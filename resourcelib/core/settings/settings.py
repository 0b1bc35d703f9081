"""Settings and configuration loading for resourcelib.

Settings come from, in increasing priority: field defaults, a ``.env`` file,
environment variables prefixed with ``RESOURCELIB_``, and finally an optional
YAML or JSON file passed to ``load_settings``.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


class ResourcelibSettings(BaseSettings):
    """Application-wide settings.

    The pagination fields form the default policy for services that do not
    configure their own.
    """

    environment: str = Field(default="development", validation_alias=AliasChoices("RESOURCELIB_ENV", "environment"))
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("RESOURCELIB_LOG_LEVEL", "log_level"))

    # Pagination policy
    paginate_enabled: bool = Field(default=True, validation_alias=AliasChoices("RESOURCELIB_PAGINATE_ENABLED", "paginate_enabled"))
    paginate_default: int = Field(default=10, validation_alias=AliasChoices("RESOURCELIB_PAGINATE_DEFAULT", "paginate_default"))
    paginate_max: int = Field(default=50, validation_alias=AliasChoices("RESOURCELIB_PAGINATE_MAX", "paginate_max"))

    id_field: str = Field(default="id", validation_alias=AliasChoices("RESOURCELIB_ID_FIELD", "id_field"))

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        if v.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"Log level must be one of: {VALID_LOG_LEVELS}")
        return v.upper()

    @field_validator('paginate_default', 'paginate_max')
    @classmethod
    def validate_positive_integers(cls, v: int) -> int:
        """Validate positive integer fields."""
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @model_validator(mode='after')
    def validate_paginate_bounds(self) -> 'ResourcelibSettings':
        if self.paginate_default > self.paginate_max:
            raise ValueError("paginate_default must not exceed paginate_max")
        return self


def _read_config_file(path: Path) -> Dict[str, Any]:
    with open(path, 'r') as f:
        if path.suffix.lower() in ['.yml', '.yaml']:
            data = yaml.safe_load(f)
        else:
            data = json.load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping, got {type(data).__name__}")
    return data


def load_settings(config_file: Optional[Union[str, Path]] = None, **overrides: Any) -> ResourcelibSettings:
    """Create settings, optionally reading a YAML or JSON file.

    The file may hold the fields at top level or under a ``resourcelib``
    section. Keyword overrides win over the file.

    Args:
        config_file: Optional path to a configuration file
        **overrides: Field values that take precedence

    Returns:
        Settings instance
    """
    values: Dict[str, Any] = {}

    if config_file is not None:
        path = Path(config_file)
        if path.exists():
            data = _read_config_file(path)
            section = data.get('resourcelib', data)
            values.update(section)
            logger.info(f"Loaded configuration from {path}")
        else:
            logger.warning(f"Configuration file {path} not found, using defaults")

    values.update(overrides)
    return ResourcelibSettings(**values)
