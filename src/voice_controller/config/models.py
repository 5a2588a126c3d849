"""
Configuration models for the voice controller.

Pydantic v2 models for validation and type safety, plus ``load_config`` which
runs the load -> inject credentials -> defaults -> validate phases.
"""

import os
from typing import Any, Dict, List, Mapping, Optional

import structlog
from pydantic import BaseModel, Field, field_validator

from .defaults import (
    DEFAULT_ENDING_TIMEOUT_MS,
    DEFAULT_GOODBYE_GRACE_MS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PROCESSING_DEBOUNCE_MS,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_SILENCE_TIMEOUT_MS,
    apply_logging_defaults,
    apply_timing_defaults,
)
from .loaders import find_config_path, load_yaml_with_env_expansion
from .security import inject_transport_credentials
from .validation import ConfigurationError

logger = structlog.get_logger(__name__)


class CredentialsConfig(BaseModel):
    public_key: Optional[str] = None
    assistant_id: Optional[str] = None
    # Reserved for server-side operations; the call controller never reads it
    private_key: Optional[str] = None

    def missing_client_fields(self) -> List[str]:
        return [name for name in ('public_key', 'assistant_id') if not getattr(self, name)]

    @property
    def is_client_ready(self) -> bool:
        return not self.missing_client_fields()


class TimingConfig(BaseModel):
    silence_timeout_ms: int = Field(default=DEFAULT_SILENCE_TIMEOUT_MS, ge=0)
    ending_timeout_ms: int = Field(default=DEFAULT_ENDING_TIMEOUT_MS, ge=0)
    goodbye_grace_ms: int = Field(default=DEFAULT_GOODBYE_GRACE_MS, ge=0)
    retry_delay_ms: int = Field(default=DEFAULT_RETRY_DELAY_MS, ge=0)
    processing_debounce_ms: int = Field(default=DEFAULT_PROCESSING_DEBOUNCE_MS, ge=0)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)


class LoggingConfig(BaseModel):
    level: str = Field(default="info")  # debug|info|warning|error|critical
    format: str = Field(default="json")  # json|console

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        value = value.lower()
        if value not in ("debug", "info", "warning", "error", "critical"):
            raise ValueError(f"Invalid log level: {value}")
        return value


class AppConfig(BaseModel):
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    timing: TimingConfig = Field(default_factory=TimingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """
    Load and validate configuration.

    The YAML file is optional: without one, every value comes from the
    environment or the built-in defaults. Credentials are always taken from
    the environment, never from YAML.

    Args:
        path: Path to YAML configuration file (absolute or relative to project root);
            falls back to VOICE_CONTROLLER_CONFIG
        environ: Optional environment mapping (defaults to os.environ)

    Returns:
        Validated AppConfig instance

    Raises:
        FileNotFoundError: If an explicit configuration file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    env = os.environ if environ is None else environ

    config_data: Dict[str, Any] = {}
    config_path = find_config_path(path, env)
    if config_path:
        config_data = load_yaml_with_env_expansion(config_path)

    inject_transport_credentials(config_data, env)

    apply_timing_defaults(config_data, env)
    apply_logging_defaults(config_data, env)

    config = AppConfig(**config_data)
    logger.debug(
        "Configuration loaded",
        config_path=config_path,
        credentials_ready=config.credentials.is_client_ready,
        timing=config.timing.model_dump(),
    )
    return config


def require_client_credentials(config: AppConfig) -> CredentialsConfig:
    """
    Return the credentials when both client-side identifiers are present.

    Raises:
        ConfigurationError: If the public key or the assistant id is missing
    """
    missing = config.credentials.missing_client_fields()
    if missing:
        raise ConfigurationError(f"Missing transport credentials: {', '.join(missing)}")
    return config.credentials
