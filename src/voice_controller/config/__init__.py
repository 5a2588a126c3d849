"""
Configuration package for the voice controller.

This package contains:
- loaders: YAML file loading and parsing
- security: Credential injection from the environment
- defaults: Default value application
- validation: Environment credential validation
- models: Pydantic models and load_config
"""

from .models import (
    AppConfig,
    CredentialsConfig,
    LoggingConfig,
    TimingConfig,
    load_config,
    require_client_credentials,
)
from .validation import (
    ConfigurationError,
    EnvValidationResult,
    get_credentials,
    log_environment_validation,
    validate_environment,
)

__all__ = [
    'AppConfig',
    'CredentialsConfig',
    'LoggingConfig',
    'TimingConfig',
    'load_config',
    'require_client_credentials',
    'ConfigurationError',
    'EnvValidationResult',
    'get_credentials',
    'log_environment_validation',
    'validate_environment',
]
