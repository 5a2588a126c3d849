"""
Environment validation for transport credentials.

Client-side callers need the public key and the assistant identifier.
Server-side callers additionally need the private key, which is never used
by the call controller itself.
"""

import os
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

import structlog

from .security import (
    ASSISTANT_ID_ENV_VARS,
    PRIVATE_KEY_ENV_VARS,
    PUBLIC_KEY_ENV_VARS,
    first_env_value,
)

logger = structlog.get_logger(__name__)

_UUID_RE = re.compile(r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$', re.IGNORECASE)


class ConfigurationError(ValueError):
    """Raised when required transport credentials are missing or invalid."""


@dataclass(frozen=True)
class RequiredVariable:
    key: str
    names: Tuple[str, ...]
    description: str


_CLIENT_VARIABLES = (
    RequiredVariable('public_key', PUBLIC_KEY_ENV_VARS, 'public key for client-side authentication'),
    RequiredVariable('assistant_id', ASSISTANT_ID_ENV_VARS, 'assistant ID for voice interactions'),
)
_SERVER_VARIABLES = _CLIENT_VARIABLES + (
    RequiredVariable('private_key', PRIVATE_KEY_ENV_VARS, 'private key for server-side operations'),
)


@dataclass
class EnvValidationResult:
    """Outcome of an environment check. Errors block startup, warnings don't."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    values: Dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def looks_like_uuid(value: str) -> bool:
    return bool(_UUID_RE.match(value or ""))


def validate_environment(server_side: bool = False, environ: Optional[Mapping[str, str]] = None) -> EnvValidationResult:
    """
    Validate transport credentials found in the environment.

    A missing required variable is an error. A present value that does not
    look like a UUID only produces a warning, since keys are usually UUIDs
    but the transport is the final authority.

    Args:
        server_side: Also require the private key
        environ: Optional environment mapping (defaults to os.environ)
    """
    result = EnvValidationResult()
    variables = _SERVER_VARIABLES if server_side else _CLIENT_VARIABLES

    for var in variables:
        value, found_name = first_env_value(var.names, environ)
        if value is None:
            result.errors.append(
                f"Missing required environment variable: {var.names[0]} ({var.description})"
            )
            continue
        if not looks_like_uuid(value):
            result.warnings.append(
                f"Environment variable {found_name} does not appear to be a valid UUID format"
            )
        result.values[var.key] = value

    return result


def _mask(value: str) -> str:
    return f"{value[:8]}..." if len(value) > 8 else "***"


def log_environment_validation(is_development: bool = False, server_side: bool = False,
                               environ: Optional[Mapping[str, str]] = None) -> EnvValidationResult:
    """
    Validate the environment and log the outcome.

    In development mode the loaded identifiers are logged too; secret values
    are masked to their first 8 characters.
    """
    side = 'server-side' if server_side else 'client-side'
    validation = validate_environment(server_side=server_side, environ=environ)

    if validation.is_valid:
        logger.info("All required environment variables are present", side=side)
        if is_development:
            for key, value in validation.values.items():
                shown = value if key == 'assistant_id' else _mask(value)
                logger.info("Environment variable loaded", variable=key, value_preview=shown)
    else:
        for error in validation.errors:
            logger.error("Environment variable validation failed", side=side, detail=error)

    for warning in validation.warnings:
        logger.warning("Environment variable warning", side=side, detail=warning)

    return validation


def get_credentials(server_side: bool = False, environ: Optional[Mapping[str, str]] = None) -> Dict[str, Optional[str]]:
    """
    Return validated transport credentials.

    Raises:
        ConfigurationError: If any required variable is missing
    """
    validation = validate_environment(server_side=server_side, environ=environ)
    if not validation.is_valid:
        side = 'server-side' if server_side else 'client-side'
        raise ConfigurationError(
            f"Environment variables validation failed ({side}): " + "; ".join(validation.errors)
        )
    return {
        'public_key': validation.values.get('public_key'),
        'assistant_id': validation.values.get('assistant_id'),
        'private_key': validation.values.get('private_key'),
    }
