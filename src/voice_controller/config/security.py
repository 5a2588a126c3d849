"""
Security-critical configuration injection.

This module handles:
- Transport credentials (ONLY from environment variables)
- Legacy environment variable name fallbacks

SECURITY POLICY:
- Public/private keys and assistant identifiers MUST NEVER be in YAML files
- All credentials MUST come from environment variables only
- This separation prevents accidental credential exposure in version control
"""

import os
from typing import Any, Dict, Mapping, Optional, Tuple


# Primary env var name first, then the legacy web-widget names
PUBLIC_KEY_ENV_VARS: Tuple[str, ...] = ("VAPI_PUBLIC_KEY", "NEXT_PUBLIC_VAPI_KEY")
ASSISTANT_ID_ENV_VARS: Tuple[str, ...] = ("VAPI_ASSISTANT_ID", "NEXT_PUBLIC_VAPI_ASSISTANT_ID")
PRIVATE_KEY_ENV_VARS: Tuple[str, ...] = ("VAPI_PRIVATE_KEY",)


def _is_nonempty_string(val: Any) -> bool:
    """
    Check if value is a non-empty string.

    Args:
        val: Value to check

    Returns:
        True if val is a string with non-whitespace content
    """
    return isinstance(val, str) and val.strip() != ""


def first_env_value(names: Tuple[str, ...], environ: Optional[Mapping[str, str]] = None) -> Tuple[Optional[str], Optional[str]]:
    """
    Return the first non-empty environment value among ``names``.

    Returns:
        (value, name) of the first match, or (None, None)
    """
    env = os.environ if environ is None else environ
    for name in names:
        value = env.get(name)
        if _is_nonempty_string(value):
            return value.strip(), name
    return None, None


def inject_transport_credentials(config_data: Dict[str, Any], environ: Optional[Mapping[str, str]] = None) -> None:
    """
    Inject transport credentials from environment variables ONLY.

    SECURITY: Credentials must NEVER be in YAML files.
    This function overwrites any YAML values with environment variables.

    Environment variables:
    - VAPI_PUBLIC_KEY or NEXT_PUBLIC_VAPI_KEY (required)
    - VAPI_ASSISTANT_ID or NEXT_PUBLIC_VAPI_ASSISTANT_ID (required)
    - VAPI_PRIVATE_KEY (server-side only, optional here)

    Args:
        config_data: Configuration dictionary to modify in-place
        environ: Optional environment mapping (defaults to os.environ)
    """
    public_key, _ = first_env_value(PUBLIC_KEY_ENV_VARS, environ)
    assistant_id, _ = first_env_value(ASSISTANT_ID_ENV_VARS, environ)
    private_key, _ = first_env_value(PRIVATE_KEY_ENV_VARS, environ)

    config_data['credentials'] = {
        "public_key": public_key,
        "assistant_id": assistant_id,
        "private_key": private_key,
    }
