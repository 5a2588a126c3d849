"""
Default value application for configuration.

This module handles:
- Conversation timing defaults (silence, ending, goodbye grace, retry delay, busy debounce)
- Retry budget default
- Logging defaults
"""

import os
from typing import Any, Dict, Mapping, Optional


DEFAULT_SILENCE_TIMEOUT_MS = 7000
DEFAULT_ENDING_TIMEOUT_MS = 15000
DEFAULT_GOODBYE_GRACE_MS = 2000
DEFAULT_RETRY_DELAY_MS = 1000
DEFAULT_PROCESSING_DEBOUNCE_MS = 300
DEFAULT_MAX_RETRIES = 2

# config key -> (environment variable, default)
_TIMING_ENV_OVERRIDES = {
    'silence_timeout_ms': ('SILENCE_TIMEOUT_MS', DEFAULT_SILENCE_TIMEOUT_MS),
    'ending_timeout_ms': ('ENDING_TIMEOUT_MS', DEFAULT_ENDING_TIMEOUT_MS),
    'goodbye_grace_ms': ('GOODBYE_GRACE_MS', DEFAULT_GOODBYE_GRACE_MS),
    'retry_delay_ms': ('RETRY_DELAY_MS', DEFAULT_RETRY_DELAY_MS),
    'processing_debounce_ms': ('PROCESSING_DEBOUNCE_MS', DEFAULT_PROCESSING_DEBOUNCE_MS),
    'max_retries': ('MAX_RETRIES', DEFAULT_MAX_RETRIES),
}


def _env_int(env: Mapping[str, str], name: str, fallback: int) -> int:
    raw = env.get(name)
    if raw is None or str(raw).strip() == "":
        return fallback
    try:
        return int(str(raw).strip())
    except ValueError:
        return fallback


def apply_timing_defaults(config_data: Dict[str, Any], environ: Optional[Mapping[str, str]] = None) -> None:
    """
    Apply conversation timing defaults with environment variable overrides.

    Precedence: environment variable > YAML timing.* > hardcoded default.
    Unparseable environment values fall back to the YAML/default value.

    Environment variables:
    - SILENCE_TIMEOUT_MS: Delay before a contextual filler prompt (default: 7000)
    - ENDING_TIMEOUT_MS: Inactivity delay after an assistant turn before ending (default: 15000)
    - GOODBYE_GRACE_MS: Grace delay in the ending state before stopping the call (default: 2000)
    - RETRY_DELAY_MS: Fixed delay before an automatic restart (default: 1000)
    - PROCESSING_DEBOUNCE_MS: Delay before the busy indicator is shown (default: 300)
    - MAX_RETRIES: Automatic restart budget per failure streak (default: 2)

    Args:
        config_data: Configuration dictionary to modify in-place
        environ: Optional environment mapping (defaults to os.environ)
    """
    env = os.environ if environ is None else environ
    timing_cfg = config_data.get('timing') or {}
    if not isinstance(timing_cfg, dict):
        raise TypeError(f"'timing' must be a mapping, got {type(timing_cfg).__name__}")

    for key, (env_name, default) in _TIMING_ENV_OVERRIDES.items():
        yaml_value = timing_cfg.get(key, default)
        timing_cfg[key] = _env_int(env, env_name, yaml_value)

    config_data['timing'] = timing_cfg


def apply_logging_defaults(config_data: Dict[str, Any], environ: Optional[Mapping[str, str]] = None) -> None:
    """
    Apply logging defaults.

    Environment variables:
    - LOG_LEVEL: Overrides logging.level (default: info)
    - LOG_FORMAT: Overrides logging.format (default: json)
    """
    env = os.environ if environ is None else environ
    logging_cfg = config_data.get('logging') or {}
    logging_cfg['level'] = (env.get('LOG_LEVEL') or logging_cfg.get('level') or 'info').lower()
    logging_cfg['format'] = (env.get('LOG_FORMAT') or logging_cfg.get('format') or 'json').lower()
    config_data['logging'] = logging_cfg
