"""
Locating and reading the optional YAML settings file.

Only timing and logging settings live in YAML; credentials are injected from
the environment afterwards (see security.py). The file is located from, in
order: an explicit path, the VOICE_CONTROLLER_CONFIG environment variable.
Without either, no file is read.
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

CONFIG_PATH_ENV = "VOICE_CONTROLLER_CONFIG"

# Project root directory (parent of src/)
_PROJ_DIR = Path(__file__).resolve().parents[3]

PathLike = Union[str, Path]


def resolve_config_path(path: PathLike) -> str:
    """
    Resolve a settings file path to an absolute path.

    ``~`` is expanded; any other relative path is taken relative to the
    project root, so the CLI behaves the same from any working directory.
    """
    candidate = Path(path).expanduser()
    if not candidate.is_absolute():
        candidate = _PROJ_DIR / candidate
    return str(candidate)


def find_config_path(path: Optional[PathLike] = None,
                     environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Pick the settings file to read.

    Returns:
        Absolute path, or None when neither ``path`` nor VOICE_CONTROLLER_CONFIG is set
    """
    env = os.environ if environ is None else environ
    chosen = path or (env.get(CONFIG_PATH_ENV) or "").strip()
    if not chosen:
        return None
    return resolve_config_path(chosen)


def load_yaml_with_env_expansion(path: PathLike) -> Dict[str, Any]:
    """
    Read a YAML settings file after expanding ``${VAR}``/``$VAR`` references.

    Unset variables are left as written.

    Returns:
        Parsed mapping (empty dict for an empty file)

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML parsing fails
        TypeError: If the document root is not a mapping
    """
    config_file = Path(path)
    try:
        raw = config_file.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found at: {config_file}")

    try:
        config_data = yaml.safe_load(os.path.expandvars(raw))
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Error parsing YAML configuration {config_file}: {e}")

    if config_data is None:
        return {}
    if not isinstance(config_data, dict):
        raise TypeError(
            f"Configuration root must be a mapping, got {type(config_data).__name__}"
        )
    return config_data
