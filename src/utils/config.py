"""Configuration loader.

Reads run configuration files in YAML format and returns a plain
dictionary.  The dictionary is mapped onto typed settings objects by
:mod:`src.preprocessing.settings`, which is where values are
validated.
"""

from pathlib import Path
from typing import Any, Dict

import yaml

from ..common.errors import ConfigurationError


def load_config(path: str) -> Dict[str, Any]:
    """Load a YAML configuration file into a dictionary.

    Parameters
    ----------
    path : str
        Path to the YAML configuration file.

    Returns
    -------
    dict
        Parsed configuration dictionary.  An empty file yields an
        empty dict.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ConfigurationError
        If the file is not valid YAML or its top level is not a
        mapping.
    """
    cfg_path = Path(path)
    if not cfg_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {cfg_path}")
    try:
        with open(cfg_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {cfg_path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration root in {cfg_path} must be a mapping, got {type(data).__name__}"
        )
    return data
