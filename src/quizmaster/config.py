"""Configuration loading from YAML."""

import copy
import logging
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULTS = {
    "quiz": {"session_size": 25, "seed": None},
    "store": {"db_path": "quizmaster.db", "library_limit": 10, "history_limit": 20},
    "ticker": {"interval": 1.0},
    "logging": {"level": "INFO"},
}

_TYPES = {
    ("quiz", "session_size"): int,
    ("quiz", "seed"): int,
    ("store", "db_path"): str,
    ("store", "library_limit"): int,
    ("store", "history_limit"): int,
    ("ticker", "interval"): (int, float),
    ("logging", "level"): str,
}


def load_config(path: Optional[str] = "config.yaml") -> dict:
    """
    Merge a YAML config file over DEFAULTS.

    A missing file yields the defaults. Values of the wrong type are
    replaced by their default with a warning; unknown keys are ignored.
    """
    config = copy.deepcopy(DEFAULTS)
    if not path or not Path(path).exists():
        return config
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        logger.warning(f"Ignoring config {path}: top level must be a mapping")
        return config

    for (section, key), expected in _TYPES.items():
        values = raw.get(section)
        if not isinstance(values, dict) or key not in values:
            continue
        value = values[key]
        if value is None and DEFAULTS[section][key] is None:
            continue
        if isinstance(value, bool) or not isinstance(value, expected):
            logger.warning(f"Config {section}.{key}={value!r} has the wrong type, using default")
            continue
        config[section][key] = value
    return config
