import copy

import yaml
from pathlib import Path

DEFAULT_CONFIG_PATH = Path(__file__).parent / "engine.yaml"

_CONFIG_CACHE = {}


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> dict:
    """
    Load YAML config with per-file cache.
    """

    path = str(path)

    if path in _CONFIG_CACHE:
        return _CONFIG_CACHE[path]

    config_path = Path(path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    _CONFIG_CACHE[path] = data
    return data


def load_engine_config(path: str | Path | None = None) -> dict:
    """
    Shipped defaults with an optional user file merged on top.
    Returns a fresh dict, the cache is never handed out for mutation.
    """
    config = copy.deepcopy(load_config(DEFAULT_CONFIG_PATH))

    if path is not None:
        _deep_merge(config, load_config(path))

    return config


def _deep_merge(base: dict, override: dict) -> dict:
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = copy.deepcopy(value)
    return base
