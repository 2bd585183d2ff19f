"""
YAML-backed structured configuration.

Scalar settings come from the environment (see config.Settings). Everything
with shape lives in YAML instead: the discipline catalog, the scheduler job
table, numeric limits and the reminder message templates.

Layers, last one wins:
    discipline_tracker/config/defaults.yaml   shipped with the package
    config/settings.yaml                      per deployment; the path can be
                                              moved with CONFIG_SETTINGS_PATH
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

PACKAGED_DEFAULTS = Path(__file__).resolve().parent.parent / "config" / "defaults.yaml"
SETTINGS_PATH_ENV = "CONFIG_SETTINGS_PATH"

# Merged config keyed by (defaults path, settings path)
_cache: Dict[Tuple[Path, Path], Dict[str, Any]] = {}


def load_yaml_file(file_path: Path) -> Dict[str, Any]:
    """Read a YAML mapping; a missing or empty file reads as {}."""
    path = Path(file_path)
    if not path.is_file():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    return data or {}


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return a new dict with ``override`` laid over ``base``, recursing into mappings."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def get_nested(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """Look up ``"a.b.c"`` in nested mappings, e.g. ``"scheduler.cleanup.time"``."""
    node: Any = config
    for part in key_path.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


def _settings_path() -> Path:
    return Path(os.getenv(SETTINGS_PATH_ENV, "config/settings.yaml"))


def load_defaults(
    defaults_path: Optional[Path] = None,
    settings_path: Optional[Path] = None,
    reload: bool = False,
) -> Dict[str, Any]:
    """
    Merge the packaged defaults with the deployment overrides.

    Args:
        defaults_path: Base YAML, the packaged defaults.yaml when omitted
        settings_path: Override YAML, CONFIG_SETTINGS_PATH or
            ./config/settings.yaml when omitted
        reload: Re-read the files even if this pair is cached
    """
    key = (
        Path(defaults_path or PACKAGED_DEFAULTS),
        Path(settings_path or _settings_path()),
    )
    if reload or key not in _cache:
        _cache[key] = deep_merge(load_yaml_file(key[0]), load_yaml_file(key[1]))
    return _cache[key]


def get_config_value(key_path: str, default: Any = None) -> Any:
    """Dot-path lookup into the merged config, e.g. ``"reminders.excluded_roles"``."""
    return get_nested(load_defaults(), key_path, default)


def get_limit(name: str, default: int = 100) -> int:
    return int(get_config_value(f"limits.{name}", default))


def get_message(name: str, default: str = "") -> str:
    return get_config_value(f"messages.{name}", default)


def clear_cache() -> None:
    """Forget every merged config so the next lookup re-reads YAML."""
    _cache.clear()
