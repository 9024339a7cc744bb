"""YAML-backed configuration for the orientation engine.

The active file is taken from the ``ORIENTATION_CONFIG`` environment variable
and defaults to ``orientation_constants.yaml`` next to this module. Values are
exposed both as nested attributes (``cfg().orbs.angle_crossing``) and through
dotted lookups (``cfg().get("orbs.angle_crossing", 1.0)``).
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "orientation_constants.yaml"

REQUIRED_KEYS: List[str] = [
    "orbs.angle_crossing",
    "fallback.pivot_deg",
]


class OrientationError(Exception):
    """Raised when the orientation configuration cannot be used."""


def _to_namespace(value: Any) -> Any:
    if isinstance(value, dict):
        return SimpleNamespace(**{k: _to_namespace(v) for k, v in value.items()})
    if isinstance(value, list):
        return [_to_namespace(v) for v in value]
    return value


class OrientationConfig:
    """Singleton wrapper around the parsed YAML constants."""

    _instance: Optional["OrientationConfig"] = None

    def __init__(self, path: Path):
        self.path = path
        self._data = self._load(path)
        self._ns = _to_namespace(self._data)

    @staticmethod
    def _load(path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise OrientationError(f"Configuration file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise OrientationError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise OrientationError(f"Top level of {path} must be a mapping")
        return data

    @classmethod
    def instance(cls) -> "OrientationConfig":
        if cls._instance is None:
            env_path = os.environ.get("ORIENTATION_CONFIG")
            path = Path(env_path) if env_path else Path(__file__).with_name(DEFAULT_CONFIG_FILE)
            cls._instance = cls(path)
            logger.debug("Loaded orientation configuration from %s", path)
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the cached instance so the next access reloads from disk."""
        cls._instance = None

    def __getattr__(self, name: str) -> Any:
        # Only reached for names not found on the instance itself
        try:
            return getattr(self.__dict__["_ns"], name)
        except (KeyError, AttributeError):
            raise AttributeError(name) from None

    def get(self, dotted_key: str, default: Any = None) -> Any:
        """Return the value at ``dotted_key`` (e.g. ``"orbs.angle_crossing"``)."""
        node: Any = self._ns
        for part in dotted_key.split("."):
            if not hasattr(node, part):
                return default
            node = getattr(node, part)
        return node

    def validate_required_keys(self) -> None:
        missing = [key for key in REQUIRED_KEYS if self.get(key) is None]
        if missing:
            raise OrientationError(
                f"Missing required configuration keys in {self.path}: {', '.join(missing)}"
            )


def get_config() -> OrientationConfig:
    return OrientationConfig.instance()


def cfg() -> OrientationConfig:
    """Shorthand used throughout the engine."""
    return OrientationConfig.instance()


def setting(dotted_key: str, default: Any) -> Any:
    """Read a numeric setting, falling back to ``default`` with a warning.

    An unreadable configuration file is reported the same way, so engine
    lookups never raise.
    """
    try:
        value = cfg().get(dotted_key)
    except OrientationError as exc:
        logger.warning("Configuration unavailable (%s), using default %s for %s", exc, default, dotted_key)
        return default
    if value is None:
        logger.warning("Setting %s not found, using default %s", dotted_key, default)
        return default
    return value
