"""Configuration store with change notification (Thread-safe version)."""

import copy
import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from devserver.config_schema import default_config

logger = logging.getLogger(__name__)

_MISSING = object()


def get_path(data: Dict[str, Any], key: str, default: Any = None) -> Any:
    """Read a dotted key ("cors.origin") from nested dicts."""
    current: Any = data
    for part in key.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def set_path(data: Dict[str, Any], key: str, value: Any) -> None:
    """Write a dotted key, creating intermediate dicts."""
    parts = key.split(".")
    current = data
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = current[part] = {}
        current = child
    current[parts[-1]] = value


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigChangeEvent:
    """Snapshot comparison delivered to watchers after one mutation."""

    def __init__(self, prev: Dict[str, Any], current: Dict[str, Any]):
        self.prev = prev
        self.current = current

    def affect(self, key: str) -> bool:
        """True if the value at key differs between prev and current."""
        return get_path(self.prev, key, _MISSING) != get_path(self.current, key, _MISSING)

    def __repr__(self) -> str:
        return f"ConfigChangeEvent(prev={self.prev!r}, current={self.current!r})"


ConfigListener = Callable[[ConfigChangeEvent], None]


class Config:
    """
    Host configuration store (Thread-safe version).

    - Values are read and written with dotted keys
    - Every set() produces one ConfigChangeEvent for all watchers
    - Watchers are never removed; their lifetime is the process lifetime
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = _deep_merge(default_config(), data or {})
        self._listeners: List[ConfigListener] = []
        self._lock = threading.Lock()

    @classmethod
    def from_file(cls, config_file: Path, overrides: Optional[Dict[str, Any]] = None) -> "Config":
        """Load the JSON rc file merged over schema defaults."""
        data: Dict[str, Any] = {}
        if config_file.exists():
            try:
                with open(config_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (json.JSONDecodeError, IOError) as e:
                logger.error(f"Error loading config file {config_file}: {e}")
        else:
            logger.debug(f"Config file not found, using defaults: {config_file}")

        if not isinstance(data, dict):
            logger.error(f"Config file {config_file} must contain a JSON object")
            data = {}
        return cls(_deep_merge(data, overrides or {}))

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dotted key."""
        with self._lock:
            return get_path(self._data, key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a value and notify every watcher."""
        with self._lock:
            prev = copy.deepcopy(self._data)
            set_path(self._data, key, value)
            current = copy.deepcopy(self._data)
            listeners = list(self._listeners)

        event = ConfigChangeEvent(prev, current)
        for listener in listeners:
            listener(event)

    def watch(self, listener: ConfigListener) -> None:
        """Subscribe to change events for the lifetime of the process."""
        with self._lock:
            self._listeners.append(listener)

    def to_dict(self) -> Dict[str, Any]:
        """Get a snapshot of the whole configuration."""
        with self._lock:
            return copy.deepcopy(self._data)


class PluginConfig:
    """Plugin-scoped configuration view.

    Third-party plugins only ever see this view: their own options plus
    read access to their descriptor fields.
    """

    def __init__(self, name: str, options: Optional[Dict[str, Any]] = None, descriptor=None):
        self.name = name
        self.descriptor = descriptor
        self._options: Dict[str, Any] = copy.deepcopy(options or {})
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return get_path(self._options, key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            set_path(self._options, key, value)

    def get_info(self, field: Optional[str] = None) -> Any:
        """Read a field of the originating descriptor."""
        if self.descriptor is None:
            return None
        return self.descriptor.get_info(field)

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._options)
