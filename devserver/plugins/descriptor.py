"""Plugin descriptor and package manifest models."""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import parse_qsl

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from devserver.constants import PLUGIN_MANIFEST_FILE

logger = logging.getLogger(__name__)


def _coerce_option(value: str) -> Any:
    """Coerce a query-string option value ("true" → True, "8" → 8)."""
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if value.isdigit():
        return int(value)
    return value


class PluginDescriptor(BaseModel):
    """Caller-supplied request to load a plugin, before resolution.

    A descriptor carrying ``hooks`` or ``assets`` (or ``inplace=True``) is the
    plugin module itself and bypasses resolution entirely.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., description="Logical plugin name")
    path: Optional[str] = Field(default=None, description="Explicit local source directory")
    version: Optional[str] = Field(default=None, description="Version constraint, e.g. '^1.0.0'")
    install: bool = Field(default=False, description="Force install even when path is given")
    inplace: bool = Field(default=False, description="Treat the descriptor itself as the module")

    # In-place module fields
    hooks: Optional[Dict[str, Callable]] = None
    assets: Optional[Dict[str, Any]] = None
    services: Optional[Dict[str, Any]] = None
    configs: Optional[Dict[str, Any]] = None
    watches: List[str] = Field(default_factory=list)
    priority: Optional[int] = None

    options: Dict[str, Any] = Field(default_factory=dict, description="Plugin-scoped config values")

    @property
    def is_inplace(self) -> bool:
        return bool(self.inplace or self.hooks or self.assets)

    def get_info(self, field: Optional[str] = None) -> Any:
        """Get a descriptor field, or all fields as a dict when field is None."""
        if field is None:
            return self.model_dump()
        return getattr(self, field, None)

    @classmethod
    def parse(cls, text: str) -> "PluginDescriptor":
        """Parse the shorthand ``[@scope/]name[@version][?options]``.

        Examples:
            >>> PluginDescriptor.parse("qrcode@^1.0.0?size=8")
            PluginDescriptor(name='qrcode', version='^1.0.0', options={'size': 8}, ...)
        """
        text = text.strip()
        query = ""
        if "?" in text:
            text, query = text.split("?", 1)

        # a leading "@" belongs to the scope, not the version
        name, version = text, None
        at = text.rfind("@")
        if at > 0:
            name, version = text[:at], text[at + 1:] or None

        options = {key: _coerce_option(value) for key, value in parse_qsl(query, keep_blank_values=True)}
        return cls(name=name, version=version, options=options)

    @classmethod
    def from_config(cls, item: Union[str, Dict[str, Any], "PluginDescriptor"]) -> "PluginDescriptor":
        """Build a descriptor from a ``plugins`` config list entry."""
        if isinstance(item, PluginDescriptor):
            return item
        if isinstance(item, str):
            return cls.parse(item)
        if isinstance(item, dict):
            return cls(**item)
        raise TypeError(f"Unsupported plugin entry: {item!r}")


class PackageManifest(BaseModel):
    """Package metadata loaded from a plugin's plugin.json.

    Every field is optional; a missing manifest is an empty one.
    """

    model_config = ConfigDict(extra="allow")

    name: str = ""
    version: str = ""
    description: str = ""
    main: Optional[str] = Field(
        default=None,
        description="Entry module relative to the plugin directory, defaults to __init__.py",
    )
    engines: Dict[str, str] = Field(default_factory=dict)


def read_manifest(plugin_dir: Path) -> PackageManifest:
    """Load plugin.json from a plugin directory, tolerating its absence."""
    manifest_file = Path(plugin_dir) / PLUGIN_MANIFEST_FILE
    if not manifest_file.exists():
        return PackageManifest()

    try:
        with open(manifest_file, "r", encoding="utf-8") as f:
            return PackageManifest(**json.load(f))
    except json.JSONDecodeError as e:
        logger.warning(f"Invalid JSON in {manifest_file}: {e}")
    except (ValidationError, TypeError) as e:
        logger.warning(f"Invalid manifest in {manifest_file}: {e}")
    except OSError as e:
        logger.warning(f"Error reading {manifest_file}: {e}")

    return PackageManifest()
