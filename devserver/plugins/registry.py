"""Plugin registry - the idempotency cache of resolved plugins."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional, TYPE_CHECKING

from devserver.plugins.descriptor import PluginDescriptor
from devserver.plugins.module import PluginModule

if TYPE_CHECKING:
    from devserver.services.config_service import PluginConfig

logger = logging.getLogger(__name__)


@dataclass
class PluginRecord:
    """A resolved, loaded plugin. Exactly one exists per logical name."""

    name: str
    path: Path
    module: PluginModule
    descriptor: PluginDescriptor
    version: str = ""
    trusted: bool = False  # built-in plugins see the full host config
    config: Optional[PluginConfig] = field(default=None, repr=False)

    def to_dict(self) -> dict:
        """Serialize plugin record to dict for API responses."""
        hooks = self.module.hooks
        return {
            "name": self.name,
            "path": str(self.path),
            "version": self.version,
            "trusted": self.trusted,
            "hooks": [
                hook for hook in ("on_route", "on_create", "on_option_change")
                if getattr(hooks, hook) is not None
            ],
            "services": sorted(self.module.services),
            "watches": list(self.module.watches),
            "priority": self.module.priority,
        }


class PluginRegistry:
    """Maps logical plugin names to records for the process lifetime.

    Entries are never evicted. The loader is the only writer.
    """

    def __init__(self):
        self._plugins: Dict[str, PluginRecord] = {}

    def get(self, name: str) -> Optional[PluginRecord]:
        """Get a plugin record by name."""
        return self._plugins.get(name)

    def get_all(self) -> list[PluginRecord]:
        """Get all records in load order."""
        return list(self._plugins.values())

    def has(self, name: str) -> bool:
        """Check if a plugin has been loaded."""
        return name in self._plugins

    def count(self) -> int:
        """Get total number of loaded plugins."""
        return len(self._plugins)

    async def get_or_resolve(
        self, name: str, factory: Callable[[], Awaitable[PluginRecord]]
    ) -> PluginRecord:
        """Return the cached record, or create it with factory exactly once.

        Args:
            name: Logical plugin name
            factory: Coroutine function producing the record on a cache miss

        Returns:
            The record registered under name
        """
        record = self._plugins.get(name)
        if record is not None:
            logger.debug(f"Plugin '{name}' already loaded, reusing record")
            return record

        record = await factory()
        self._put(record)
        return record

    def _put(self, record: PluginRecord) -> None:
        if record.name in self._plugins:
            raise ValueError(f"Plugin '{record.name}' is already registered")
        self._plugins[record.name] = record
        logger.info(f"Registered plugin: {record.name} ({record.path})")
