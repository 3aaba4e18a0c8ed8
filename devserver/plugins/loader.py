"""Plugin loader - resolves descriptors one at a time into the registry."""

import logging
from typing import Iterable

from devserver.plugins.descriptor import PluginDescriptor
from devserver.plugins.registry import PluginRecord, PluginRegistry
from devserver.plugins.resolver import PluginResolver

logger = logging.getLogger(__name__)


class PluginLoader:
    """Drives the resolver across an ordered descriptor list.

    Loading is strictly sequential: installs share one project-level
    destination directory, so a resolution (install included) finishes
    before the next one starts. The first failure aborts the chain.
    """

    def __init__(self, registry: PluginRegistry, resolver: PluginResolver):
        self.registry = registry
        self.resolver = resolver

    async def load(self, descriptors: Iterable[PluginDescriptor]) -> None:
        """Load every descriptor in order, stopping at the first failure."""
        count = 0
        for descriptor in descriptors:
            await self.load_one(descriptor)
            count += 1
        logger.info(f"Loaded {count} plugin(s), {self.registry.count()} in registry")

    async def load_one(self, descriptor: PluginDescriptor) -> PluginRecord:
        """Load one descriptor, returning the cached record if already loaded."""
        return await self.registry.get_or_resolve(
            descriptor.name, lambda: self.resolver.resolve(descriptor)
        )
