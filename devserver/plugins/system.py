"""Plugin system - top-level orchestrator for plugin loading and building."""

import logging
from typing import Iterable, List, Optional

from devserver.constants import BUILTIN_PLUGINS
from devserver.plugins.builder import PluginBuilder
from devserver.plugins.descriptor import PluginDescriptor
from devserver.plugins.loader import PluginLoader
from devserver.plugins.package_source import PackageSource, PipPackageSource
from devserver.plugins.registry import PluginRecord, PluginRegistry
from devserver.plugins.resolver import PluginResolver
from devserver.services.config_service import Config
from devserver.services.events import EventBus
from devserver.services.injector import AssetInjector
from devserver.services.io import ServiceRegistry
from devserver.services.middleware import MiddlewareRegistry

logger = logging.getLogger(__name__)


class PluginSystem:
    """Top-level plugin system orchestrator.

    Owns the registry and coordinates the two phases: sequential loading,
    then concurrent building.
    """

    def __init__(
        self,
        config: Config,
        middleware: MiddlewareRegistry,
        injector: AssetInjector,
        events: EventBus,
        io: ServiceRegistry,
        package_source: Optional[PackageSource] = None,
        resolver: Optional[PluginResolver] = None,
    ):
        self.config = config
        self.middleware = middleware
        self.injector = injector
        self.events = events
        self.io = io

        self.registry = PluginRegistry()
        self.resolver = resolver or PluginResolver(
            config, package_source or PipPackageSource(index_url=config.get("registry"))
        )
        self.loader = PluginLoader(self.registry, self.resolver)
        self.builder = PluginBuilder(self.registry, config, middleware, injector, events, io)

    def get(self, name: str) -> Optional[PluginRecord]:
        """Get a loaded plugin record by name."""
        return self.registry.get(name)

    async def load(self, descriptors: Iterable[PluginDescriptor]) -> None:
        """Load plugins sequentially (fail-fast)."""
        await self.loader.load(descriptors)

    async def load_one(self, descriptor: PluginDescriptor) -> PluginRecord:
        """Load a single plugin, reusing the cached record if present."""
        return await self.loader.load_one(descriptor)

    async def build(self) -> None:
        """Build every loaded plugin concurrently."""
        await self.builder.build()

    async def build_one(self, record: PluginRecord) -> None:
        await self.builder.build_one(record)

    def configured_descriptors(self) -> List[PluginDescriptor]:
        """Built-in plugins followed by the ``plugins`` entries of the config."""
        descriptors = [PluginDescriptor.from_config(item) for item in self.config.get("plugins") or []]
        configured = {d.name for d in descriptors}
        builtins = [PluginDescriptor(name=name) for name in BUILTIN_PLUGINS if name not in configured]
        return builtins + descriptors

    async def start(self) -> None:
        """Load the configured plugins, then build them."""
        descriptors = self.configured_descriptors()
        await self.load(descriptors)
        await self.build()
        logger.info(
            f"Plugin system initialized, {self.registry.count()} plugin(s): "
            f"{', '.join(r.name for r in self.registry.get_all())}"
        )

    def get_plugin_info(self, name: str) -> Optional[dict]:
        """Get plugin information as dict."""
        record = self.registry.get(name)
        if not record:
            return None
        info = record.to_dict()
        info["config"] = self.config.get(name) if record.trusted else record.config.to_dict()
        return info

    def list_plugins(self) -> List[dict]:
        """List all loaded plugins as dicts."""
        return [record.to_dict() for record in self.registry.get_all()]
