"""Plugin builder - wires loaded plugins into the host's subsystems."""

import asyncio
import inspect
import logging
import os
from typing import Any, Callable, Optional

from devserver.constants import ASSET_FIELDS
from devserver.plugins.errors import BuildError
from devserver.plugins.registry import PluginRecord, PluginRegistry
from devserver.services.config_service import Config, ConfigChangeEvent
from devserver.services.events import EventBus
from devserver.services.injector import AssetDefinition, AssetInjector
from devserver.services.io import ServiceRegistry
from devserver.services.middleware import MiddlewareEntry, MiddlewareRegistry

logger = logging.getLogger(__name__)


def normalize_asset(definition: Any, plugin_path, default_test: Optional[Any] = None) -> AssetDefinition:
    """Normalize a filename shorthand or {filename, test} into an AssetDefinition.

    Relative filenames are joined onto plugin_path; a missing test falls back
    to the asset group's shared test.
    """
    if isinstance(definition, str):
        definition = {"filename": definition}
    elif isinstance(definition, AssetDefinition):
        definition = {"filename": definition.filename, "test": definition.test}

    filename = definition.get("filename")
    if filename and not os.path.isabs(filename):
        filename = os.path.join(str(plugin_path), filename)

    test = definition.get("test")
    return AssetDefinition(filename=filename, test=test if test is not None else default_test)


class PluginBuilder:
    """Connects every registered plugin's capabilities to host collaborators.

    All plugins are built concurrently. If one plugin's on_create fails the
    aggregate build fails, but siblings keep running and registrations that
    were already applied stay applied.
    """

    def __init__(
        self,
        registry: PluginRegistry,
        config: Config,
        middleware: MiddlewareRegistry,
        injector: AssetInjector,
        events: EventBus,
        io: ServiceRegistry,
    ):
        self.registry = registry
        self.config = config
        self.middleware = middleware
        self.injector = injector
        self.events = events
        self.io = io
        self._pending: set = set()

    async def build(self) -> None:
        """Build all registered plugins concurrently."""
        records = self.registry.get_all()
        await asyncio.gather(*(self.build_one(record) for record in records))
        logger.info(f"Plugin build finished, {len(records)} plugin(s) wired")

    async def build_one(self, record: PluginRecord) -> None:
        """Wire one plugin: watchers, services, assets, route middleware, then on_create.

        Raises:
            BuildError: If the plugin's on_create hook fails
        """
        name = record.name
        module = record.module
        hooks = module.hooks
        plugin_logger = logging.getLogger(f"plugin.{name}")
        config_view = self.config if record.trusted else record.config

        # 1. config watch, lives as long as the process
        self.config.watch(self._option_listener(record))

        # 2. services
        for service_name, implementation in module.services.items():
            self.io.register_service(service_name, implementation)

        # 3. script / style assets
        self._inject_assets(record)

        # 4. route middleware
        if hooks.on_route:
            self.middleware.add(
                name,
                MiddlewareEntry(
                    on_create=self._route_handler_factory(record, plugin_logger),
                    priority=module.priority or 0,
                ),
            )

        # 5. creation hook, nothing above is rolled back if it fails
        if hooks.on_create:
            try:
                result = hooks.on_create(
                    middleware=self.middleware,
                    injector=self.injector,
                    events=self.events,
                    config=config_view,
                    io=self.io,
                    logger=plugin_logger,
                )
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Plugin '{name}' on_create failed: {e}")
                raise BuildError(name, str(e)) from e

        logger.info(f"Built plugin: {name}")

    def _inject_assets(self, record: PluginRecord) -> None:
        assets = record.module.assets
        if not assets:
            return

        shared_test = assets.get("test")
        for field in ASSET_FIELDS:
            definitions = assets.get(field)
            if not isinstance(definitions, (list, tuple)) or not definitions:
                continue
            for definition in definitions:
                self.injector.add(field, normalize_asset(definition, record.path, shared_test))

    def _route_handler_factory(self, record: PluginRecord, plugin_logger: logging.Logger) -> Callable:
        on_route = record.module.hooks.on_route

        def on_create(host_config):
            # built-in plugins see the host config, everyone else their own namespace
            config_view = host_config if record.trusted else record.config

            async def handler(ctx, call_next):
                result = on_route(ctx, call_next, config=config_view, logger=plugin_logger)
                if inspect.isawaitable(result):
                    result = await result
                return result

            return handler

        return on_create

    def _option_listener(self, record: PluginRecord) -> Callable[[ConfigChangeEvent], None]:
        name = record.name
        watches = record.module.watches
        on_option_change = record.module.hooks.on_option_change

        def listener(event: ConfigChangeEvent) -> None:
            keys = [key for key in watches if event.affect(key)]
            if not keys or on_option_change is None:
                return
            # a failing plugin must not stop delivery to the other watchers
            try:
                result = on_option_change(keys=keys, prev_config=event.prev, config=event.current)
            except Exception as e:
                logger.error(f"Plugin '{name}' on_option_change failed: {e}")
                return
            if inspect.isawaitable(result):
                self._schedule(name, result)

        return listener

    def _schedule(self, name: str, awaitable) -> None:
        async def run():
            try:
                return await awaitable
            except Exception as e:
                logger.error(f"Plugin '{name}' on_option_change failed: {e}")

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(run())
            return

        task = loop.create_task(run())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
