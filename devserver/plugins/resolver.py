"""Plugin resolver - turns one descriptor into a loaded plugin record."""

import asyncio
import importlib.util
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

from devserver import __version__
from devserver.constants import (
    BUILTIN_PLUGINS,
    BUILTIN_PLUGINS_DIR,
    ENGINE_NAME,
    PLUGIN_INSTALL_DIR_NAME,
    PLUGIN_MANIFEST_FILE,
    PROJECT_ROOT,
)
from devserver.plugins.descriptor import PackageManifest, PluginDescriptor, read_manifest
from devserver.plugins.errors import LoadError, ResolutionError
from devserver.plugins.module import PluginModule
from devserver.plugins.package_source import PackageSource
from devserver.plugins.registry import PluginRecord
from devserver.plugins.version import satisfies
from devserver.services.config_service import Config, PluginConfig
from devserver.utils.plugin_name import plugin_import_name

logger = logging.getLogger(__name__)


def _is_plugin_dir(path: Path) -> bool:
    return path.is_dir() and (
        (path / "__init__.py").is_file() or (path / PLUGIN_MANIFEST_FILE).is_file()
    )


class PluginResolver:
    """Resolves descriptors, trying in order: built-in, in-place,
    local lookup by name, local path, install from the package source.

    The first branch that applies wins. Idempotency is the registry's job;
    the resolver is called at most once per plugin name.
    """

    def __init__(
        self,
        config: Config,
        package_source: PackageSource,
        host_version: str = __version__,
        builtin_dir: Path = BUILTIN_PLUGINS_DIR,
        builtin_plugins: Iterable[str] = BUILTIN_PLUGINS,
    ):
        self.config = config
        self.package_source = package_source
        self.host_version = host_version
        self.builtin_dir = Path(builtin_dir)
        self.builtin_plugins = frozenset(builtin_plugins)

    @property
    def root(self) -> Path:
        return Path(self.config.get("root") or PROJECT_ROOT).resolve()

    @property
    def install_dir(self) -> Path:
        return self.root / PLUGIN_INSTALL_DIR_NAME

    async def resolve(self, descriptor: PluginDescriptor) -> PluginRecord:
        """Resolve and load a plugin.

        Raises:
            ResolutionError: No published version satisfies the constraint
            LoadError: The plugin module could not be imported
            InstallError: Propagated unchanged from the package source
        """
        name = descriptor.name

        # 1. built-in
        if name in self.builtin_plugins:
            plugin_dir = self.builtin_dir / name
            manifest = read_manifest(plugin_dir)
            module = self._load_module(name, plugin_dir, manifest)
            logger.debug(f"Resolved built-in plugin '{name}' at {plugin_dir}")
            return self._make_record(descriptor, plugin_dir, module, manifest.version, trusted=True)

        # 2. in-place: the descriptor is the module
        if descriptor.is_inplace:
            logger.debug(f"Resolved in-place plugin '{name}'")
            return self._make_record(descriptor, self.root, PluginModule.from_object(descriptor))

        # 3. local lookup by name
        record = await self._resolve_by_name(descriptor)
        if record is not None:
            return record

        # 4. local lookup by explicit path
        if descriptor.path and not descriptor.install:
            plugin_dir = self._absolute(descriptor.path)
            manifest = await asyncio.to_thread(read_manifest, plugin_dir)
            module = self._load_module(name, plugin_dir, manifest)
            logger.debug(f"Resolved plugin '{name}' from local path {plugin_dir}")
            return self._make_record(descriptor, plugin_dir, module, manifest.version)

        # 5. install and load
        return await self._install_and_load(descriptor)

    async def _resolve_by_name(self, descriptor: PluginDescriptor) -> Optional[PluginRecord]:
        name = descriptor.name
        plugin_dir = await asyncio.to_thread(self._find_package, name)
        if plugin_dir is None:
            return None

        manifest = await asyncio.to_thread(read_manifest, plugin_dir)
        engine_range = manifest.engines.get(ENGINE_NAME, "*")
        try:
            compatible = satisfies(self.host_version, engine_range)
        except ValueError as e:
            logger.warning(f"Ignoring plugin '{name}' at {plugin_dir}: {e}")
            return None

        if not compatible:
            logger.info(
                f"Plugin '{name}' at {plugin_dir} requires {ENGINE_NAME} {engine_range}, "
                f"running {self.host_version}, skipping"
            )
            return None

        module = self._load_module(name, plugin_dir, manifest)
        logger.debug(f"Resolved plugin '{name}' by name at {plugin_dir}")
        return self._make_record(descriptor, plugin_dir, module, manifest.version)

    def _find_package(self, name: str) -> Optional[Path]:
        """Find an installed plugin package, from the root upwards, then on sys.path."""
        import_name = plugin_import_name(name)

        for directory in (self.root, *self.root.parents):
            candidate = directory / PLUGIN_INSTALL_DIR_NAME / import_name
            if _is_plugin_dir(candidate):
                return candidate

        try:
            spec = importlib.util.find_spec(import_name)
        except (ImportError, ValueError):
            return None
        if spec is None or not spec.submodule_search_locations:
            return None
        location = Path(list(spec.submodule_search_locations)[0])
        return location if _is_plugin_dir(location) else None

    async def _install_and_load(self, descriptor: PluginDescriptor) -> PluginRecord:
        name = descriptor.name
        target_version = None

        if descriptor.path is None:
            # remote
            target_version = await self.package_source.get_satisfied_version(name, descriptor.version)
            if not target_version:
                available = await self.package_source.list_matched_package_version(name)
                raise ResolutionError(name, available, descriptor.version)
            result = await self.package_source.install(self.install_dir, name, version=target_version)
        else:
            # local install
            source_dir = self._absolute(descriptor.path)
            result = await self.package_source.install(self.install_dir, str(source_dir), local_install=True)
        plugin_dir = Path(result.path)

        logger.info(f"plugin {name} installed completely!")

        if str(self.install_dir) not in sys.path:
            sys.path.append(str(self.install_dir))

        manifest = await asyncio.to_thread(read_manifest, plugin_dir)
        module = self._load_module(name, plugin_dir, manifest)
        return self._make_record(descriptor, plugin_dir, module, manifest.version or target_version)

    def _load_module(self, name: str, plugin_dir: Path, manifest: PackageManifest) -> PluginModule:
        """Import the plugin's entry module from plugin_dir.

        Raises:
            LoadError: If the entry module is missing or fails to execute
        """
        module_name = plugin_import_name(name)
        entry = plugin_dir / (manifest.main or "__init__.py")

        try:
            spec = importlib.util.spec_from_file_location(
                module_name,
                entry,
                submodule_search_locations=[str(plugin_dir)] if entry.name == "__init__.py" else None,
            )
            if spec is None or spec.loader is None:
                raise ImportError(f"Cannot find module {entry.name} in {plugin_dir}")

            module = importlib.util.module_from_spec(spec)
            # registered before exec so the package's relative imports resolve
            sys.modules[module_name] = module
            try:
                spec.loader.exec_module(module)
            except Exception:
                sys.modules.pop(module_name, None)
                raise
        except Exception as e:
            logger.error(f"Failed to load plugin {name}: {e}")
            raise LoadError(name, plugin_dir, str(e)) from e

        return PluginModule.from_object(module)

    def _make_record(
        self,
        descriptor: PluginDescriptor,
        path: Path,
        module: PluginModule,
        version: Optional[str] = "",
        trusted: bool = False,
    ) -> PluginRecord:
        return PluginRecord(
            name=descriptor.name,
            path=Path(path),
            module=module,
            descriptor=descriptor,
            version=version or "",
            trusted=trusted,
            config=PluginConfig(descriptor.name, descriptor.options, descriptor),
        )

    def _absolute(self, path: str) -> Path:
        resolved = Path(path).expanduser()
        if not resolved.is_absolute():
            resolved = self.root / resolved
        return resolved.resolve()
