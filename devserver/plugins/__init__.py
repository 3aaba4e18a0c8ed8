"""Plugin system for the development server.

Imports are lazy to avoid pulling in aiohttp and the host services when only
lightweight components like PluginDescriptor or the version matcher are needed.
"""

__all__ = [
    "PluginDescriptor",
    "PackageManifest",
    "PluginModule",
    "PluginHooks",
    "PluginRecord",
    "PluginRegistry",
    "PluginResolver",
    "PluginLoader",
    "PluginBuilder",
    "PluginSystem",
    "PipPackageSource",
    "PluginError",
    "ResolutionError",
    "InstallError",
    "LoadError",
    "BuildError",
]


def __getattr__(name):
    if name in ("PluginDescriptor", "PackageManifest"):
        from devserver.plugins import descriptor
        return getattr(descriptor, name)
    if name in ("PluginModule", "PluginHooks"):
        from devserver.plugins import module
        return getattr(module, name)
    if name in ("PluginRecord", "PluginRegistry"):
        from devserver.plugins import registry
        return getattr(registry, name)
    if name == "PluginResolver":
        from devserver.plugins.resolver import PluginResolver
        return PluginResolver
    if name == "PluginLoader":
        from devserver.plugins.loader import PluginLoader
        return PluginLoader
    if name == "PluginBuilder":
        from devserver.plugins.builder import PluginBuilder
        return PluginBuilder
    if name == "PluginSystem":
        from devserver.plugins.system import PluginSystem
        return PluginSystem
    if name == "PipPackageSource":
        from devserver.plugins.package_source import PipPackageSource
        return PipPackageSource
    if name in ("PluginError", "ResolutionError", "InstallError", "LoadError", "BuildError"):
        from devserver.plugins import errors
        return getattr(errors, name)
    raise AttributeError(f"module 'devserver.plugins' has no attribute {name!r}")
