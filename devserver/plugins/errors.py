"""Plugin system error types."""

from typing import Iterable, List, Optional


class PluginError(Exception):
    """Base error for plugin resolution, loading and building."""

    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(message)


class ResolutionError(PluginError):
    """No local or package-source candidate satisfies the requested version."""

    def __init__(self, name: str, available_versions: Iterable[str], constraint: Optional[str] = None):
        self.constraint = constraint
        self.available_versions: List[str] = list(available_versions)
        listing = "\n".join(self.available_versions) or "(no versions published)"
        super().__init__(
            name,
            f"Unmatched version of plugin '{name}' for '{constraint or '*'}', "
            f"please use other version:\n{listing}",
        )


class InstallError(PluginError):
    """The package source failed to install a plugin."""

    def __init__(self, name: str, reason: str):
        self.reason = reason
        super().__init__(name, f"Failed to install plugin '{name}': {reason}")


class LoadError(PluginError):
    """A plugin module could not be loaded from its resolved path."""

    def __init__(self, name: str, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(name, f"Failed to load plugin '{name}' from {path}: {reason}")


class BuildError(PluginError):
    """A plugin's on_create hook failed during the build phase."""

    def __init__(self, name: str, reason: str):
        self.reason = reason
        super().__init__(name, f"Failed to build plugin '{name}': {reason}")
