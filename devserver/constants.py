"""Global constants for the development server."""

import os
from pathlib import Path

# Directory paths
PACKAGE_ROOT = Path(__file__).resolve().parent  # /devserver

# Project root (supports DEVSERVER_ROOT env var, defaults to the current working directory)
_root_env = os.getenv("DEVSERVER_ROOT", "")
PROJECT_ROOT = Path(_root_env).resolve() if _root_env else Path.cwd()

CONFIG_FILE = PROJECT_ROOT / os.getenv("DEVSERVER_CONFIG", "devserver.json")

# Plugins shipped with the server itself, resolved to BUILTIN_PLUGINS_DIR/<name>
BUILTIN_PLUGINS_DIR = PACKAGE_ROOT / "plugins" / "builtin"
BUILTIN_PLUGINS = ("cors",)

# Asset fields a plugin may contribute to the injector
ASSET_FIELDS = ("script", "style")

# Installed plugins land in <root>/.devserver_plugins
PLUGIN_INSTALL_DIR_NAME = ".devserver_plugins"
PLUGIN_PACKAGE_PREFIX = "devserver-plugin-"
PLUGIN_MANIFEST_FILE = "plugin.json"

# Key under plugin.json "engines" holding the compatible host range
ENGINE_NAME = "devserver"

DEFAULT_PACKAGE_INDEX = os.getenv("DEVSERVER_PACKAGE_INDEX", "https://pypi.org/pypi")
