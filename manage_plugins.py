#!/usr/bin/env python3
"""Plugin management CLI tool."""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Ensure project root is in path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from devserver.constants import (
    BUILTIN_PLUGINS,
    BUILTIN_PLUGINS_DIR,
    CONFIG_FILE,
    PLUGIN_INSTALL_DIR_NAME,
)
from devserver.plugins.descriptor import PluginDescriptor, read_manifest
from devserver.plugins.errors import PluginError
from devserver.plugins.package_source import PipPackageSource
from devserver.plugins.system import PluginSystem
from devserver.services.config_service import Config
from devserver.services.events import EventBus
from devserver.services.injector import AssetInjector
from devserver.services.io import ServiceRegistry
from devserver.services.middleware import MiddlewareRegistry


def get_config() -> Config:
    """Load the host config file."""
    return Config.from_file(CONFIG_FILE)


def get_system(config: Config) -> PluginSystem:
    """Create a PluginSystem wired to fresh host collaborators."""
    return PluginSystem(
        config=config,
        middleware=MiddlewareRegistry(),
        injector=AssetInjector(),
        events=EventBus(),
        io=ServiceRegistry(),
    )


def cmd_list(args):
    """List built-in and configured plugins."""
    system = get_system(get_config())
    descriptors = system.configured_descriptors()

    if not descriptors:
        print("No plugins configured.")
        return

    print(f"{'Name':<24} {'Kind':<10} {'Version':<16} {'Path'}")
    print("-" * 80)

    for d in descriptors:
        if d.name in BUILTIN_PLUGINS:
            kind = "builtin"
        elif d.is_inplace:
            kind = "inplace"
        elif d.path:
            kind = "local"
        else:
            kind = "remote"
        print(f"{d.name:<24} {kind:<10} {d.version or '*':<16} {d.path or ''}")


def cmd_versions(args):
    """List versions published on the package index."""
    config = get_config()
    source = PipPackageSource(index_url=config.get("registry"))
    versions = asyncio.run(source.list_matched_package_version(args.name))

    if not versions:
        print(f"No versions of '{args.name}' found.")
        sys.exit(1)
    for version in versions:
        print(version)


def cmd_install(args):
    """Resolve (and install if needed) a plugin into the project."""
    descriptor = PluginDescriptor.parse(args.spec)
    if args.path:
        descriptor = descriptor.model_copy(update={"path": args.path, "install": True})

    system = get_system(get_config())
    try:
        record = asyncio.run(system.load_one(descriptor))
    except PluginError as e:
        print(str(e))
        sys.exit(1)

    print(f"Plugin '{record.name}' {record.version or ''} ready at {record.path}")


def cmd_doctor(args):
    """Run health checks on the plugin system."""
    issues = []

    # Check config file
    if not CONFIG_FILE.exists():
        issues.append(f"Config file missing: {CONFIG_FILE}")
    else:
        try:
            with open(CONFIG_FILE) as f:
                json.load(f)
        except json.JSONDecodeError as e:
            issues.append(f"Config file has invalid JSON: {e}")

    # Check built-in plugin entry points
    for name in BUILTIN_PLUGINS:
        plugin_dir = BUILTIN_PLUGINS_DIR / name
        entry_file = plugin_dir / (read_manifest(plugin_dir).main or "__init__.py")
        if not entry_file.exists():
            issues.append(f"Built-in plugin '{name}': entry point file missing: {entry_file}")

    # Check configured plugin entries
    config = get_config()
    system = get_system(config)
    try:
        descriptors = system.configured_descriptors()
    except (TypeError, ValueError) as e:
        issues.append(f"Invalid plugins entry: {e}")
        descriptors = []

    root = Path(config.get("root")).resolve()
    for d in descriptors:
        if d.path and not (root / d.path).resolve().exists():
            issues.append(f"Plugin '{d.name}': path does not exist: {d.path}")

    install_dir = root / PLUGIN_INSTALL_DIR_NAME
    if issues:
        print(f"Found {len(issues)} issue(s):")
        for i, issue in enumerate(issues, 1):
            print(f"  {i}. {issue}")
        sys.exit(1)
    else:
        state = "present" if install_dir.exists() else "not created yet"
        print(f"All checks passed. {len(descriptors)} plugin(s) configured, install dir {state}.")


def main():
    parser = argparse.ArgumentParser(description="devserver Plugin Manager")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # list
    subparsers.add_parser("list", help="List configured plugins")

    # versions
    versions_parser = subparsers.add_parser("versions", help="List published versions of a plugin")
    versions_parser.add_argument("name", help="Plugin name")

    # install
    install_parser = subparsers.add_parser("install", help="Install a plugin")
    install_parser.add_argument("spec", help='Plugin spec, e.g. "qrcode@^1.0.0"')
    install_parser.add_argument("--path", help="Install from a local directory instead")

    # doctor
    subparsers.add_parser("doctor", help="Run health checks")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "list": cmd_list,
        "versions": cmd_versions,
        "install": cmd_install,
        "doctor": cmd_doctor,
    }

    commands[args.command](args)


if __name__ == "__main__":
    main()
