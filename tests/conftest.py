"""Shared fixtures: temporary plugin packages and a fake package source."""

import json
import sys
import textwrap
from pathlib import Path

import pytest

from devserver.plugins.package_source import InstallResult
from devserver.services.config_service import Config
from devserver.utils.plugin_name import plugin_import_name


def write_plugin(directory: Path, source: str = "", manifest: dict = None) -> Path:
    """Create a plugin package: __init__.py plus an optional plugin.json."""
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "__init__.py").write_text(textwrap.dedent(source), encoding="utf-8")
    manifest_file = directory / "plugin.json"
    if manifest is not None:
        manifest_file.write_text(json.dumps(manifest), encoding="utf-8")
    elif manifest_file.exists():
        manifest_file.unlink()
    return directory


class FakePackageSource:
    """Records every call; remote installs write a minimal plugin package."""

    def __init__(self, versions=None, satisfied=None, installed_manifest=None):
        self.versions = list(versions or [])
        self.satisfied = satisfied
        self.installed_manifest = installed_manifest
        self.install_calls = []
        self.version_queries = []

    async def get_satisfied_version(self, name, constraint):
        self.version_queries.append((name, constraint))
        return self.satisfied

    async def list_matched_package_version(self, name):
        return list(self.versions)

    async def install(self, target_path, name, version=None, local_install=False):
        self.install_calls.append(
            {"target_path": Path(target_path), "name": name, "version": version, "local_install": local_install}
        )
        if local_install:
            return InstallResult(path=Path(name))

        path = Path(target_path) / plugin_import_name(name)
        write_plugin(path, "watches = ['installed']\n", self.installed_manifest)
        return InstallResult(path=path)


@pytest.fixture(autouse=True)
def isolate_plugin_modules():
    """Drop plugin modules and sys.path entries added by a test."""
    saved_path = list(sys.path)
    yield
    sys.path[:] = saved_path
    for name in [m for m in sys.modules if m.startswith("devserver_plugin_")]:
        del sys.modules[name]


@pytest.fixture
def project_root(tmp_path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def config(project_root) -> Config:
    return Config({"root": str(project_root)})


@pytest.fixture
def package_source() -> FakePackageSource:
    return FakePackageSource()
