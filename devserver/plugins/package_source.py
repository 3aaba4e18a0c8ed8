"""Package source - queries the package index and installs plugin packages."""

import asyncio
import logging
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol

import aiohttp

from devserver.constants import DEFAULT_PACKAGE_INDEX
from devserver.plugins.descriptor import read_manifest
from devserver.plugins.errors import InstallError
from devserver.plugins.version import max_satisfying
from devserver.utils.plugin_name import normalize_plugin_name, plugin_import_name

logger = logging.getLogger(__name__)


def _is_pip_project(path: Path) -> bool:
    return (path / "pyproject.toml").is_file() or (path / "setup.py").is_file()


@dataclass
class InstallResult:
    """Where an installed plugin package ended up."""

    path: Path


class PackageSource(Protocol):
    """Contract the resolver needs from a package source."""

    async def install(
        self,
        target_path: Path,
        name: str,
        version: Optional[str] = None,
        local_install: bool = False,
    ) -> InstallResult:
        ...

    async def get_satisfied_version(self, name: str, constraint: Optional[str]) -> Optional[str]:
        ...

    async def list_matched_package_version(self, name: str) -> List[str]:
        ...


class PipPackageSource:
    """Package source backed by the index JSON API (``<index>/<dist>/json``) and pip.

    Remote installs resolve ``name`` to ``devserver-plugin-<name>`` and
    install into ``target_path`` with ``pip install --target``. Local
    directories without pip metadata are copied there as a package.
    """

    def __init__(self, index_url: Optional[str] = None, timeout: float = 30.0):
        self.index_url = (index_url or DEFAULT_PACKAGE_INDEX).rstrip("/")
        self.timeout = timeout

    async def list_matched_package_version(self, name: str) -> List[str]:
        """List every installable version published for the plugin."""
        dist_name = normalize_plugin_name(name)
        url = f"{self.index_url}/{dist_name}/json"

        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
            async with session.get(url) as response:
                if response.status == 404:
                    logger.info(f"Package {dist_name} not found on {self.index_url}")
                    return []
                response.raise_for_status()
                data = await response.json()

        versions = []
        for version, files in data.get("releases", {}).items():
            # skip releases without files or with every file yanked
            if files and not all(f.get("yanked", False) for f in files):
                versions.append(version)
        logger.debug(f"Available versions of {dist_name}: {versions}")
        return versions

    async def get_satisfied_version(self, name: str, constraint: Optional[str]) -> Optional[str]:
        """Highest published version satisfying constraint, or None."""
        return max_satisfying(await self.list_matched_package_version(name), constraint)

    async def install(
        self,
        target_path: Path,
        name: str,
        version: Optional[str] = None,
        local_install: bool = False,
    ) -> InstallResult:
        """Install a plugin package into target_path.

        Args:
            target_path: Shared project-level install directory
            name: Logical plugin name, or a local directory when local_install is set
            version: Exact version to install (remote only)
            local_install: Install from a local path instead of the index

        Returns:
            InstallResult pointing at the installed package directory

        Raises:
            InstallError: If pip exits with a non-zero status
        """
        target_path = Path(target_path)
        target_path.mkdir(parents=True, exist_ok=True)

        if local_install:
            source_dir = Path(name).resolve()
            if not _is_pip_project(source_dir):
                return await asyncio.to_thread(self._copy_plugin_dir, target_path, source_dir)
            requirement = str(source_dir)
        else:
            requirement = normalize_plugin_name(name)
            if version:
                requirement = f"{requirement}=={version}"

        command = [
            sys.executable, "-m", "pip", "install",
            "--upgrade", "--no-input", "--disable-pip-version-check",
            "--target", str(target_path),
            requirement,
        ]
        if not local_install and self.index_url != DEFAULT_PACKAGE_INDEX.rstrip("/"):
            # pip wants the simple API next to the JSON API
            command.extend(["--index-url", self.index_url.rsplit("/", 1)[0] + "/simple"])

        logger.info(f"Installing {requirement} into {target_path}")
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            reason = stderr.decode("utf-8", errors="replace").strip() or f"pip exited with {process.returncode}"
            raise InstallError(name, reason)

        logger.debug(stdout.decode("utf-8", errors="replace"))

        if local_install:
            return InstallResult(path=Path(name).resolve())
        return InstallResult(path=target_path / plugin_import_name(name))

    def _copy_plugin_dir(self, target_path: Path, source_dir: Path) -> InstallResult:
        """Copy a plain plugin directory (no pip metadata) into target_path.

        Raises:
            InstallError: If the directory cannot be copied
        """
        plugin_name = read_manifest(source_dir).name or source_dir.name
        destination = target_path / plugin_import_name(plugin_name)
        logger.info(f"Copying {source_dir} into {destination}")
        try:
            shutil.copytree(
                source_dir,
                destination,
                dirs_exist_ok=True,
                ignore=shutil.ignore_patterns("__pycache__"),
            )
        except OSError as e:
            raise InstallError(str(source_dir), str(e)) from e
        return InstallResult(path=destination)
