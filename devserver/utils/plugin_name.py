"""Plugin name normalization - maps logical plugin names to package names."""

import re

from devserver.constants import PLUGIN_PACKAGE_PREFIX


def normalize_plugin_name(name: str) -> str:
    """Normalize a logical plugin name to its distribution name.

    Rules:
    - lower-case, underscores and dots become dashes
    - prefixed with ``devserver-plugin-`` unless already prefixed
    - a leading ``@scope/`` is dropped (scopes have no meaning on the index)

    Args:
        name: Logical plugin name, e.g. "live-reload"

    Returns:
        Distribution name

    Examples:
        >>> normalize_plugin_name("live-reload")
        "devserver-plugin-live-reload"
        >>> normalize_plugin_name("devserver-plugin-qrcode")
        "devserver-plugin-qrcode"
    """
    if not name:
        return name

    normalized = name.split("/")[-1] if name.startswith("@") else name
    normalized = re.sub(r"[-_.]+", "-", normalized).lower()

    if not normalized.startswith(PLUGIN_PACKAGE_PREFIX):
        normalized = PLUGIN_PACKAGE_PREFIX + normalized
    return normalized


def plugin_import_name(name: str) -> str:
    """Import (top-level module) name for a logical plugin name.

    Examples:
        >>> plugin_import_name("live-reload")
        "devserver_plugin_live_reload"
    """
    return normalize_plugin_name(name).replace("-", "_")
