"""Utility functions for the development server."""

from .plugin_name import normalize_plugin_name, plugin_import_name

__all__ = [
    'normalize_plugin_name',
    'plugin_import_name',
]
