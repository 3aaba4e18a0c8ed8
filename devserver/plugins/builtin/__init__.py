"""Plugins shipped with the server, resolved by name to plugins/builtin/<name>."""
