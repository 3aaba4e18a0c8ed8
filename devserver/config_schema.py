"""Recognized host configuration keys (pure data)."""

import copy
import os
from typing import Any, Dict

GROUP_CORE = "CORE"
GROUP_COMMON = "COMMON"

CONFIG_SCHEMA: Dict[str, Dict[str, Any]] = {
    "root": {
        "type": "string",
        "default": os.getcwd(),
        "description": "where to start the dev server",
        "group": GROUP_CORE,
        "cli": False,
    },
    "registry": {
        "type": "string",
        "description": "the package index plugins are installed from",
        "group": GROUP_CORE,
    },
    "port": {
        "type": "number",
        "default": 8000,
        "description": "port number to listen for requests on",
        "group": GROUP_CORE,
    },
    "plugins": {
        "type": "array",
        "default": [],
        "description": 'plugins to load, "[@{scope}/]{name}[@{version}][?{options}]" or objects',
        "group": GROUP_CORE,
        "cli": False,
    },
    # built-in plugin configs
    "cors": {
        "description": "Cross-Origin Resource Sharing (CORS)",
        "default": True,
        "anyOf": [{"type": "boolean"}, {"type": "object"}],
        "group": GROUP_COMMON,
    },
    "logger": {
        "type": "object",
        "description": "global logger setting",
        "group": GROUP_COMMON,
        "properties": {
            "level": {
                "type": "string",
                "default": "warning",
                "description": "predefined values: 'debug', 'info', 'warning', 'error'",
            },
        },
    },
}


def default_config() -> Dict[str, Any]:
    """Build the default configuration from the schema."""
    config: Dict[str, Any] = {}
    for key, entry in CONFIG_SCHEMA.items():
        if "default" in entry:
            config[key] = copy.deepcopy(entry["default"])
        elif "properties" in entry:
            nested = {
                name: copy.deepcopy(prop["default"])
                for name, prop in entry["properties"].items()
                if "default" in prop
            }
            if nested:
                config[key] = nested
    return config
