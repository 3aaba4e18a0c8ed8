"""Dependency injection container for host services."""

import logging

from devserver.constants import CONFIG_FILE
from devserver.services.config_service import Config
from devserver.services.events import EventBus
from devserver.services.injector import AssetInjector
from devserver.services.io import ServiceRegistry
from devserver.services.middleware import MiddlewareRegistry

logger = logging.getLogger(__name__)

# ============================================================================
# Global service instances (Singleton pattern, but exposed via functions for easier testing/mocking)
# ============================================================================

_config_instance = None
_middleware_instance = None
_injector_instance = None
_events_instance = None
_service_registry_instance = None
_plugin_system_instance = None


def get_config() -> Config:
    """Get host config (singleton)."""
    global _config_instance
    if _config_instance is None:
        _config_instance = Config.from_file(CONFIG_FILE)
        logger.info(f"Created Config from {CONFIG_FILE}")
    return _config_instance


def get_middleware() -> MiddlewareRegistry:
    """Get middleware registry (singleton)."""
    global _middleware_instance
    if _middleware_instance is None:
        _middleware_instance = MiddlewareRegistry()
    return _middleware_instance


def get_injector() -> AssetInjector:
    """Get asset injector (singleton)."""
    global _injector_instance
    if _injector_instance is None:
        _injector_instance = AssetInjector()
    return _injector_instance


def get_events() -> EventBus:
    """Get event bus (singleton)."""
    global _events_instance
    if _events_instance is None:
        _events_instance = EventBus()
    return _events_instance


def get_service_registry() -> ServiceRegistry:
    """Get service registry (singleton)."""
    global _service_registry_instance
    if _service_registry_instance is None:
        _service_registry_instance = ServiceRegistry()
    return _service_registry_instance


def get_plugin_system():
    """Get plugin system (singleton)."""
    global _plugin_system_instance
    if _plugin_system_instance is None:
        from devserver.plugins.system import PluginSystem

        _plugin_system_instance = PluginSystem(
            config=get_config(),
            middleware=get_middleware(),
            injector=get_injector(),
            events=get_events(),
            io=get_service_registry(),
        )
        logger.info("Created PluginSystem instance")
    return _plugin_system_instance


# Test utility function (for unit testing - resets all singletons)
def reset_services():
    """Reset all service instances (only for testing)."""
    global _config_instance, _middleware_instance, _injector_instance
    global _events_instance, _service_registry_instance, _plugin_system_instance

    _config_instance = None
    _middleware_instance = None
    _injector_instance = None
    _events_instance = None
    _service_registry_instance = None
    _plugin_system_instance = None
    logger.info("Reset all service instances")
