"""Service registry - named services plugins expose to clients."""

import inspect
import logging
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class ServiceRegistry:
    """Registers plugin services and dispatches calls to them."""

    def __init__(self):
        self._services: Dict[str, Callable] = {}

    def register_service(self, name: str, implementation: Callable) -> None:
        """Register a service. A later registration under the same name wins."""
        if name in self._services:
            logger.warning(f"Service '{name}' already registered, overwriting")
        self._services[name] = implementation
        logger.info(f"Registered service: {name}")

    def get_service(self, name: str) -> Optional[Callable]:
        return self._services.get(name)

    def list_services(self) -> List[str]:
        return sorted(self._services)

    async def call(self, name: str, payload: Any = None) -> Any:
        """Call a service with payload, awaiting it if it is asynchronous.

        Raises:
            KeyError: If no service is registered under name
        """
        service = self._services.get(name)
        if service is None:
            raise KeyError(f"Service '{name}' is not registered")

        result = service(payload)
        if inspect.isawaitable(result):
            result = await result
        return result
