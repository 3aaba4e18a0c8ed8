"""Event bus handed to plugin hooks."""

import inspect
import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class EventBus:
    """Minimal publish/subscribe bus; handlers may be sync or async."""

    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = {}

    def on(self, event: str, handler: Callable) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: Callable) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    async def emit(self, event: str, payload: Any = None) -> List[Any]:
        """Call every handler of event in subscription order, returning their results."""
        results = []
        for handler in list(self._handlers.get(event, [])):
            result = handler(payload)
            if inspect.isawaitable(result):
                result = await result
            results.append(result)
        logger.debug(f"Emitted '{event}' to {len(results)} handler(s)")
        return results
