"""Middleware registry - priority-ordered request handler chain."""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

CallNext = Callable[[], Awaitable[Any]]
Handler = Callable[["RequestContext", CallNext], Awaitable[Any]]


@dataclass
class RequestContext:
    """Per-request state shared by every handler in the chain."""

    request: Any
    response: Any = None
    state: Dict[str, Any] = field(default_factory=dict)


@dataclass
class MiddlewareEntry:
    """A named chain entry. on_create(config) returns the request handler."""

    on_create: Callable[[Any], Handler]
    priority: int = 0


def compose(handlers: List[Handler]) -> Callable[[RequestContext, Optional[CallNext]], Awaitable[Any]]:
    """Compose handlers into one; each handler's call_next awaits the rest of the chain."""

    async def dispatch(ctx: RequestContext, final: Optional[CallNext] = None) -> Any:
        async def run(index: int) -> Any:
            if index == len(handlers):
                return await final() if final else None
            return await handlers[index](ctx, lambda: run(index + 1))

        return await run(0)

    return dispatch


class MiddlewareRegistry:
    """Holds named middleware entries; higher priority runs first."""

    def __init__(self):
        self._entries: Dict[str, MiddlewareEntry] = {}

    def add(self, name: str, entry: MiddlewareEntry) -> None:
        """Register a middleware entry under name."""
        if name in self._entries:
            logger.warning(f"Middleware '{name}' already registered, overwriting")
        self._entries[name] = entry
        logger.debug(f"Registered middleware: {name} (priority={entry.priority})")

    def get(self, name: str) -> Optional[MiddlewareEntry]:
        return self._entries.get(name)

    def names(self) -> List[str]:
        """Entry names in execution order."""
        # sorted() is stable, so equal priorities keep registration order
        ordered = sorted(self._entries.items(), key=lambda item: -(item[1].priority or 0))
        return [name for name, _ in ordered]

    def compose(self, config: Any):
        """Create every handler with config and compose them in priority order."""
        return compose([self._entries[name].on_create(config) for name in self.names()])
