"""Plugin module - the capability bundle a loaded plugin exposes."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional


def _read(source: Any, key: str, default: Any = None) -> Any:
    if isinstance(source, dict):
        return source.get(key, default)
    return getattr(source, key, default)


@dataclass
class PluginHooks:
    """Optional hook callables; the builder checks presence before calling."""

    on_route: Optional[Callable] = None
    on_create: Optional[Callable] = None
    on_option_change: Optional[Callable] = None

    @classmethod
    def from_object(cls, hooks: Any) -> "PluginHooks":
        if hooks is None:
            return cls()
        return cls(
            on_route=_read(hooks, "on_route"),
            on_create=_read(hooks, "on_create"),
            on_option_change=_read(hooks, "on_option_change"),
        )


@dataclass
class PluginModule:
    """Declared surface of a plugin.

    Built either from an imported Python module (attributes ``hooks``,
    ``assets``, ``services``, ``configs``, ``watches``, ``priority``) or from
    a mapping carrying the same keys (in-place descriptors).
    """

    hooks: PluginHooks = field(default_factory=PluginHooks)
    assets: Dict[str, Any] = field(default_factory=dict)
    services: Dict[str, Any] = field(default_factory=dict)
    configs: Dict[str, Any] = field(default_factory=dict)
    watches: List[str] = field(default_factory=list)
    priority: Optional[int] = None
    source: Any = field(default=None, repr=False)  # imported module or raw mapping

    @classmethod
    def from_object(cls, source: Any) -> "PluginModule":
        return cls(
            hooks=PluginHooks.from_object(_read(source, "hooks")),
            assets=dict(_read(source, "assets") or {}),
            services=dict(_read(source, "services") or {}),
            configs=dict(_read(source, "configs") or {}),
            watches=list(_read(source, "watches") or []),
            priority=_read(source, "priority"),
            source=source,
        )
