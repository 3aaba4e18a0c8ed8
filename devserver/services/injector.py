"""Asset injector - collects script and style contributions from plugins."""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class AssetDefinition:
    """A normalized asset: absolute filename plus the request matcher."""

    filename: str
    test: Optional[Any] = None  # callable(path) -> bool, regex string, or None for "always"

    def matches(self, path: str) -> bool:
        if self.test is None:
            return True
        if callable(self.test):
            return bool(self.test(path))
        return re.search(self.test, path) is not None


class AssetInjector:
    """Registry of asset definitions per field ("script", "style")."""

    def __init__(self):
        self._assets: Dict[str, List[AssetDefinition]] = {}

    def add(self, field: str, definition: AssetDefinition) -> None:
        self._assets.setdefault(field, []).append(definition)
        logger.debug(f"Injected {field} asset: {definition.filename}")

    def get(self, field: str) -> List[AssetDefinition]:
        return list(self._assets.get(field, []))

    def match(self, field: str, path: str) -> List[AssetDefinition]:
        """Assets of a field whose test accepts the request path."""
        return [asset for asset in self._assets.get(field, []) if asset.matches(path)]
