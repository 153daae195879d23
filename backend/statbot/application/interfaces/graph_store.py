"""Abstract interface for the statistics graph store."""

from abc import ABC, abstractmethod
from typing import Any

from statbot.domain.entities import GraphQuery


class GraphStore(ABC):
    """Port - executes parameterized graph queries.

    Implementations coerce numeric values to plain ``int``/``float`` before
    returning and raise ``GraphStoreError`` subclasses on failure.
    """

    @abstractmethod
    async def run(self, query: GraphQuery) -> list[dict[str, Any]]:
        """Execute ``query`` and return its rows as plain dictionaries."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release connections held by the store."""
        ...
