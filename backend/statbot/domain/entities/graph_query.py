"""Domain entity for a synthesized graph query."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class GraphQuery:
    """A parameterized Cypher query.

    User-supplied values only ever travel in ``params``; ``text`` depends
    on the canonical analysis alone.
    """

    text: str
    params: dict[str, Any] = field(default_factory=dict)
