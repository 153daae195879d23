"""Neo4j graph store - implements the GraphStore interface.

Uses the official async neo4j driver. Numeric values are coerced to plain
Python numbers here so no driver type leaks past this module; driver errors
are mapped onto the domain's GraphStoreError hierarchy.
"""

import logging
from typing import Any

from neo4j import AsyncDriver, AsyncGraphDatabase, Query
from neo4j.exceptions import (
    AuthError,
    ClientError,
    DriverError,
    Neo4jError,
    ServiceUnavailable,
    SessionExpired,
)

from statbot.application.interfaces.graph_store import GraphStore
from statbot.application.services.number_formatting import coerce_number
from statbot.domain.entities import GraphQuery
from statbot.domain.exceptions import (
    GraphQueryTimeoutError,
    GraphStoreError,
    GraphStoreUnavailableError,
)

logger = logging.getLogger(__name__)

_TIMEOUT_CODE_FRAGMENT = "TransactionTimedOut"


class Neo4jGraphStore(GraphStore):
    """Infrastructure adapter - runs read queries against Neo4j."""

    def __init__(
        self,
        uri: str,
        user: str,
        password: str,
        database: str | None = None,
        timeout_seconds: float = 10.0,
        driver: AsyncDriver | None = None,
    ):
        self._database = database or None
        self._timeout_seconds = timeout_seconds
        self._driver = driver or AsyncGraphDatabase.driver(uri, auth=(user, password))
        self._uri = uri

    async def run(self, query: GraphQuery) -> list[dict[str, Any]]:
        try:
            async with self._driver.session(database=self._database) as session:
                result = await session.run(
                    Query(query.text, timeout=self._timeout_seconds), query.params,
                )
                rows = await result.data()
        except (ServiceUnavailable, SessionExpired, AuthError) as exc:
            logger.error("Neo4j unavailable at %s: %s", self._uri, exc)
            raise GraphStoreUnavailableError(f"graph store unavailable: {exc}") from exc
        except ClientError as exc:
            if _TIMEOUT_CODE_FRAGMENT in (exc.code or ""):
                raise GraphQueryTimeoutError(
                    f"graph query exceeded {self._timeout_seconds}s"
                ) from exc
            raise GraphStoreError(f"graph query rejected: {exc}") from exc
        except (Neo4jError, DriverError) as exc:
            raise GraphStoreError(f"graph query failed: {exc}") from exc

        return [self._coerce_row(row) for row in rows]

    async def close(self) -> None:
        await self._driver.close()
        logger.info("Neo4j driver closed")

    @staticmethod
    def _coerce_row(row: dict[str, Any]) -> dict[str, Any]:
        """Plain numbers for every non-text column; labels stay strings."""
        return {
            key: value if isinstance(value, str) else coerce_number(value)
            for key, value in row.items()
        }
