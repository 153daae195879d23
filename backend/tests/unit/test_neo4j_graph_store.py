"""Unit tests for the Neo4jGraphStore adapter - row coercion and error mapping."""

import pytest
from neo4j.exceptions import ServiceUnavailable

from statbot.domain.entities import GraphQuery
from statbot.domain.exceptions import GraphStoreError, GraphStoreUnavailableError
from statbot.infrastructure.graph.neo4j_graph_store import Neo4jGraphStore


# ── Fakes ────────────────────────────────────────────────────────────


class FakeResult:
    def __init__(self, rows):
        self._rows = rows

    async def data(self):
        return self._rows


class FakeSession:
    def __init__(self, driver):
        self._driver = driver

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def run(self, query, params):
        self._driver.calls.append((query, params))
        if self._driver.error:
            raise self._driver.error
        return FakeResult(self._driver.rows)


class FakeDriver:
    """Just enough of neo4j.AsyncDriver for the adapter."""

    def __init__(self, rows=None, error: Exception | None = None):
        self.rows = rows or []
        self.error = error
        self.calls = []
        self.databases = []
        self.closed = False

    def session(self, database=None):
        self.databases.append(database)
        return FakeSession(self)

    async def close(self):
        self.closed = True


def _store(driver: FakeDriver) -> Neo4jGraphStore:
    return Neo4jGraphStore(
        uri="bolt://test:7687", user="neo4j", password="secret",
        database="stats", timeout_seconds=3.0, driver=driver,
    )


QUERY = GraphQuery(text="MATCH (p:Player) RETURN p.playerName AS label, 1 AS value", params={"graphLabel": "x"})


# ── Tests ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_rows_are_coerced_to_plain_numbers():
    driver = FakeDriver(rows=[{"label": "1st XI", "value": {"low": 7, "high": 0}, "missing": None}])

    rows = await _store(driver).run(QUERY)

    assert rows == [{"label": "1st XI", "value": 7, "missing": 0}]


@pytest.mark.asyncio
async def test_query_text_params_and_timeout_are_passed_through():
    driver = FakeDriver()

    await _store(driver).run(QUERY)

    query, params = driver.calls[0]
    assert query.text == QUERY.text
    assert query.timeout == 3.0
    assert params == {"graphLabel": "x"}
    assert driver.databases == ["stats"]


@pytest.mark.asyncio
async def test_unreachable_server_maps_to_unavailable():
    driver = FakeDriver(error=ServiceUnavailable("connection refused"))

    with pytest.raises(GraphStoreUnavailableError):
        await _store(driver).run(QUERY)


@pytest.mark.asyncio
async def test_unavailable_is_a_graph_store_error():
    driver = FakeDriver(error=ServiceUnavailable("connection refused"))

    with pytest.raises(GraphStoreError):
        await _store(driver).run(QUERY)


@pytest.mark.asyncio
async def test_close_closes_driver():
    driver = FakeDriver()

    await _store(driver).close()

    assert driver.closed
