"""Domain-specific exceptions - framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class ReferenceDataError(Exception):
    """Raised when the metric or roster reference tables cannot be loaded."""

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"[{source}] {message}")


class GraphStoreError(Exception):
    """Raised when the statistics graph cannot answer a query.

    Store-agnostic; the Neo4j adapter maps its driver errors onto
    the subclasses below.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class GraphStoreUnavailableError(GraphStoreError):
    """The graph store could not be reached or rejected the session."""


class GraphQueryTimeoutError(GraphStoreError):
    """A graph query exceeded its time limit."""
