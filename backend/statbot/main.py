"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from statbot.config import Settings, get_settings
from statbot.application.interfaces import GraphStore
from statbot.application.services import (
    AnswerSynthesizer,
    ChatbotService,
    MetricTeamResolver,
    QuerySynthesizer,
    QuestionAnalyzer,
    ReferenceData,
    UnansweredQuestionRecorder,
    fetch_roster,
    load_reference_data,
)
from statbot.domain.entities import UnansweredQuestionRecord
from statbot.domain.exceptions import GraphStoreError
from statbot.infrastructure.database import Base, engine
from statbot.infrastructure.database.session import async_session_factory
from statbot.infrastructure.database.repositories import SQLAlchemyUnansweredQuestionRepository
from statbot.infrastructure.graph import Neo4jGraphStore
from statbot.infrastructure.logging.log_config import setup_logging
from statbot.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


async def _ensure_database_exists() -> None:
    """Create the PostgreSQL database if it does not yet exist.

    Connects to the default ``postgres`` maintenance database, checks for the
    target database name, and issues ``CREATE DATABASE`` when missing.
    SQLite URLs are left alone; the file is created on first connect.
    """
    from urllib.parse import urlparse

    settings = get_settings()
    if not settings.database_url.startswith("postgresql"):
        return

    import asyncpg

    parsed = urlparse(settings.database_url)
    db_name = parsed.path.lstrip("/")
    if not db_name:
        return

    # Build a connection URL pointing at the default 'postgres' database
    maintenance_url = settings.database_url.rsplit("/", 1)[0] + "/postgres"
    maintenance_url = maintenance_url.replace("postgresql+asyncpg://", "postgresql://", 1)

    try:
        conn = await asyncpg.connect(maintenance_url)
        try:
            exists = await conn.fetchval(
                "SELECT 1 FROM pg_database WHERE datname = $1", db_name
            )
            if not exists:
                # CREATE DATABASE cannot run inside a transaction block
                await conn.execute(f'CREATE DATABASE "{db_name}"')
                logger.info("Created database '%s'", db_name)
            else:
                logger.debug("Database '%s' already exists", db_name)
        finally:
            await conn.close()
    except (OSError, asyncpg.PostgresError) as exc:
        logger.warning("Could not auto-create database '%s': %s", db_name, exc)


async def _persist_unanswered(record: UnansweredQuestionRecord) -> None:
    """Recorder sink: one session and transaction per record."""
    async with async_session_factory() as session:
        repository = SQLAlchemyUnansweredQuestionRepository(session)
        await repository.save(record)
        await session.commit()


async def _load_roster(reference: ReferenceData, store: GraphStore, settings: Settings) -> ReferenceData:
    """Extend the roster with player names from the graph, best effort."""
    if not settings.load_roster_from_graph:
        return reference
    try:
        names = await fetch_roster(store, settings.graph_label)
    except GraphStoreError as exc:
        logger.warning("Could not load roster from graph (%s); continuing with %d names",
                       exc, len(reference.roster))
        return reference
    logger.info("Loaded %d player names from graph", len(names))
    return reference.with_roster(names)


def build_chatbot_service(
    settings: Settings,
    reference: ReferenceData,
    store: GraphStore,
    recorder: UnansweredQuestionRecorder | None = None,
) -> ChatbotService:
    """Wire the question pipeline around shared reference data and a graph store."""
    return ChatbotService(
        analyzer=QuestionAnalyzer(reference),
        resolver=MetricTeamResolver(reference),
        synthesizer=QuerySynthesizer(reference, settings.graph_label),
        answerer=AnswerSynthesizer(
            reference,
            store,
            timeout_seconds=settings.graph_query_timeout_seconds,
            debug=bool(settings.chatbot_debug),
        ),
        recorder=recorder,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - create tables, load reference data, start the recorder."""
    settings = get_settings()
    setup_logging()

    # 0. Ensure the PostgreSQL database exists (auto-create if missing)
    await _ensure_database_exists()

    # 1. Create all database tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # 2. Load metric definitions and roster (fails startup when malformed)
    reference = load_reference_data(settings.metrics_file, settings.roster_file or None)

    # 3. Connect to the graph and extend the roster from it
    store = Neo4jGraphStore(
        uri=settings.neo4j_uri,
        user=settings.neo4j_user,
        password=settings.neo4j_password,
        database=settings.neo4j_database,
        timeout_seconds=settings.graph_query_timeout_seconds,
    )
    reference = await _load_roster(reference, store, settings)

    # 4. Start the unanswered-question recorder
    recorder = UnansweredQuestionRecorder(
        persist=_persist_unanswered,
        threshold=settings.unanswered_confidence_threshold,
        max_queue_size=settings.unanswered_queue_size,
        enabled=settings.unanswered_recording_enabled,
    )
    await recorder.start()

    app.state.reference_data = reference
    app.state.chatbot_service = build_chatbot_service(settings, reference, store, recorder)
    logger.info("Chatbot ready (debug=%s, graph=%s)", settings.chatbot_debug, settings.neo4j_uri)

    yield

    # Shutdown
    await recorder.stop()
    await store.close()
    await engine.dispose()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount API routes
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "statbot.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
