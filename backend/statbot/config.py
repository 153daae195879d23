import logging
from pathlib import Path

from pydantic_settings import BaseSettings
from functools import lru_cache

_config_logger = logging.getLogger(__name__)

_BACKEND_DIR = Path(__file__).resolve().parents[1]
_PACKAGE_DIR = Path(__file__).resolve().parent
_ENV_FILES = (
    _BACKEND_DIR / ".env",
    ".env",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Club Stats Chatbot API"
    app_version: str = "0.1.0"
    app_env: str = "development"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Unanswered-question store (SQLite by default, PostgreSQL supported)
    database_url: str = "sqlite:///./statbot.db"

    # Neo4j graph holding players, fixtures and match details
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: str = ""
    neo4j_database: str = "neo4j"
    graph_label: str = "dorkiniansWebsite"
    graph_query_timeout_seconds: float = 10.0

    # Reference tables (relative paths resolve against the working directory)
    metrics_file: str = str(_PACKAGE_DIR / "reference" / "metrics.yaml")
    roster_file: str = ""
    load_roster_from_graph: bool = True

    # Request limits
    max_question_length: int = 1000
    max_user_context_length: int = 200

    # Diagnostics (generated Cypher, analysis trace) in responses.
    # None means "only when app_env is development".
    chatbot_debug: bool | None = None

    # Unanswered-question recorder
    unanswered_confidence_threshold: float = 0.5
    unanswered_recording_enabled: bool = True
    unanswered_queue_size: int = 256
    unanswered_retention_days: int = 30

    # Logging - per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_sql: str = "WARNING"           # sqlalchemy.engine - SQL queries
    log_level_graph: str = "WARNING"         # neo4j driver
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error
    log_level_pipeline: str = "INFO"         # ChatbotService pipeline stages
    log_level_recorder: str = "INFO"         # Unanswered-question recorder
    log_color: bool = True                   # ANSI colors in pipeline stage logs

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
    }

    def model_post_init(self, __context: object) -> None:
        """Resolve the debug flag from the environment name when unset."""
        if self.chatbot_debug is None:
            object.__setattr__(self, "chatbot_debug", self.app_env == "development")
        if not 0.0 <= self.unanswered_confidence_threshold <= 1.0:
            _config_logger.warning(
                "unanswered_confidence_threshold=%s outside 0..1; clamping",
                self.unanswered_confidence_threshold,
            )
            clamped = min(max(self.unanswered_confidence_threshold, 0.0), 1.0)
            object.__setattr__(self, "unanswered_confidence_threshold", clamped)


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance - reads .env once."""
    return Settings()
