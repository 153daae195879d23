"""Colored pipeline logger - ANSI-colored console logging for the chatbot pipeline.

Provides a PipelineLogger with color-coded output per pipeline stage,
making it easy to visually trace a question through the terminal.

Color scheme:
    🔵 Blue    - Analysis / Resolution
    🟣 Magenta - Query synthesis
    🟡 Yellow  - Graph execution
    🟢 Green   - Answer / Complete
    🟠 Cyan    - Unanswered-question recording
    🔴 Red     - Errors
    ⚪ Gray    - Timing / Stats
"""

import logging
import re
import time
from contextlib import contextmanager
from typing import Any

_ANSI_ESCAPE = re.compile(r"\033\[[0-9;]*m")
_color_enabled = True


def set_color_enabled(enabled: bool) -> None:
    """Toggle ANSI colors; disable when logs are shipped to files or aggregators."""
    global _color_enabled
    _color_enabled = enabled


# ── ANSI Color Codes ─────────────────────────────────────────────────

class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"
    GRAY = "\033[90m"


# ── Pipeline Stage Definitions ───────────────────────────────────────

class PipelineStage:
    """Predefined chatbot pipeline stages with colors and icons."""

    ANALYZE = ("ANALYZE", _Colors.BLUE, "🔍")
    RESOLVE = ("RESOLVE", _Colors.BLUE, "🏷️")
    SYNTHESIZE = ("SYNTHESIZE", _Colors.MAGENTA, "🧩")
    EXECUTE = ("EXECUTE", _Colors.YELLOW, "🗄️")
    ANSWER = ("ANSWER", _Colors.GREEN, "💬")
    RECORD = ("RECORD", _Colors.CYAN, "📝")
    PIPELINE = ("PIPELINE", _Colors.WHITE, "⚙️")
    ERROR = ("ERROR", _Colors.RED, "❌")
    COMPLETE = ("COMPLETE", _Colors.GREEN, "✅")


# ── PipelineLogger ───────────────────────────────────────────────────

class PipelineLogger:
    """Color-coded logger for the chatbot pipeline.

    Usage:
        log = PipelineLogger("ChatbotService")
        log.step_start(PipelineStage.ANALYZE, "How many goals has Luke Bangs scored?")
        log.detail("type=SingleStat", metrics=["G"])
        log.step_complete(PipelineStage.ANSWER, "Luke Bangs has scored 5 goals.")
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)
        self._component = component_name

    def _emit(self, level: int, text: str) -> None:
        if not _color_enabled:
            text = _ANSI_ESCAPE.sub("", text)
        self._logger.log(level, text)

    @staticmethod
    def _details(color: str, kwargs: dict[str, Any]) -> str:
        if not kwargs:
            return ""
        details = " | ".join(f"{k}={v}" for k, v in kwargs.items())
        return f" {color}({details}){_Colors.RESET}"

    def step_start(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        """Log the start of a pipeline step with its stage color."""
        label, color, icon = stage
        formatted = (
            f"{color}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{color}{message}{_Colors.RESET}"
        )
        self._emit(logging.INFO, formatted + self._details(_Colors.GRAY, kwargs))

    def step_complete(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        """Log the successful completion of a pipeline step."""
        label, color, icon = stage
        formatted = (
            f"{color}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.GREEN}✓ {message}{_Colors.RESET}"
        )
        self._emit(logging.INFO, formatted + self._details(_Colors.GRAY, kwargs))

    def step_error(self, stage: tuple[str, str, str], message: str, error: Exception | None = None) -> None:
        """Log a pipeline step error in red."""
        label, _, icon = stage
        formatted = (
            f"{_Colors.RED}{_Colors.BOLD}❌ [{label}]{_Colors.RESET} "
            f"{_Colors.RED}{message}{_Colors.RESET}"
        )
        if error:
            formatted += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        self._emit(logging.ERROR, formatted)

    def detail(self, message: str, **kwargs: Any) -> None:
        """Log additional detail (gray/dimmed)."""
        formatted = f"   {_Colors.GRAY}├─ {message}{_Colors.RESET}"
        self._emit(logging.DEBUG, formatted + self._details(_Colors.DIM, kwargs))

    def stats(self, **kwargs: Any) -> None:
        """Log statistics / timing information."""
        parts = [f"{_Colors.GRAY}{k}: {v}" for k, v in kwargs.items()]
        self._emit(logging.INFO, f"   {_Colors.GRAY}📈 {' | '.join(parts)}{_Colors.RESET}")

    @contextmanager
    def timed_step(self, stage: tuple[str, str, str], message: str, **kwargs: Any):
        """Context manager that logs start/end with elapsed time.

        Usage:
            with log.timed_step(PipelineStage.EXECUTE, "Querying graph"):
                response = await answerer.answer(analysis, query)
        """
        self.step_start(stage, message, **kwargs)
        start = time.perf_counter()
        try:
            yield
        except Exception as e:
            elapsed = time.perf_counter() - start
            self.step_error(stage, f"{message} - failed after {elapsed * 1000:.0f}ms", error=e)
            raise
        else:
            elapsed = time.perf_counter() - start
            self.step_complete(stage, f"{message} - {elapsed * 1000:.0f}ms")
