"""Runs one question through the full pipeline.

    analyze → resolve → synthesize → execute/answer → record

Stateless per request: the components share only the read-only reference
tables, so a single instance serves concurrent requests.
"""

import logging
import time

from statbot.application.services.answer_synthesizer import (
    FAILURE_CONFIDENCE,
    FALLBACK_ANSWER,
    AnswerSynthesizer,
)
from statbot.application.services.metric_team_resolver import MetricTeamResolver
from statbot.application.services.query_synthesizer import QuerySynthesizer
from statbot.application.services.question_analyzer import QuestionAnalyzer
from statbot.application.services.unanswered_question_recorder import UnansweredQuestionRecorder
from statbot.domain.entities import (
    ChatbotResponse,
    QuestionAnalysis,
    QuestionContext,
    QuestionType,
)
from statbot.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("ChatbotService")


class ChatbotService:
    """Answers natural-language statistics questions."""

    def __init__(
        self,
        analyzer: QuestionAnalyzer,
        resolver: MetricTeamResolver,
        synthesizer: QuerySynthesizer,
        answerer: AnswerSynthesizer,
        recorder: UnansweredQuestionRecorder | None = None,
    ):
        self._analyzer = analyzer
        self._resolver = resolver
        self._synthesizer = synthesizer
        self._answerer = answerer
        self._recorder = recorder

    async def ask(self, context: QuestionContext) -> ChatbotResponse:
        """Answer ``context.question``. Always returns a response."""
        started = time.perf_counter()
        plog.step_start(PipelineStage.PIPELINE, self._clip(context.question))

        analysis: QuestionAnalysis | None = None
        try:
            analysis = self._analyzer.analyze(context)
            plog.detail(
                f"Analyzed as {analysis.type.value}",
                metrics=analysis.metrics,
                complexity=analysis.complexity.value,
            )

            self._resolver.resolve(analysis, context.user_context)
            plog.detail(
                "Resolved",
                metrics=analysis.metrics,
                player=analysis.player_name,
                teams=analysis.team_keys,
                seasons=analysis.season_labels,
            )

            query = None
            if analysis.requires_clarification:
                plog.detail("Needs clarification", reason=analysis.clarification_reason)
            else:
                query = self._synthesizer.synthesize(analysis)
                plog.detail("Synthesized query", params=sorted(query.params))

            with plog.timed_step(PipelineStage.EXECUTE, "Answering"):
                response = await self._answerer.answer(analysis, query)
        except Exception as exc:
            plog.step_error(PipelineStage.ERROR, "Pipeline failed", error=exc)
            logger.exception("Chatbot pipeline failed for %r", self._clip(context.question))
            response = ChatbotResponse(answer=FALLBACK_ANSWER, confidence=FAILURE_CONFIDENCE)
            if analysis is None:
                analysis = QuestionAnalysis(
                    question=context.question, type=QuestionType.CLUB_AGGREGATE,
                )
                analysis.flag_clarification("analysis_error")

        if self._recorder is not None and self._recorder.observe(context, analysis, response):
            plog.step_complete(PipelineStage.RECORD, "Queued for triage", confidence=response.confidence)

        plog.step_complete(PipelineStage.COMPLETE, self._clip(response.answer))
        plog.stats(
            confidence=response.confidence,
            elapsed_ms=f"{(time.perf_counter() - started) * 1000:.0f}",
        )
        return response

    @staticmethod
    def _clip(text: str, limit: int = 120) -> str:
        if len(text) <= limit:
            return text
        return f"{text[:limit]}…"
