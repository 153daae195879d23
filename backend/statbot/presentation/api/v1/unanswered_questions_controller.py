"""Admin endpoints for triaging questions the chatbot could not answer."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status

from statbot.application.schemas.unanswered_question import (
    DeletedCountSchema,
    MarkHandledRequest,
    UnansweredQuestionListSchema,
    UnansweredQuestionSchema,
)
from statbot.application.services import UnansweredQuestionService
from statbot.domain.entities import UnansweredQuestionFilter
from statbot.domain.exceptions import EntityNotFoundError
from statbot.infrastructure.dependencies import get_unanswered_question_service

router = APIRouter(prefix="/admin/unanswered-questions", tags=["Unanswered Questions"])


@router.get("", response_model=UnansweredQuestionListSchema)
async def list_unanswered_questions(
    handled: bool | None = Query(None, description="Filter by handled flag"),
    confidence_min: float | None = Query(None, ge=0.0, le=1.0),
    confidence_max: float | None = Query(None, ge=0.0, le=1.0),
    date_from: datetime | None = Query(None, description="Only records at or after this time"),
    date_to: datetime | None = Query(None, description="Only records at or before this time"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: UnansweredQuestionService = Depends(get_unanswered_question_service),
) -> UnansweredQuestionListSchema:
    """List recorded questions, newest first."""
    filters = UnansweredQuestionFilter(
        handled=handled,
        confidence_min=confidence_min,
        confidence_max=confidence_max,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
    records, total = await service.list_questions(filters)
    return UnansweredQuestionListSchema(
        items=[UnansweredQuestionSchema.model_validate(r, from_attributes=True) for r in records],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.patch("", response_model=UnansweredQuestionSchema)
async def mark_handled(
    body: MarkHandledRequest,
    service: UnansweredQuestionService = Depends(get_unanswered_question_service),
) -> UnansweredQuestionSchema:
    """Mark a recorded question as handled."""
    try:
        record = await service.mark_handled(body.timestamp)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return UnansweredQuestionSchema.model_validate(record, from_attributes=True)


@router.delete("", response_model=DeletedCountSchema)
async def delete_all_unanswered_questions(
    service: UnansweredQuestionService = Depends(get_unanswered_question_service),
) -> DeletedCountSchema:
    deleted = await service.delete_all()
    return DeletedCountSchema(deleted=deleted)


@router.delete("/entry", status_code=status.HTTP_204_NO_CONTENT)
async def delete_unanswered_question(
    timestamp: datetime = Query(..., description="Timestamp key of the record"),
    service: UnansweredQuestionService = Depends(get_unanswered_question_service),
) -> None:
    """Delete a single recorded question."""
    try:
        await service.delete_question(timestamp)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/handled", response_model=DeletedCountSchema)
async def purge_handled_questions(
    older_than_days: int | None = Query(
        None, description="Age in days; defaults to the configured retention window",
    ),
    service: UnansweredQuestionService = Depends(get_unanswered_question_service),
) -> DeletedCountSchema:
    """Delete handled records older than the given number of days."""
    try:
        deleted = await service.delete_handled_older_than(older_than_days)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return DeletedCountSchema(deleted=deleted)
