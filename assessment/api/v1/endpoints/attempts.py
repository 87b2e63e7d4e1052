"""
Attempt Endpoints

HTTP API for quiz submission and attempt review.

Endpoints:
----------
- POST   /quizzes/{quiz_id}/submit     - Submit and grade answers
- GET    /quizzes/{quiz_id}/attempts   - List the user's attempts
- GET    /attempts/{attempt_id}        - Get an attempt with graded answers
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.responses import JSONResponse

from assessment.api.deps import (
    get_current_user_id,
    get_grading_engine,
    get_attempt_service,
)
from assessment.core.exceptions import (
    SubmissionError,
    InvalidSubmission,
    ReferenceUnavailable,
    ResourceTimeout,
    GradingFailed,
)
from assessment.schemas.attempt import (
    AttemptSubmitRequest,
    SubmissionResponse,
    SubmissionErrorResponse,
    AttemptListResponse,
    AttemptResponse,
    AttemptDetailResponse,
)
from assessment.services.attempt_service import (
    AttemptGradingEngine,
    AttemptService,
    AttemptNotFoundError,
    QuizNotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Attempts"])

SUBMISSION_FAILED_DETAIL = "Submission failed, please try again."


def submission_error_status(error: SubmissionError) -> int:
    if isinstance(error, InvalidSubmission):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(error, ReferenceUnavailable):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, ResourceTimeout):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(error, GradingFailed):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def submission_error_response(error: SubmissionError) -> JSONResponse:
    return JSONResponse(
        status_code=submission_error_status(error),
        content=SubmissionErrorResponse(
            detail=SUBMISSION_FAILED_DETAIL,
            stage=error.stage,
        ).model_dump(),
    )


# ============================================================
# SUBMIT ATTEMPT
# ============================================================

@router.post(
    "/quizzes/{quiz_id}/submit",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit quiz answers",
    description="""
    Creates a new attempt, grades every answer (multiple choice and
    fill-in-the-blank locally, essays and speaking through the AI grader)
    and stores the result in one transaction.

    If any answer cannot be graded nothing is stored and the call can be
    retried safely.
    """,
    responses={
        400: {"model": SubmissionErrorResponse},
        404: {"model": SubmissionErrorResponse},
        502: {"model": SubmissionErrorResponse},
        503: {"model": SubmissionErrorResponse},
    },
)
async def submit_attempt(
    quiz_id: UUID,
    submission: AttemptSubmitRequest,
    user_id: UUID = Depends(get_current_user_id),
    engine: AttemptGradingEngine = Depends(get_grading_engine),
):
    try:
        result = await engine.submit_attempt(
            user_id=user_id,
            quiz_id=quiz_id,
            submissions=submission.answers,
        )
    except SubmissionError as e:
        logger.warning(f"Submission rejected for user {user_id}: {e}")
        return submission_error_response(e)

    return SubmissionResponse(
        attempt_id=result.attempt_id,
        final_score=round(result.final_score, 2),
        graded_count=result.graded_count,
    )


# ============================================================
# LIST ATTEMPTS
# ============================================================

@router.get(
    "/quizzes/{quiz_id}/attempts",
    response_model=AttemptListResponse,
    summary="List quiz attempts",
)
async def list_attempts(
    quiz_id: UUID,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    user_id: UUID = Depends(get_current_user_id),
    service: AttemptService = Depends(get_attempt_service),
):
    try:
        attempts, total = await service.list_attempts(
            user_id=user_id,
            quiz_id=quiz_id,
            skip=skip,
            limit=limit,
        )
    except QuizNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Quiz not found",
        )
    return AttemptListResponse(
        attempts=[AttemptResponse.model_validate(a) for a in attempts],
        total=total,
    )


# ============================================================
# GET ATTEMPT
# ============================================================

@router.get(
    "/attempts/{attempt_id}",
    response_model=AttemptDetailResponse,
    summary="Get an attempt with its graded answers",
)
async def get_attempt(
    attempt_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: AttemptService = Depends(get_attempt_service),
):
    try:
        attempt = await service.get_attempt(
            attempt_id=attempt_id,
            user_id=user_id,
        )
    except AttemptNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Attempt not found",
        )
    return AttemptDetailResponse.model_validate(attempt)
