"""
Attempt Schemas

Pydantic models for quiz submission requests and attempt responses.
"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


# ============================================================
# Enums
# ============================================================

class AttemptStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# ============================================================
# Request Schemas
# ============================================================

class AnswerSubmission(BaseModel):
    """
    A single answer for one question.

    Which field is meaningful depends on the question kind:
    option_id for multiple_choice, answer_text for fill_blank and essay,
    answer_media_ref (storage key of the recording) for speaking.
    Leaving all of them empty is allowed and scores 0.
    """
    model_config = ConfigDict(populate_by_name=True)

    question_id: UUID
    option_id: Optional[UUID] = None
    answer_text: Optional[str] = Field(None, max_length=20000)
    answer_media_ref: Optional[str] = Field(
        None,
        max_length=1024,
        validation_alias=AliasChoices("answer_media_ref", "user_answer_url"),
    )

    @model_validator(mode="after")
    def check_single_answer(self):
        provided = [
            name for name in ("option_id", "answer_text", "answer_media_ref")
            if getattr(self, name) is not None
        ]
        if len(provided) > 1:
            raise ValueError(
                f"Only one answer field may be set, got: {', '.join(provided)}"
            )
        return self


class AttemptSubmitRequest(BaseModel):
    """Request to submit answers for a quiz."""
    answers: List[AnswerSubmission] = Field(
        ...,
        description="Answers, one per question; unknown questions are ignored"
    )


# ============================================================
# Response Schemas
# ============================================================

class SubmissionResponse(BaseModel):
    """Outcome of a successful submission."""
    message: str = "Submission graded."
    attempt_id: UUID
    final_score: float
    graded_count: int


class SubmissionErrorResponse(BaseModel):
    """Body returned for any failed submission."""
    detail: str
    stage: str


class GradedAnswerResponse(BaseModel):
    """A persisted, graded answer."""
    question_id: UUID
    option_id: Optional[UUID] = None
    answer_text: Optional[str] = None
    answer_media_ref: Optional[str] = None
    is_correct: Optional[bool] = None
    ai_score: float
    ai_feedback: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AttemptResponse(BaseModel):
    """Attempt summary."""
    id: UUID
    quiz_id: UUID
    status: AttemptStatus
    final_score: Optional[float] = None
    start_time: datetime
    end_time: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AttemptDetailResponse(AttemptResponse):
    """Attempt with its graded answers."""
    answers: List[GradedAnswerResponse]


class AttemptListResponse(BaseModel):
    """Paginated list of attempts for a quiz."""
    attempts: List[AttemptResponse]
    total: int
