"""
Submission Errors

Every failed submission surfaces as exactly one SubmissionError subclass.
The `stage` attribute names where the pipeline stopped so the HTTP layer
and the logs can tell pool exhaustion apart from a bad quiz or a grader
outage.
"""

from typing import Optional
from uuid import UUID


class SubmissionError(Exception):
    """Base class for all submission failures."""

    stage: str = "submission"

    def __init__(
        self,
        message: str,
        *,
        stage: Optional[str] = None,
        attempt_id: Optional[UUID] = None,
    ):
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage
        self.attempt_id = attempt_id

    def __str__(self) -> str:
        return f"[{self.stage}] {self.message}"


class InvalidSubmission(SubmissionError):
    """Malformed input. Rejected before any resource is touched."""

    stage = "validation"


class ResourceTimeout(SubmissionError):
    """No pooled connection became available in time."""

    stage = "acquire"


class ReferenceUnavailable(SubmissionError):
    """The quiz has no answer key, or the key could not be read."""

    stage = "references"


class GradingFailed(SubmissionError):
    """At least one strategy (usually the AI grader) raised."""

    stage = "grading"

    def __init__(
        self,
        message: str,
        *,
        attempt_id: Optional[UUID] = None,
        failed_count: int = 1,
        question_id: Optional[UUID] = None,
    ):
        super().__init__(message, attempt_id=attempt_id)
        self.failed_count = failed_count
        self.question_id = question_id
