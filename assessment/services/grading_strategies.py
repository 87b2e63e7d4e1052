"""
Grading Strategies

One coroutine per question kind, each mapping (reference, submission) to
a GradeOutcome. Deterministic kinds never touch the AI grader; essay,
writing and speaking delegate to it and let its errors propagate.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

from assessment.ai.grader import AIGradingAdapter
from assessment.models.quiz_question import QuestionType
from assessment.schemas.attempt import AnswerSubmission
from assessment.services.reference_store import GradingReference

NO_SUBMISSION_FEEDBACK = "No submission."


@dataclass(frozen=True)
class GradeOutcome:
    score: float
    is_correct: Optional[bool] = None
    feedback: Optional[str] = None


Strategy = Callable[
    [GradingReference, AnswerSubmission, AIGradingAdapter],
    Awaitable[GradeOutcome],
]


def _binary(correct: bool) -> GradeOutcome:
    return GradeOutcome(score=100.0 if correct else 0.0, is_correct=correct)


def normalize_text(value: Optional[str]) -> str:
    return (value or "").strip().casefold()


async def grade_multiple_choice(
    reference: GradingReference,
    submission: AnswerSubmission,
    adapter: AIGradingAdapter,
) -> GradeOutcome:
    correct = (
        submission.option_id is not None
        and submission.option_id == reference.correct_option_id
    )
    return _binary(correct)


async def grade_fill_blank(
    reference: GradingReference,
    submission: AnswerSubmission,
    adapter: AIGradingAdapter,
) -> GradeOutcome:
    if submission.answer_text is None or reference.correct_text is None:
        return _binary(False)
    return _binary(normalize_text(submission.answer_text) == normalize_text(reference.correct_text))


async def grade_writing(
    reference: GradingReference,
    submission: AnswerSubmission,
    adapter: AIGradingAdapter,
) -> GradeOutcome:
    text = submission.answer_text
    if not text or not text.strip():
        return GradeOutcome(score=0.0, feedback=NO_SUBMISSION_FEEDBACK)

    grade = await adapter.grade_writing(reference.prompt_text, text)
    return GradeOutcome(score=grade.score, feedback=grade.feedback)


async def grade_speaking(
    reference: GradingReference,
    submission: AnswerSubmission,
    adapter: AIGradingAdapter,
) -> GradeOutcome:
    audio_ref = submission.answer_media_ref
    if not audio_ref or not audio_ref.strip():
        return GradeOutcome(score=0.0, feedback=NO_SUBMISSION_FEEDBACK)

    grade = await adapter.grade_speaking(reference.prompt_text, audio_ref)
    return GradeOutcome(score=grade.score, feedback=grade.feedback)


STRATEGIES: Dict[str, Strategy] = {
    QuestionType.MULTIPLE_CHOICE.value: grade_multiple_choice,
    QuestionType.FILL_BLANK.value: grade_fill_blank,
    QuestionType.ESSAY.value: grade_writing,
    QuestionType.WRITING.value: grade_writing,
    QuestionType.SPEAKING.value: grade_speaking,
}


def is_scorable_kind(kind: str) -> bool:
    return kind in STRATEGIES


async def grade(
    reference: GradingReference,
    submission: AnswerSubmission,
    adapter: AIGradingAdapter,
) -> GradeOutcome:
    """
    Grade one answer with the strategy registered for its question kind.

    Raises:
        KeyError: If the kind has no strategy (callers filter with
            is_scorable_kind first)
    """
    strategy = STRATEGIES[reference.question_kind]
    return await strategy(reference, submission, adapter)
