"""AI Prompts Module"""

from assessment.ai.prompts.grading_prompts import (
    WRITING_SYSTEM_PROMPT,
    TRANSCRIPTION_PROMPT,
    build_writing_prompt,
)

__all__ = [
    "WRITING_SYSTEM_PROMPT",
    "TRANSCRIPTION_PROMPT",
    "build_writing_prompt",
]
