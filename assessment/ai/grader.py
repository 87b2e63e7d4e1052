"""
AI Grading Adapter

The grading engine's only view of the AI model:

    grade_writing(prompt, text)       -> AIGrade(score, feedback)
    grade_speaking(prompt, audio_ref) -> AIGrade(score, feedback)

Any failure (transport, quota/permission, missing audio, malformed model
output) is raised as AIGradingError. Nothing here retries; the engine
fails the whole submission on the first error.
"""

import asyncio
import json
import logging
import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import filetype

from assessment.ai.llm.gemini_client import GeminiClient
from assessment.ai.prompts.grading_prompts import (
    TRANSCRIPTION_PROMPT,
    WRITING_SYSTEM_PROMPT,
    build_writing_prompt,
)
from assessment.ai.transcript_scoring import score_transcript
from assessment.core.config import Settings
from assessment.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class AIGradingError(Exception):
    """The AI grader could not produce a grade."""
    pass


@dataclass(frozen=True)
class AIGrade:
    score: float
    feedback: str


class AIGradingAdapter(ABC):
    """Interface consumed by the writing and speaking strategies."""

    @abstractmethod
    async def grade_writing(self, prompt: str, answer: str) -> AIGrade:
        ...

    @abstractmethod
    async def grade_speaking(self, prompt: str, audio_ref: str) -> AIGrade:
        ...


# ============================================================
# RESPONSE PARSING
# ============================================================

_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_OBJECT = re.compile(r"\{[\s\S]*\}")


def extract_json_object(raw: str) -> Dict[str, Any]:
    """
    Pull the JSON object out of a model reply.

    Accepts a bare object, an object inside a ``` fence, or an object
    surrounded by chatter.
    """
    content = raw.strip()
    fenced = _FENCE.search(content)
    if fenced:
        content = fenced.group(1).strip()
    else:
        found = _OBJECT.search(content)
        if found:
            content = found.group(0)

    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse grading JSON: {e}\nRaw: {raw[:500]}")
        raise AIGradingError(f"JSON parse failed: {e}") from e

    if not isinstance(parsed, dict):
        raise AIGradingError("Grading response is not a JSON object")
    return parsed


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def build_writing_feedback(parsed: Dict[str, Any]) -> str:
    """Serialize the parts of a writing evaluation the client renders."""
    details = parsed.get("details") or {}
    sections = {
        "overallScore": _round_half_up(parsed["score"]),
        "detailedScores": [
            {"label": "Grammar", "score": details.get("grammar", 0)},
            {"label": "Vocabulary", "score": details.get("vocabulary", 0)},
            {"label": "Coherence", "score": details.get("coherence", 0)},
            {"label": "Task Achievement", "score": details.get("task_achievement", 0)},
            {"label": "Organization", "score": details.get("organization", 0)},
        ],
        "overallFeedback": parsed.get("feedback") or "No feedback provided",
        "strengths": parsed.get("strengths") or [],
        "improvements": parsed.get("improvements") or [],
        "grammarErrors": (parsed.get("grammarErrors") or [])[:5],
        "vocabularyIssues": (parsed.get("vocabularyIssues") or [])[:5],
        "recommendations": parsed.get("recommendations") or [],
    }
    return json.dumps(sections, ensure_ascii=False)


_AUDIO_EXTENSIONS = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".m4a": "audio/mp4",
    ".ogg": "audio/ogg",
    ".webm": "audio/webm",
}


def infer_audio_mime_type(data: bytes, audio_ref: str) -> str:
    """Sniff the payload first, then trust the extension, else assume webm."""
    guessed = filetype.guess_mime(data)
    if guessed and guessed.startswith("audio/"):
        return guessed

    lower = audio_ref.lower()
    for ext, mime in _AUDIO_EXTENSIONS.items():
        if lower.endswith(ext):
            return mime
    return "audio/webm"


# ============================================================
# IMPLEMENTATIONS
# ============================================================

class GeminiGradingAdapter(AIGradingAdapter):
    """Writing via a rubric prompt; speaking via transcription + lexical scoring."""

    def __init__(
        self,
        client: GeminiClient,
        storage: StorageBackend,
        eval_model: str,
        transcribe_model: str,
    ):
        self.client = client
        self.storage = storage
        self.eval_model = eval_model
        self.transcribe_model = transcribe_model

    async def grade_writing(self, prompt: str, answer: str) -> AIGrade:
        logger.info(f"Grading writing ({len(answer)} chars, model: {self.eval_model})")
        try:
            raw = await self.client.generate_text(
                self.eval_model,
                [WRITING_SYSTEM_PROMPT, build_writing_prompt(prompt, answer)],
            )
            parsed = extract_json_object(raw)

            score = parsed.get("score")
            if isinstance(score, bool) or not isinstance(score, (int, float)):
                raise AIGradingError(f"Invalid score type: {type(score).__name__}")
            if score < 0 or score > 100:
                raise AIGradingError(f"Score out of range: {score}")

            grade = AIGrade(
                score=_round_half_up(score),
                feedback=build_writing_feedback(parsed),
            )
        except AIGradingError:
            raise
        except Exception as e:
            raise AIGradingError(f"AI writing grading failed: {e}") from e

        logger.info(f"Writing graded: {grade.score}/100")
        return grade

    async def grade_speaking(self, prompt: str, audio_ref: str) -> AIGrade:
        logger.info(f"Grading speaking (audio: {audio_ref}, model: {self.transcribe_model})")
        try:
            audio = await self.storage.get(audio_ref)
            if not audio:
                raise AIGradingError("No audio data")

            transcript = await self.client.transcribe(
                self.transcribe_model,
                audio,
                infer_audio_mime_type(audio, audio_ref),
                TRANSCRIPTION_PROMPT,
            )
        except AIGradingError:
            raise
        except Exception as e:
            raise AIGradingError(f"AI speaking grading failed: {e}") from e

        # Quadratic in prompt x transcript length; keep it off the event loop
        result = await asyncio.to_thread(score_transcript, prompt, transcript)
        feedback = json.dumps(
            {
                "transcript": transcript,
                "metrics": result.metrics(),
                "tokens": result.tokens,
            },
            ensure_ascii=False,
        )
        logger.info(
            f"Speaking graded: LCS {result.lcs_length}/{result.reference_words} "
            f"-> {result.score}/100"
        )
        return AIGrade(score=result.score, feedback=feedback)


class MockGradingAdapter(AIGradingAdapter):
    """Canned grades for local development (AI_EVAL_MOCK=true)."""

    async def grade_writing(self, prompt: str, answer: str) -> AIGrade:
        return AIGrade(
            score=80,
            feedback="Mock feedback: Good essay with minor grammar issues.",
        )

    async def grade_speaking(self, prompt: str, audio_ref: str) -> AIGrade:
        return AIGrade(
            score=70,
            feedback="Mock speaking: transcript scoring is disabled in mock mode.",
        )


def build_grading_adapter(
    settings: Settings,
    storage: StorageBackend,
    client: Optional[GeminiClient] = None,
) -> AIGradingAdapter:
    """Pick the adapter the configuration asks for."""
    if settings.AI_EVAL_MOCK:
        logger.warning("AI grading running in MOCK mode")
        return MockGradingAdapter()

    if client is None:
        client = GeminiClient(
            api_key=settings.GEMINI_API_KEY,
            temperature=settings.GRADING_TEMPERATURE,
            max_output_tokens=settings.GRADING_MAX_TOKENS,
        )
    return GeminiGradingAdapter(
        client=client,
        storage=storage,
        eval_model=settings.GEMINI_EVAL_MODEL,
        transcribe_model=settings.GEMINI_TRANSCRIBE_MODEL,
    )
