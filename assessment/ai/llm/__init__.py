"""
LLM Module

Language Model integrations for AI grading.

Currently using Google Gemini.
"""

from assessment.ai.llm.gemini_client import GeminiClient

__all__ = [
    "GeminiClient",
]
