"""Hosted language-model client."""

from sakhii.llm.gemini_client import GeminiClient

__all__ = ["GeminiClient"]
