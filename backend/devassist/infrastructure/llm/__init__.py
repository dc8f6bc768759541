"""LLM infrastructure module — concrete chat provider implementations."""

from .gemini_client import GeminiClient
from .openai_compatible_client import OpenAICompatibleClient

__all__ = [
    "GeminiClient",
    "OpenAICompatibleClient",
]
