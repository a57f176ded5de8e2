"""LLM client implementations for Transitoria."""

from transitoria.clients.gemini import GeminiClient, GeminiResponse

__all__ = ["GeminiClient", "GeminiResponse"]
