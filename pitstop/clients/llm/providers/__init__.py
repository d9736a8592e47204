"""Model backend implementations: OpenAI (primary, tool calling) and Gemini (text fallback)."""
from pitstop.clients.llm.providers.gemini import GeminiLLMClient, gemini_builder
from pitstop.clients.llm.providers.openai import OpenAILLMClient, openai_builder, to_openai_tools

__all__ = [
    "GeminiLLMClient",
    "OpenAILLMClient",
    "gemini_builder",
    "openai_builder",
    "to_openai_tools",
]
