"""LLM module - provider interface, prompts and the reasoning service."""

from .provider import LLMProvider, LLMMessage, LLMResponse, get_llm_provider
from .openai_client import OpenAIClient
from .anthropic_client import AnthropicClient
from .reasoning import ReasoningService

__all__ = [
    "LLMProvider",
    "LLMMessage",
    "LLMResponse",
    "get_llm_provider",
    "OpenAIClient",
    "AnthropicClient",
    "ReasoningService",
]
