"""LLM provider implementations."""

from taskrelay.infrastructure.llm.litellm_service import LiteLLMService, RetryPolicy

__all__ = ["LiteLLMService", "RetryPolicy"]
