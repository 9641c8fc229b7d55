"""
LLM Provider Protocol

Used by the LLM-backed collaborators (task segmenter, evaluation oracle).
Implementations resolve model aliases, retry transient failures and report
errors in the result instead of raising.
"""

from typing import Any, Protocol


class LLMProviderProtocol(Protocol):
    """Protocol defining the contract for chat completion providers."""

    async def complete(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """
        Perform a chat completion.

        Args:
            messages: List of dicts with 'role' and 'content'.
            model: Model alias or None for the configured default.
            **kwargs: Extra parameters (temperature, max_tokens, ...).

        Returns:
            Dictionary with:
            - success: bool
            - content: str | None - generated text
            - error: str - error message (if failed)
        """
        ...
