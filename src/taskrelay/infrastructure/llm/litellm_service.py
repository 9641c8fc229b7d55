"""
LLM Service using LiteLLM for multi-provider support.

Backs the language collaborators of the engine (task segmenter and
evaluation oracle). The provider is determined by the model string prefix
(e.g. "anthropic/", "azure/", "ollama/"), so there are no provider-specific
code paths.

Key features:
- Model alias resolution from YAML configuration
- Per-model default parameters with merge semantics
- Retry with exponential backoff on transient failures

Environment variables are read natively by LiteLLM per provider
(OPENAI_API_KEY, ANTHROPIC_API_KEY, AZURE_API_KEY, ...).
"""

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

# Suppress LiteLLM verbose logging before import
os.environ.setdefault("LITELLM_LOG_LEVEL", "ERROR")
os.environ.setdefault("LITELLM_LOGGING", "off")

for _ln in ["LiteLLM", "litellm", "httpcore", "httpx", "openai"]:
    logging.getLogger(_ln).setLevel(logging.ERROR)

import litellm  # noqa: E402
import structlog  # noqa: E402
import yaml  # noqa: E402

litellm.suppress_debug_info = True
litellm.drop_params = True

# Error type names that indicate transient failures worth retrying
_RETRYABLE_ERROR_TYPES = frozenset(
    {"RateLimitError", "APIConnectionError", "Timeout", "ServiceUnavailableError"}
)

_RETRYABLE_KEYWORDS = ("rate limit", "timeout", "503", "502", "429", "overloaded")

# Permanent failures, never retried
_NON_RETRYABLE_KEYWORDS = (
    "invalid api key",
    "authentication",
    "not found",
    "invalid model",
    "invalid request",
)

DEFAULT_LLM_CONFIG = Path(__file__).resolve().parents[2] / "configs" / "llm_config.yaml"


@dataclass
class RetryPolicy:
    """Retry policy configuration for LLM API calls."""

    max_attempts: int = 3
    backoff_multiplier: float = 2.0
    timeout: int = 60


class LiteLLMService:
    """
    Provider-agnostic completion service powered by LiteLLM.

    Implements LLMProviderProtocol. Configuration is loaded from a YAML file
    with model aliases, per-model parameters, and retry policy.

    Args:
        config_path: Path to YAML configuration file.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config is invalid (empty or missing models section).
    """

    def __init__(self, config_path: str | Path | None = None) -> None:
        self.logger = structlog.get_logger(__name__)
        self._load_config(Path(config_path) if config_path else DEFAULT_LLM_CONFIG)

        self.logger.info(
            "llm_service_initialized",
            default_model=self.default_model,
            model_aliases=list(self.models.keys()),
        )

    def _load_config(self, config_file: Path) -> None:
        if not config_file.exists():
            raise FileNotFoundError(f"LLM config not found: {config_file}")

        with open(config_file, encoding="utf-8") as f:
            config = yaml.safe_load(f)

        if not config:
            raise ValueError(f"Config file is empty or invalid: {config_file}")

        self.default_model: str = config.get("default_model", "main")
        self.models: dict[str, str] = config.get("models", {})
        self.model_params: dict[str, dict[str, Any]] = config.get("model_params", {})
        self.default_params: dict[str, Any] = config.get("default_params", {})

        if not self.models:
            raise ValueError("Config must define at least one model in 'models' section")

        retry_cfg = config.get("retry", config.get("retry_policy", {}))
        self.retry_policy = RetryPolicy(
            max_attempts=retry_cfg.get("max_attempts", 3),
            backoff_multiplier=retry_cfg.get("backoff_multiplier", 2.0),
            timeout=retry_cfg.get("timeout", 60),
        )

    def _resolve_model(self, model_alias: str | None) -> str:
        """Resolve a model alias to a LiteLLM model string.

        Unknown aliases are returned as-is so direct model strings work.
        """
        alias = model_alias or self.default_model
        resolved = self.models.get(alias, alias)
        self.logger.debug("model_resolved", alias=alias, resolved=resolved)
        return resolved

    def _get_params(self, model_alias: str, **kwargs: Any) -> dict[str, Any]:
        """Merge default params, model params and caller kwargs (later wins)."""
        params: dict[str, Any] = {**self.default_params}

        resolved = self.models.get(model_alias, model_alias)
        if model_alias in self.model_params:
            params.update(self.model_params[model_alias])
        elif resolved in self.model_params:
            params.update(self.model_params[resolved])
        else:
            # Prefix match, e.g. "gpt-4" matches "gpt-4-turbo"
            for key, model_cfg in self.model_params.items():
                if resolved.startswith(key):
                    params.update(model_cfg)
                    break

        params.update({k: v for k, v in kwargs.items() if v is not None})
        return params

    async def complete(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Perform a chat completion with retry logic.

        Args:
            messages: List of message dicts with 'role' and 'content'.
            model: Model alias or None for default.
            **kwargs: Additional parameters (temperature, max_tokens, etc.).

        Returns:
            Dict with success, content, usage, model, latency_ms.
            On failure: success=False, error, error_type.
        """
        alias = model or self.default_model
        resolved_model = self._resolve_model(model)
        params = self._get_params(alias, **kwargs)

        litellm_kwargs: dict[str, Any] = {
            "model": resolved_model,
            "messages": messages,
            "timeout": self.retry_policy.timeout,
            "drop_params": True,
            **params,
        }

        last_error: Exception | None = None
        for attempt in range(self.retry_policy.max_attempts):
            try:
                start_time = time.time()
                self.logger.info(
                    "llm_completion_started",
                    model=resolved_model,
                    attempt=attempt + 1,
                    message_count=len(messages),
                )

                response = await litellm.acompletion(**litellm_kwargs)
                latency_ms = int((time.time() - start_time) * 1000)
                result = self._parse_response(response, resolved_model, latency_ms)

                self.logger.info(
                    "llm_completion_success",
                    model=resolved_model,
                    tokens=result.get("usage", {}).get("total_tokens", 0),
                    latency_ms=latency_ms,
                )
                return result

            except Exception as e:
                last_error = e
                if attempt < self.retry_policy.max_attempts - 1 and self._should_retry(e):
                    backoff_time = self.retry_policy.backoff_multiplier**attempt
                    self.logger.warning(
                        "llm_completion_retry",
                        model=resolved_model,
                        error_type=type(e).__name__,
                        attempt=attempt + 1,
                        backoff_seconds=backoff_time,
                    )
                    await asyncio.sleep(backoff_time)
                else:
                    self.logger.error(
                        "llm_completion_failed",
                        model=resolved_model,
                        error_type=type(e).__name__,
                        error=str(e)[:200],
                        attempts=attempt + 1,
                    )
                    break

        return {
            "success": False,
            "error": str(last_error),
            "error_type": type(last_error).__name__ if last_error else "Unknown",
            "model": resolved_model,
        }

    def _parse_response(self, response: Any, model: str, latency_ms: int) -> dict[str, Any]:
        message = response.choices[0].message
        content = message.content or ""

        # Reasoning models may put content in reasoning_content
        if not content:
            reasoning_content = getattr(message, "reasoning_content", None)
            if reasoning_content:
                content = reasoning_content

        return {
            "success": True,
            "content": content if content else None,
            "usage": self._extract_usage(response),
            "model": model,
            "latency_ms": latency_ms,
        }

    @staticmethod
    def _extract_usage(response: Any) -> dict[str, int]:
        """Extract token usage from response (handles both dict and object forms)."""
        raw_usage = getattr(response, "usage", None)
        if raw_usage is None:
            return {}
        if isinstance(raw_usage, dict):
            return raw_usage
        return {
            "total_tokens": getattr(raw_usage, "total_tokens", 0) or 0,
            "prompt_tokens": getattr(raw_usage, "prompt_tokens", 0) or 0,
            "completion_tokens": getattr(raw_usage, "completion_tokens", 0) or 0,
        }

    @staticmethod
    def _should_retry(error: Exception) -> bool:
        """Check if an error is transient and worth retrying."""
        error_msg = str(error).lower()

        if any(kw in error_msg for kw in _NON_RETRYABLE_KEYWORDS):
            return False
        if type(error).__name__ in _RETRYABLE_ERROR_TYPES:
            return True
        return any(kw in error_msg for kw in _RETRYABLE_KEYWORDS)
