"""
Configuration Schema Validation

Pydantic models for the engine configuration profile (configs/*.yaml).
Provides clear error messages with file and field context.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from taskrelay.core.domain.errors import ConfigError


class InvokerConfigSchema(BaseModel):
    """Schema for the capability invoker (automation surface) section."""

    model_config = ConfigDict(extra="forbid")

    base_url: str = Field(
        "http://localhost:8765",
        description="Base URL of the capability server",
    )
    endpoint: str = Field(
        "/api/tools",
        description="Path capabilities are POSTed to",
    )
    timeout_seconds: float = Field(
        30.0,
        gt=0,
        le=600,
        description="Per-call timeout applied by the invoker adapter",
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        return v if v.startswith("/") else f"/{v}"


class TTLSectionSchema(BaseModel):
    """Lifetime of session-scoped keys (0 keeps them until the store is cleared)."""

    model_config = ConfigDict(extra="forbid")

    ttl_seconds: int = Field(3600, ge=0, description="Key lifetime in seconds")


class AccumulatorConfigSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    min_output_chars: int = Field(
        5,
        ge=0,
        description="Outputs at or below this stripped length are not carried",
    )


class EvaluationConfigSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    true_token: str = Field(
        "TRUE",
        min_length=1,
        description="Token whose presence in the oracle answer means true",
    )
    backend: str = Field(
        "llm",
        description="Oracle backend: 'llm' (LiteLLM) or 'invoker' (call_llm capability)",
        pattern="^(llm|invoker)$",
    )


class SegmentationConfigSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    use_external_fallback: bool = Field(
        True,
        description="Ask the LLM segmenter when the connector grammar cannot split",
    )


class ExecutionConfigSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_parallel_tasks: int = Field(
        4,
        ge=1,
        le=64,
        description="Concurrency limit for the parallel strategy",
    )


class LLMConfigSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    config_path: Optional[str] = Field(
        None,
        description="Path to the LiteLLM model configuration YAML",
    )
    model: str = Field("main", description="Model alias used by the LLM collaborators")


class LoggingConfigSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: str = Field(
        "INFO",
        description="Log level",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class EngineConfigSchema(BaseModel):
    """
    Schema for engine profile files.

    Every section is optional in YAML; missing values take the defaults
    declared on the section models.
    """

    model_config = ConfigDict(extra="forbid")

    invoker: InvokerConfigSchema = Field(default_factory=InvokerConfigSchema)
    execution: ExecutionConfigSchema = Field(default_factory=ExecutionConfigSchema)
    dedup: TTLSectionSchema = Field(default_factory=TTLSectionSchema)
    confirmations: TTLSectionSchema = Field(default_factory=TTLSectionSchema)
    accumulator: AccumulatorConfigSchema = Field(default_factory=AccumulatorConfigSchema)
    evaluation: EvaluationConfigSchema = Field(default_factory=EvaluationConfigSchema)
    segmentation: SegmentationConfigSchema = Field(default_factory=SegmentationConfigSchema)
    llm: LLMConfigSchema = Field(default_factory=LLMConfigSchema)
    logging: LoggingConfigSchema = Field(default_factory=LoggingConfigSchema)


def _field_path(error: ValidationError) -> Optional[str]:
    errors = error.errors()
    if not errors:
        return None
    return ".".join(str(part) for part in errors[0].get("loc", ()))


def validate_engine_config(
    data: dict[str, Any],
    file_path: Optional[Path] = None,
) -> EngineConfigSchema:
    """
    Validate engine configuration data.

    Args:
        data: Configuration dictionary
        file_path: Optional file path for error messages

    Returns:
        Validated EngineConfigSchema

    Raises:
        ConfigError: If validation fails
    """
    try:
        return EngineConfigSchema(**data)
    except ValidationError as e:
        details: dict[str, Any] = {}
        if file_path:
            details["file_path"] = str(file_path)
        field_path = _field_path(e)
        if field_path:
            details["field_path"] = field_path
        raise ConfigError(str(e), details=details) from e
