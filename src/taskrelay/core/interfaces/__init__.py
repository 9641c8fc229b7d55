"""
Core Protocol Interfaces

Contracts for every collaborator of the engine. Protocols keep the domain
and application layers independent of concrete adapters.

Available Protocols:
    - PlannerProtocol, ArgumentExtractorProtocol, TaskSegmenterProtocol
    - EvaluationOracleProtocol, CapabilityInvokerProtocol
    - ProgressListenerProtocol
    - KeyValueStoreProtocol: session-scoped state
    - LLMProviderProtocol: language model completions
    - LoggerProtocol: structured logging
"""

from taskrelay.core.interfaces.collaborators import (
    ArgumentExtractorProtocol,
    CapabilityInvokerProtocol,
    EvaluationOracleProtocol,
    PlannerProtocol,
    ProgressListenerProtocol,
    TaskSegmenterProtocol,
)
from taskrelay.core.interfaces.llm import LLMProviderProtocol
from taskrelay.core.interfaces.logging import LoggerProtocol
from taskrelay.core.interfaces.store import KeyValueStoreProtocol

__all__ = [
    "ArgumentExtractorProtocol",
    "CapabilityInvokerProtocol",
    "EvaluationOracleProtocol",
    "KeyValueStoreProtocol",
    "LLMProviderProtocol",
    "LoggerProtocol",
    "PlannerProtocol",
    "ProgressListenerProtocol",
    "TaskSegmenterProtocol",
]
