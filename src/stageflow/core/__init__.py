"""Core module for the pipeline engine.

This module contains the fundamental building blocks:
- Data models with validation
- The agent contract and its base class
- Execution contexts and cancellation
- The agent registry
"""

from .agent import Agent, AgentHooks, BaseAgent, interpolate
from .context import (
    AbortController,
    AbortSignal,
    AgentContext,
    ExecutionOptions,
    HITLInterface,
    InvocationContext,
    Logger,
    WorkflowActions,
    WorkflowContext,
)
from .errors import (
    AgentNotFoundError,
    InterventionError,
    StageflowError,
    WorkflowValidationError,
)
from .models import (
    RESEARCH_STAGES,
    AgentConfig,
    AgentError,
    AgentReference,
    AgentResult,
    ApprovalOption,
    ApprovalRequest,
    DisplayName,
    ExecutionMetrics,
    FeedbackContext,
    HumanResponse,
    InterventionRecord,
    NestedWorkflowReference,
    Notification,
    ResearchStage,
    SerializedSession,
    Skill,
    StateKeys,
    TokenUsage,
    ValidationResult,
    WorkflowConfig,
    WorkflowDefinition,
    WorkflowMetrics,
    WorkflowResult,
)
from .registry import AgentRegistry

__all__ = [
    # Models
    "AgentConfig",
    "AgentError",
    "AgentReference",
    "AgentResult",
    "ApprovalOption",
    "ApprovalRequest",
    "DisplayName",
    "ExecutionMetrics",
    "FeedbackContext",
    "HumanResponse",
    "InterventionRecord",
    "NestedWorkflowReference",
    "Notification",
    "RESEARCH_STAGES",
    "ResearchStage",
    "SerializedSession",
    "Skill",
    "StateKeys",
    "TokenUsage",
    "ValidationResult",
    "WorkflowConfig",
    "WorkflowDefinition",
    "WorkflowMetrics",
    "WorkflowResult",
    # Agents
    "Agent",
    "AgentHooks",
    "BaseAgent",
    "interpolate",
    "AgentRegistry",
    # Context
    "AbortController",
    "AbortSignal",
    "AgentContext",
    "ExecutionOptions",
    "HITLInterface",
    "InvocationContext",
    "Logger",
    "WorkflowActions",
    "WorkflowContext",
    # Errors
    "StageflowError",
    "AgentNotFoundError",
    "WorkflowValidationError",
    "InterventionError",
]
