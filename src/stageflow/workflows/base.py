"""Base workflow classes.

This module provides the foundation shared by every execution strategy:
- Structural validation
- Approval requests with intervention recording
- Error results for members that raised
- Result and metrics assembly
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from ..core.agent import Agent
from ..core.context import WorkflowContext
from ..core.errors import InterventionError
from ..core.models import (
    AgentError,
    AgentResult,
    ApprovalRequest,
    ExecutionMetrics,
    HumanResponse,
    InterventionRecord,
    ValidationResult,
    WorkflowConfig,
    WorkflowMetrics,
    WorkflowResult,
    WorkflowType,
)

logger = logging.getLogger(__name__)

_UNSET = object()


@runtime_checkable
class Workflow(Protocol):
    """Contract shared by all execution strategies."""

    id: str
    name: str
    type: WorkflowType
    agents: List[Agent]

    async def execute(self, context: WorkflowContext) -> WorkflowResult: ...

    def validate(self) -> ValidationResult: ...


def merge_modifications(output: Any, modifications: Dict[str, Any]) -> Any:
    """Fold reviewer modifications into a running output.

    Non-mapping outputs are kept under the ``output`` key.
    """
    if output is None:
        return dict(modifications)
    if isinstance(output, dict):
        return {**output, **modifications}
    return {"output": output, **modifications}


def failure_message(result: AgentResult) -> str:
    if result.error is not None:
        return result.error.message
    return result.summary or "Agent failed"


class BaseWorkflow(ABC):
    """Base class for workflow strategies.

    Subclasses implement :meth:`run`. :meth:`execute` resets the per-run
    intervention log before delegating to it.
    """

    type: WorkflowType

    def __init__(
        self,
        id: str,
        name: str,
        agents: List[Agent],
        config: Optional[WorkflowConfig] = None,
    ):
        """Initialize the workflow.

        Args:
            id: Workflow identifier
            name: Human-readable name
            agents: Ordered members
            config: Execution settings (defaults apply when omitted)
        """
        self.id = id
        self.name = name
        self.agents = list(agents)
        self.config = config or WorkflowConfig()
        self.interventions: List[InterventionRecord] = []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, agents={[a.id for a in self.agents]!r})"

    async def execute(self, context: WorkflowContext) -> WorkflowResult:
        self.interventions = []
        return await self.run(context)

    @abstractmethod
    async def run(self, context: WorkflowContext) -> WorkflowResult:
        """Strategy-specific execution."""

    def validate(self) -> ValidationResult:
        """Check the member list and the approval gate references."""
        errors: List[str] = []
        warnings: List[str] = []

        if not self.agents:
            errors.append("Workflow must have at least one agent")

        seen = set()
        for agent in self.agents:
            if agent.id in seen:
                errors.append(f"Duplicate agent ID: {agent.id}")
            seen.add(agent.id)

        for gate_id in self.config.approval_gates:
            if gate_id not in seen:
                warnings.append(f"Approval gate references unknown agent: {gate_id}")

        return ValidationResult(valid=not errors, errors=errors, warnings=warnings)

    def find_agent(self, agent_id: str) -> Optional[Agent]:
        for agent in self.agents:
            if agent.id == agent_id:
                return agent
        return None

    def child_context(self, context: WorkflowContext, **changes: Any) -> WorkflowContext:
        """Context for one member invocation, parented to this workflow."""
        return context.derive(parent_agent_id=self.id, **changes)

    async def request_approval(self, context: WorkflowContext, agent: Agent, output: Any) -> HumanResponse:
        """Ask the reviewer about ``output`` and record the intervention."""
        if context.hitl is None:
            raise InterventionError(f"Approval required at {agent.id} but no HITL interface is configured")

        display_name = getattr(agent, "display_name", None)
        label = display_name.en if display_name is not None else agent.name

        response = await context.hitl.request_approval(
            ApprovalRequest(
                agent_id=agent.id,
                stage=context.state.current_stage,
                type="output",
                summary=f"Review output from {label}",
                content=output,
            )
        )

        self.interventions.append(
            InterventionRecord(
                agent_id=agent.id,
                reason=f"Approval gate at {agent.id}",
                response=response,
            )
        )
        return response

    def create_error_result(self, error: BaseException) -> AgentResult:
        return AgentResult(
            success=False,
            output=None,
            summary=f"Execution failed: {error}",
            error=AgentError.from_exception(error),
            metrics=ExecutionMetrics(duration_ms=0, tool_calls=0),
            requires_review=False,
        )

    def create_result(
        self,
        success: bool,
        agent_results: Dict[str, AgentResult],
        execution_path: List[str],
        error: Optional[str] = None,
        output: Any = _UNSET,
        total_iterations: Optional[int] = None,
    ) -> WorkflowResult:
        """Assemble the workflow result.

        When ``output`` is not given, the last successful member's output is used.
        """
        if output is _UNSET:
            output = None
            for result in reversed(list(agent_results.values())):
                if result.success:
                    output = result.output
                    break

        interventions = self.collect_interventions(agent_results)
        return WorkflowResult(
            success=success,
            output=output,
            agent_results=dict(agent_results),
            execution_path=list(execution_path),
            metrics=self.calculate_metrics(agent_results, total_iterations, len(interventions)),
            interventions=interventions,
            error=error,
        )

    def collect_interventions(self, agent_results: Dict[str, AgentResult]) -> List[InterventionRecord]:
        """This run's interventions plus those reported by nested workflows, oldest first."""
        interventions = list(self.interventions)
        for result in agent_results.values():
            interventions.extend(result.interventions)
        return sorted(interventions, key=lambda record: record.timestamp)

    def calculate_metrics(
        self,
        agent_results: Dict[str, AgentResult],
        total_iterations: Optional[int] = None,
        human_interventions: Optional[int] = None,
    ) -> WorkflowMetrics:
        successful = sum(1 for result in agent_results.values() if result.success)
        if human_interventions is None:
            human_interventions = len(self.interventions)
        return WorkflowMetrics(
            total_duration_ms=sum(result.metrics.duration_ms for result in agent_results.values()),
            agent_count=len(agent_results),
            successful_agents=successful,
            failed_agents=len(agent_results) - successful,
            human_interventions=human_interventions,
            total_iterations=total_iterations,
        )
