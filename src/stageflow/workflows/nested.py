"""Adapter exposing a workflow through the agent contract."""

import logging
from typing import List, Optional

from ..core.context import AgentContext
from ..core.models import AgentError, AgentResult, DisplayName, ExecutionMetrics, Skill
from .base import Workflow

logger = logging.getLogger(__name__)


class WorkflowAgent:
    """Runs a nested workflow as if it were a single agent.

    ``execute`` never raises; the nested WorkflowResult is repackaged as an
    AgentResult.
    """

    def __init__(self, workflow: Workflow):
        self.workflow = workflow
        self.id = workflow.id
        self.name = workflow.name
        self.display_name = DisplayName(en=workflow.name, ko=workflow.name)
        self.description = f"Nested workflow: {workflow.name}"
        self.instruction = ""
        self.tools: List[str] = []
        self.skills: List[Skill] = []
        self.output_key: Optional[str] = None
        self.model: Optional[str] = None

    def __repr__(self) -> str:
        return f"WorkflowAgent({self.workflow!r})"

    async def execute(self, context: AgentContext) -> AgentResult:
        try:
            result = await self.workflow.execute(context)
        except Exception as e:
            context.logger.error(f"Nested workflow {self.id} raised: {e}")
            return AgentResult(
                success=False,
                summary=f"Workflow {self.name} failed: {e}",
                error=AgentError.from_exception(e),
            )

        error = None
        if not result.success:
            error = AgentError(name="WorkflowFailed", message=result.error or f"Workflow {self.name} failed")

        return AgentResult(
            success=result.success,
            output=result.output,
            summary=f"Workflow {self.name} {'completed' if result.success else 'failed'}",
            error=error,
            metrics=ExecutionMetrics(
                duration_ms=result.metrics.total_duration_ms,
                tool_calls=0,
                iterations=result.metrics.total_iterations,
            ),
            requires_review=False,
            interventions=list(result.interventions),
        )

    def can_handle(self, task: str) -> bool:
        return True
