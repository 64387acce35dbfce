"""Exception hierarchy for the pipeline engine."""

from typing import List, Optional


class StageflowError(Exception):
    """Base class for engine errors."""


class AgentNotFoundError(StageflowError):
    """A workflow referenced an agent id that is not registered."""

    def __init__(self, agent_id: str):
        super().__init__(f"Agent not found: {agent_id}")
        self.agent_id = agent_id


class WorkflowValidationError(StageflowError):
    """A workflow failed structural validation and cannot run."""

    def __init__(self, workflow_id: str, errors: List[str]):
        super().__init__(f"Invalid workflow {workflow_id}: {', '.join(errors)}")
        self.workflow_id = workflow_id
        self.errors = errors


class InterventionError(StageflowError):
    """Human-in-the-loop request could not be dispatched."""

    def __init__(self, message: str, approval_id: Optional[str] = None):
        super().__init__(message)
        self.approval_id = approval_id
