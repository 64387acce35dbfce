"""Workflow engine.

The engine turns a declarative WorkflowDefinition into a runnable strategy,
creates the execution context for the run and persists the session once the
run is over, whatever its outcome.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from ..core.agent import Agent
from ..core.context import (
    AbortController,
    ExecutionOptions,
    HITLInterface,
    InvocationContext,
    Logger,
    WorkflowContext,
)
from ..core.errors import AgentNotFoundError, WorkflowValidationError
from ..core.models import NestedWorkflowReference, WorkflowDefinition, WorkflowResult
from ..core.registry import AgentRegistry
from ..state.session import StateManager
from ..workflows import (
    BaseWorkflow,
    HybridWorkflow,
    LoopWorkflow,
    ParallelWorkflow,
    SequentialWorkflow,
    TerminationCondition,
    WorkflowAgent,
)
from . import defaults

logger = logging.getLogger(__name__)


class WorkflowEngine:
    """Main workflow orchestration engine.

    Supports hybrid workflows combining sequential, parallel and loop
    patterns through nested definitions.
    """

    def __init__(
        self,
        state_manager: StateManager,
        agent_registry: AgentRegistry,
        hitl: Optional[HITLInterface] = None,
        run_logger: Optional[Logger] = None,
    ):
        """Initialize the engine.

        Args:
            state_manager: Creates and persists sessions
            agent_registry: Resolves agent ids to implementations
            hitl: Human-in-the-loop interface handed to every run
            run_logger: Logger handed to agents and workflows
        """
        self.state_manager = state_manager
        self.agent_registry = agent_registry
        self.hitl = hitl
        self.logger: Logger = run_logger or logging.getLogger("stageflow.run")
        self.active_workflows: Dict[str, BaseWorkflow] = {}
        self._termination_conditions: Dict[str, TerminationCondition] = {}

    async def execute_workflow(
        self,
        definition: WorkflowDefinition,
        input: Any = None,
        options: Optional[ExecutionOptions] = None,
    ) -> WorkflowResult:
        """Build, validate and run a workflow.

        Args:
            definition: Workflow definition
            input: Input handed to the first member
            options: Session id, timeout, abort controller and topic

        Returns:
            The workflow result

        Raises:
            AgentNotFoundError: If a referenced agent is not registered
            WorkflowValidationError: If the workflow is structurally invalid
        """
        options = options or ExecutionOptions()
        workflow = self.build_workflow(definition)

        timeout = options.timeout
        if timeout is None and definition.config is not None:
            timeout = definition.config.timeout

        controller = options.abort_controller or AbortController()
        context = await self.create_context(input, options, controller, timeout)

        self.active_workflows[workflow.id] = workflow
        self.logger.info(f"Starting workflow: {workflow.name} ({workflow.id})")

        try:
            if timeout is None:
                result = await workflow.execute(context)
            else:
                try:
                    result = await asyncio.wait_for(workflow.execute(context), timeout)
                except asyncio.TimeoutError:
                    controller.abort("timeout")
                    self.logger.error(f"Workflow {workflow.id} timed out after {timeout}s")
                    return WorkflowResult(
                        success=False,
                        execution_path=["timeout"],
                        error=f"Workflow {workflow.id} timed out after {timeout} seconds",
                    )

            self.logger.info(f"Workflow completed: {workflow.name} - Success: {result.success}")
            return result
        finally:
            self.active_workflows.pop(workflow.id, None)
            await self.state_manager.persist(context.state.session_id)

    def build_workflow(self, definition: WorkflowDefinition) -> BaseWorkflow:
        """Build and validate a strategy from a definition, recursing into nested members."""
        agents = self._resolve_agents(definition)
        config = definition.config

        if definition.type == "sequential":
            workflow = SequentialWorkflow(definition.id, definition.name, agents, config)
        elif definition.type == "parallel":
            merger = None
            if definition.merger_agent_id:
                merger = self.agent_registry.get(definition.merger_agent_id)
                if merger is None:
                    raise AgentNotFoundError(definition.merger_agent_id)
            workflow = ParallelWorkflow(definition.id, definition.name, agents, config, merger)
        elif definition.type == "loop":
            workflow = LoopWorkflow(
                definition.id,
                definition.name,
                agents,
                config,
                termination_condition=self._termination_conditions.get(definition.id),
            )
        elif definition.type == "hybrid":
            workflow = HybridWorkflow(definition.id, definition.name, agents, config)
        else:
            raise ValueError(f"Unknown workflow type: {definition.type}")

        self._validate(workflow)
        return workflow

    def _resolve_agents(self, definition: WorkflowDefinition) -> List[Agent]:
        agents: List[Agent] = []
        for member in definition.agents:
            if isinstance(member, NestedWorkflowReference):
                agents.append(WorkflowAgent(self.build_workflow(member.workflow)))
                continue

            agent = self.agent_registry.get(member.id)
            if agent is None:
                raise AgentNotFoundError(member.id)
            agents.append(agent)
        return agents

    def _validate(self, workflow: BaseWorkflow) -> None:
        validation = workflow.validate()
        if not validation.valid:
            raise WorkflowValidationError(workflow.id, validation.errors)
        for warning in validation.warnings:
            self.logger.warning(f"Workflow warning ({workflow.id}): {warning}")

    async def create_context(
        self,
        input: Any,
        options: ExecutionOptions,
        controller: AbortController,
        timeout: Optional[float] = None,
    ) -> WorkflowContext:
        """Fresh context for one run: session, invocation, abort signal, logger and HITL."""
        session = await self.state_manager.create_session(options.session_id)
        if options.research_topic:
            session.research_topic = options.research_topic

        return WorkflowContext(
            state=session,
            invocation=InvocationContext(input=input, timeout=timeout),
            signal=controller.signal,
            logger=self.logger,
            hitl=self.hitl,
        )

    def register_termination_condition(self, workflow_id: str, condition: TerminationCondition) -> None:
        """Attach a termination predicate to loop workflows built with ``workflow_id``."""
        self._termination_conditions[workflow_id] = condition

    def get_default_research_workflow(self) -> WorkflowDefinition:
        return defaults.default_research_workflow()

    def get_workflow_for_methodology(self, methodology_id: str) -> WorkflowDefinition:
        return defaults.workflow_for_methodology(methodology_id)

    def get_active_workflows(self) -> List[BaseWorkflow]:
        return list(self.active_workflows.values())

    def cancel_workflow(self, workflow_id: str) -> bool:
        """Log the intent to cancel a running workflow.

        Interruption itself happens through the abort controller the caller
        passed in the execution options.
        """
        if workflow_id in self.active_workflows:
            self.logger.info(f"Cancelling workflow: {workflow_id}")
            return True
        return False
