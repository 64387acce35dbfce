"""Stageflow - Declarative multi-stage agent pipelines.

A workflow engine that runs autonomous agents according to declarative
definitions and:
- Composes sequential, parallel, loop and nested (hybrid) execution
- Pauses at human approval checkpoints
- Persists session state so interrupted runs can resume
"""

# Load environment variables from .env file if it exists
from dotenv import load_dotenv
load_dotenv()

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

from .agents import AgentFactory, FunctionAgent, LLMAgent
from .config import ConfigLoader, ConfigValidationError, Settings
from .core import (
    AbortController,
    Agent,
    AgentConfig,
    AgentContext,
    AgentNotFoundError,
    AgentRegistry,
    AgentResult,
    BaseAgent,
    ExecutionOptions,
    InterventionError,
    ResearchStage,
    StageflowError,
    StateKeys,
    WorkflowDefinition,
    WorkflowResult,
    WorkflowValidationError,
)
from .hitl import (
    ApprovalGateRegistry,
    ConsoleInterventionHandler,
    GateConfig,
    InterventionHandler,
    InterventionManager,
)
from .orchestration import WorkflowEngine
from .state import (
    FilePersistenceAdapter,
    MemoryPersistenceAdapter,
    PersistenceAdapter,
    SessionState,
    StateManager,
    create_persistence_adapter,
)
from .workflows import (
    HybridWorkflow,
    LoopWorkflow,
    ParallelWorkflow,
    SequentialWorkflow,
    WorkflowAgent,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "Agent",
    "AgentConfig",
    "AgentContext",
    "AgentRegistry",
    "AgentResult",
    "BaseAgent",
    "AbortController",
    "ExecutionOptions",
    "ResearchStage",
    "StateKeys",
    "WorkflowDefinition",
    "WorkflowResult",
    # Errors
    "StageflowError",
    "AgentNotFoundError",
    "WorkflowValidationError",
    "InterventionError",
    "ConfigValidationError",
    # Agents
    "AgentFactory",
    "FunctionAgent",
    "LLMAgent",
    # Workflows
    "SequentialWorkflow",
    "ParallelWorkflow",
    "LoopWorkflow",
    "HybridWorkflow",
    "WorkflowAgent",
    "WorkflowEngine",
    # State
    "PersistenceAdapter",
    "MemoryPersistenceAdapter",
    "FilePersistenceAdapter",
    "SessionState",
    "StateManager",
    "create_persistence_adapter",
    # Human-in-the-loop
    "ApprovalGateRegistry",
    "ConsoleInterventionHandler",
    "GateConfig",
    "InterventionHandler",
    "InterventionManager",
    # Configuration
    "ConfigLoader",
    "Settings",
    # High-level interface
    "PipelineManager",
]


# Convenience class for easy usage
class PipelineManager:
    """High-level interface wiring persistence, agents, approvals and the engine."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        adapter: Optional[PersistenceAdapter] = None,
        handler: Optional[InterventionHandler] = None,
        registry: Optional[AgentRegistry] = None,
    ):
        """Initialize the pipeline manager.

        Args:
            settings: Runtime settings (read from the environment if not provided)
            adapter: Persistence adapter (created from settings if not provided)
            handler: Handler used for human approvals
            registry: Agent registry (config-defined agents default to LLMAgent)
        """
        self.settings = settings or Settings.from_environment()

        if adapter is None:
            adapter = create_persistence_adapter(
                self.settings.persistence,
                data_dir=self.settings.data_dir,
                db_path=self.settings.sqlite_db_path,
                dsn=self.settings.postgres_dsn,
            )
        self.adapter = adapter

        self.state_manager = StateManager(self.adapter)
        self.registry = registry or AgentRegistry(default_factory=LLMAgent)
        self.gates = ApprovalGateRegistry()
        self.interventions = InterventionManager(
            handler=handler,
            gates=self.gates,
            auto_approve=self.settings.auto_approve,
        )
        self.config_loader = ConfigLoader(self.settings.config_dir)
        self.engine = WorkflowEngine(self.state_manager, self.registry, hitl=self.interventions)

        self._initialized = False

    async def initialize(self) -> None:
        """Open persistence and register agents defined in the config directory."""
        if self._initialized:
            return

        await self.adapter.initialize()

        if await self.config_loader.config_dir_exists():
            configs = await self.config_loader.load_all_agents()
            for config in configs.values():
                if not self.registry.has(config.id):
                    self.registry.create_from_config(config)

        self._initialized = True
        logger.info(f"Pipeline manager initialized with {len(self.registry)} agents")

    def register_agent(self, agent: Agent) -> None:
        self.registry.register(agent)

    async def run_research_workflow(
        self,
        topic: str,
        methodology: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> WorkflowResult:
        """Run the research pipeline for a topic.

        Args:
            topic: Research topic, stored on the session
            methodology: Methodology id selecting a specialized workflow
            session_id: Resume this session instead of starting a new one

        Returns:
            Workflow result
        """
        await self.initialize()

        if methodology:
            definition = self.engine.get_workflow_for_methodology(methodology)
        else:
            definition = self.engine.get_default_research_workflow()

        return await self.engine.execute_workflow(
            definition,
            {"topic": topic},
            ExecutionOptions(session_id=session_id, research_topic=topic),
        )

    async def run_workflow(
        self,
        workflow_id: str,
        input: Any = None,
        session_id: Optional[str] = None,
    ) -> WorkflowResult:
        """Run a workflow defined in ``<config_dir>/workflows/<workflow_id>.yaml``."""
        await self.initialize()

        definition = await self.config_loader.load_workflow_config(workflow_id)
        return await self.engine.execute_workflow(
            definition,
            input,
            ExecutionOptions(session_id=session_id),
        )

    async def close(self) -> None:
        await self.adapter.close()
        self._initialized = False
