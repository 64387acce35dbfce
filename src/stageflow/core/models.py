"""Core data models for the pipeline engine.

These models define the structure of agent and workflow definitions, the
results produced while running them, and the records exchanged with the
human-in-the-loop layer. Using Pydantic gives us validation of declarative
definitions and a uniform JSON shape for persistence.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AGENT_ID_PATTERN = r"^[a-z0-9-]+$"


class ResearchStage(str, Enum):
    """Stages of the default research pipeline."""

    IDEA_BUILDING = "idea_building"
    LITERATURE_SEARCH = "literature_search"
    EXPERIMENT_DESIGN = "experiment_design"
    DATA_ANALYSIS = "data_analysis"
    PAPER_WRITING = "paper_writing"
    FORMATTING_REVIEW = "formatting_review"
    COMPLETED = "completed"

    @property
    def order(self) -> int:
        return RESEARCH_STAGES[self]["order"]

    @property
    def label(self) -> Dict[str, str]:
        return RESEARCH_STAGES[self]["label"]


RESEARCH_STAGES: Dict[ResearchStage, Dict[str, Any]] = {
    ResearchStage.IDEA_BUILDING: {"order": 1, "label": {"en": "Idea Building", "ko": "아이디어 빌딩"}},
    ResearchStage.LITERATURE_SEARCH: {"order": 2, "label": {"en": "Literature Search", "ko": "문헌검색"}},
    ResearchStage.EXPERIMENT_DESIGN: {"order": 3, "label": {"en": "Experiment Design", "ko": "실험설계"}},
    ResearchStage.DATA_ANALYSIS: {"order": 4, "label": {"en": "Data Analysis", "ko": "데이터분석"}},
    ResearchStage.PAPER_WRITING: {"order": 5, "label": {"en": "Paper Writing", "ko": "논문쓰기"}},
    ResearchStage.FORMATTING_REVIEW: {"order": 6, "label": {"en": "Formatting Review", "ko": "포맷팅 검토"}},
    ResearchStage.COMPLETED: {"order": 7, "label": {"en": "Completed", "ko": "완료"}},
}


class StateKeys:
    """Conventional session-state keys used for inter-agent communication."""

    RESEARCH_IDEA = "research_idea"
    HYPOTHESIS = "hypothesis"
    RESEARCH_GAPS = "research_gaps"

    LITERATURE_RESULTS = "literature_results"
    RELEVANT_PAPERS = "relevant_papers"
    CITATION_MAP = "citation_map"

    EXPERIMENT_DESIGN = "experiment_design"
    METHODOLOGY = "methodology"
    VARIABLES = "variables"

    ANALYSIS_RESULTS = "analysis_results"
    STATISTICAL_FINDINGS = "statistical_findings"
    VISUALIZATIONS = "visualizations"

    PAPER_DRAFT = "paper_draft"
    ABSTRACT = "abstract"
    SECTIONS = "sections"

    FORMATTED_PAPER = "formatted_paper"
    FORMATTING_ISSUES = "formatting_issues"
    FINAL_DOCUMENT = "final_document"

    TEMP_PREFIX = "temp:"

    @staticmethod
    def temp(key: str) -> str:
        """Build a turn-scoped key that is never persisted."""
        return f"{StateKeys.TEMP_PREFIX}{key}"


class _CamelModel(BaseModel):
    """Accepts camelCase or snake_case input and dumps camelCase by alias."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Agent definitions

class DisplayName(_CamelModel):
    """Localized display name."""

    en: str = Field(min_length=1)
    ko: str = Field(min_length=1)


class Skill(_CamelModel):
    """A capability declared by an agent."""

    name: str = Field(min_length=1)
    description: str = ""
    enabled: bool = True
    config: Optional[Dict[str, Any]] = None


class AgentConfig(_CamelModel):
    """Declarative configuration of a single agent.

    Instances are immutable once loaded.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: str = Field(min_length=1, pattern=AGENT_ID_PATTERN)
    name: str = Field(min_length=1)
    display_name: DisplayName
    description: str = Field(min_length=1)
    instruction: str = ""
    tools: List[str] = Field(default_factory=list)
    skills: List[Skill] = Field(default_factory=list)
    output_key: Optional[str] = None
    model: Optional[str] = None
    timeout: float = Field(default=300.0, gt=0, description="Execution timeout in seconds")
    max_retries: int = Field(default=3, ge=0)
    requires_approval: bool = False
    approval_checkpoints: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    version: str = "1.0.0"
    tags: List[str] = Field(default_factory=list)


# Workflow definitions

WorkflowType = Literal["sequential", "parallel", "loop", "hybrid"]


class WorkflowConfig(_CamelModel):
    """Execution settings attached to a workflow definition."""

    max_iterations: Optional[int] = Field(default=None, gt=0)
    timeout: Optional[float] = Field(default=None, gt=0)
    continue_on_error: bool = False
    approval_gates: List[str] = Field(default_factory=list)
    methodology_specific: Optional[Dict[str, Any]] = None


class AgentReference(_CamelModel):
    """Workflow member referring to a registered agent by id."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    id: str = Field(min_length=1)


class NestedWorkflowReference(_CamelModel):
    """Workflow member that is itself a workflow definition."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    workflow: "WorkflowDefinition"


class WorkflowDefinition(_CamelModel):
    """Declarative description of a workflow and its members."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    type: WorkflowType
    agents: List[Union[AgentReference, NestedWorkflowReference]]
    config: Optional[WorkflowConfig] = None
    merger_agent_id: Optional[str] = None

    def member_ids(self) -> List[str]:
        """Ids of the direct members, nested workflows contributing their own id."""
        return [
            member.workflow.id if isinstance(member, NestedWorkflowReference) else member.id
            for member in self.agents
        ]


NestedWorkflowReference.model_rebuild()


# Execution results

class AgentError(BaseModel):
    """Structured error information captured from a failed agent."""

    name: str
    message: str
    stack: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def from_exception(cls, error: BaseException, code: Optional[str] = None) -> "AgentError":
        import traceback

        stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return cls(
            name=type(error).__name__,
            message=str(error),
            stack=stack,
            code=code,
        )


class TokenUsage(BaseModel):
    """Token counts reported by a model call."""

    input: int = 0
    output: int = 0


class ExecutionMetrics(BaseModel):
    """Metrics about a single agent execution."""

    duration_ms: int = 0
    tool_calls: int = 0
    tokens_used: Optional[TokenUsage] = None
    iterations: Optional[int] = None


class HumanResponse(BaseModel):
    """Decision returned by a human reviewer."""

    approved: bool
    feedback: Optional[str] = None
    modifications: Optional[Dict[str, Any]] = None


class InterventionRecord(BaseModel):
    """Record of a human intervention during a workflow run."""

    agent_id: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    reason: str
    response: HumanResponse


class AgentResult(BaseModel):
    """Outcome of one agent execution.

    ``interventions`` is only filled by nested workflows, so the approvals
    they handled reach the enclosing workflow's result.
    """

    success: bool
    output: Any = None
    summary: str = ""
    error: Optional[AgentError] = None
    metrics: ExecutionMetrics = Field(default_factory=ExecutionMetrics)
    next_agent: Optional[str] = None
    requires_review: bool = False
    interventions: List[InterventionRecord] = Field(default_factory=list)


class WorkflowMetrics(BaseModel):
    """Aggregate metrics of a workflow run."""

    total_duration_ms: int = 0
    agent_count: int = 0
    successful_agents: int = 0
    failed_agents: int = 0
    human_interventions: int = 0
    total_iterations: Optional[int] = None


class WorkflowResult(BaseModel):
    """Uniform result produced by every workflow strategy."""

    success: bool
    output: Any = None
    agent_results: Dict[str, AgentResult] = Field(default_factory=dict)
    execution_path: List[str] = Field(default_factory=list)
    metrics: WorkflowMetrics = Field(default_factory=WorkflowMetrics)
    interventions: List[InterventionRecord] = Field(default_factory=list)
    error: Optional[str] = None


class ValidationResult(BaseModel):
    """Structural validation outcome of a workflow."""

    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


# Human-in-the-loop exchange

ApprovalType = Literal["proceed", "output", "modification", "critical_decision"]


class ApprovalOption(BaseModel):
    """A selectable option offered to the reviewer."""

    label: str
    description: str = ""
    value: str


class ApprovalRequest(BaseModel):
    """Request for human approval at a checkpoint."""

    agent_id: str
    stage: ResearchStage = ResearchStage.IDEA_BUILDING
    type: ApprovalType = "output"
    summary: str
    content: Any = None
    options: Optional[List[ApprovalOption]] = None
    timeout: Optional[float] = Field(default=None, gt=0, description="Seconds to wait for a decision")


class FeedbackContext(BaseModel):
    """Context passed along with a free-form feedback prompt."""

    agent_id: str
    stage: ResearchStage = ResearchStage.IDEA_BUILDING
    current_output: Any = None


class Notification(BaseModel):
    """Fire-and-forget notification for the human operator."""

    type: Literal["info", "warning", "error", "success"] = "info"
    title: str
    message: str
    agent_id: Optional[str] = None


# Persistence

class SerializedSession(BaseModel):
    """On-disk shape of a persisted session."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: str
    current_stage: ResearchStage = ResearchStage.IDEA_BUILDING
    research_topic: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)
    timestamp: int = 0
