"""Approval gate configuration and registry.

A gate marks an agent whose output (or start) needs a human decision.
Gates are keyed by agent id; unknown ids are simply not gated.
"""

from typing import Any, Callable, Dict, Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.context import AgentContext
from ..core.models import ResearchStage

GateTrigger = Literal["before", "after"]
GateApprovalType = Literal["proceed", "review_output", "edit_output"]
TimeoutBehavior = Literal["approve", "reject", "pause"]


class GateConfig(BaseModel):
    """Configuration of one approval gate."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(min_length=1, description="Gate id, usually the agent id")
    name: str
    trigger: GateTrigger = "after"
    required: bool = True
    condition: Optional[Callable[[AgentContext], bool]] = Field(default=None, exclude=True)
    approval_type: GateApprovalType = "review_output"
    prompt: Optional[str] = None
    workflow_ids: Optional[List[str]] = None
    auto_approve_after: Optional[float] = Field(
        default=None, gt=0, description="Seconds to wait before applying timeout_behavior"
    )
    timeout_behavior: TimeoutBehavior = "approve"


DEFAULT_RESEARCH_GATES: List[GateConfig] = [
    GateConfig(
        id="experiment-design",
        name="Experiment Design Review",
        trigger="after",
        required=True,
        approval_type="review_output",
        prompt="Please review the proposed experiment design before proceeding to data analysis.",
    ),
    GateConfig(
        id="paper-writing",
        name="Paper Draft Review",
        trigger="after",
        required=True,
        approval_type="edit_output",
        prompt="Please review and optionally edit the paper draft before final formatting.",
    ),
    GateConfig(
        id="formatting-review",
        name="Final Submission Review",
        trigger="after",
        required=True,
        approval_type="review_output",
        prompt="Please review the final formatted document before completion.",
    ),
]


class ApprovalGateRegistry:
    """Lookup from agent id to gate configuration."""

    def __init__(self, gates: Optional[Iterable[GateConfig]] = None):
        """Initialize the registry.

        Args:
            gates: Initial gates (defaults to the research pipeline gates)
        """
        self._gates: Dict[str, GateConfig] = {}
        for gate in DEFAULT_RESEARCH_GATES if gates is None else gates:
            self._gates[gate.id] = gate

    def register(self, gate: GateConfig) -> None:
        self._gates[gate.id] = gate

    def unregister(self, gate_id: str) -> bool:
        return self._gates.pop(gate_id, None) is not None

    def get(self, agent_id: str) -> Optional[GateConfig]:
        return self._gates.get(agent_id)

    def get_all(self) -> List[GateConfig]:
        return list(self._gates.values())

    def get_for_workflow(self, workflow_id: str) -> List[GateConfig]:
        """Gates scoped to ``workflow_id`` plus unscoped gates."""
        return [
            gate for gate in self._gates.values()
            if gate.workflow_ids is None or workflow_id in gate.workflow_ids
        ]

    def get_by_trigger(self, trigger: GateTrigger) -> List[GateConfig]:
        return [gate for gate in self._gates.values() if gate.trigger == trigger]

    def update(self, gate_id: str, **updates: Any) -> bool:
        existing = self._gates.get(gate_id)
        if existing is None:
            return False
        self._gates[gate_id] = existing.model_copy(update=updates)
        return True

    def is_approval_required(self, agent_id: str, context: AgentContext) -> bool:
        """Evaluate the gate's condition if present, else its ``required`` flag."""
        gate = self._gates.get(agent_id)
        if gate is None:
            return False
        if gate.condition is not None:
            return bool(gate.condition(context))
        return gate.required

    def create_prompt(self, gate: GateConfig, stage: Union[ResearchStage, str]) -> str:
        if gate.prompt:
            return gate.prompt

        stage_name = stage.value if isinstance(stage, ResearchStage) else stage
        if gate.approval_type == "proceed":
            return f"Ready to proceed to the next stage after {stage_name}?"
        if gate.approval_type == "review_output":
            return f"Please review the output from {stage_name}."
        if gate.approval_type == "edit_output":
            return f"Please review and edit the output from {stage_name} if needed."
        return f"Approval required for {stage_name}."

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._gates

    def __len__(self) -> int:
        return len(self._gates)
