"""Tests for the workflow engine and the pipeline manager facade."""

import asyncio

import pytest

from stageflow import PipelineManager, Settings
from stageflow.agents import FunctionAgent
from stageflow.core import (
    AbortController,
    AgentNotFoundError,
    AgentRegistry,
    ExecutionOptions,
    HumanResponse,
    WorkflowDefinition,
    WorkflowValidationError,
)
from stageflow.hitl import InterventionManager
from stageflow.orchestration import WorkflowEngine
from stageflow.state import MemoryPersistenceAdapter, StateManager

RESEARCH_IDS = [
    "idea-building",
    "literature-search",
    "experiment-design",
    "data-analysis",
    "paper-writing",
    "formatting-review",
]


def _definition(**values) -> WorkflowDefinition:
    data = {"id": "wf", "name": "Workflow", "type": "sequential", "agents": [{"id": "a"}, {"id": "b"}]}
    data.update(values)
    return WorkflowDefinition.model_validate(data)


@pytest.fixture
def adapter():
    return MemoryPersistenceAdapter()


@pytest.fixture
def registry(make_agent):
    registry = AgentRegistry()
    for agent_id in ["a", "b", "c", "merger", *RESEARCH_IDS]:
        registry.register(make_agent(agent_id, output_key=f"{agent_id}_out"))
    return registry


@pytest.fixture
def engine(adapter, registry):
    return WorkflowEngine(StateManager(adapter), registry, hitl=InterventionManager(auto_approve=True))


@pytest.mark.asyncio
async def test_executes_and_persists_session(engine, adapter):
    result = await engine.execute_workflow(
        _definition(), "input", ExecutionOptions(session_id="run-1", research_topic="sleep")
    )

    assert result.success
    assert result.execution_path == ["a", "b"]
    snapshot = await adapter.load("run-1")
    assert snapshot.research_topic == "sleep"
    assert snapshot.data["b_out"] == "b-output"
    assert engine.get_active_workflows() == []


@pytest.mark.asyncio
async def test_unknown_agent_fails_fast(engine):
    with pytest.raises(AgentNotFoundError) as exc_info:
        await engine.execute_workflow(_definition(agents=[{"id": "a"}, {"id": "ghost"}]))
    assert exc_info.value.agent_id == "ghost"


@pytest.mark.asyncio
async def test_unknown_merger_fails_fast(engine):
    with pytest.raises(AgentNotFoundError):
        await engine.execute_workflow(_definition(type="parallel", mergerAgentId="nobody"))


@pytest.mark.asyncio
async def test_structural_errors_block_execution(engine, calls):
    with pytest.raises(WorkflowValidationError) as exc_info:
        await engine.execute_workflow(_definition(agents=[{"id": "a"}, {"id": "a"}]))
    assert exc_info.value.errors == ["Duplicate agent ID: a"]
    assert calls == []

    with pytest.raises(WorkflowValidationError):
        await engine.execute_workflow(_definition(agents=[]))


@pytest.mark.asyncio
async def test_unknown_gate_is_only_a_warning(engine, caplog):
    result = await engine.execute_workflow(_definition(config={"approvalGates": ["zzz"]}))
    assert result.success
    assert "Approval gate references unknown agent: zzz" in caplog.text


@pytest.mark.asyncio
async def test_persists_even_when_strategy_raises(adapter, registry):
    class Exploding:
        id = "exploding"
        name = "Exploding"
        output_key = None

        async def execute(self, context):
            context.state.set("touched", True)
            raise RuntimeError("unexpected")

    registry.register(Exploding())
    engine = WorkflowEngine(StateManager(adapter), registry)

    with pytest.raises(RuntimeError):
        await engine.execute_workflow(
            _definition(agents=[{"id": "exploding"}]), options=ExecutionOptions(session_id="crash")
        )

    snapshot = await adapter.load("crash")
    assert snapshot.data == {"touched": True}
    assert engine.get_active_workflows() == []


@pytest.mark.asyncio
async def test_nested_hybrid_definition(engine, calls):
    definition = _definition(
        type="hybrid",
        agents=[
            {"id": "a"},
            {"workflow": {
                "id": "fanout",
                "name": "Fan-out",
                "type": "parallel",
                "agents": [{"id": "b"}, {"id": "c"}],
                "mergerAgentId": "merger",
            }},
        ],
    )

    result = await engine.execute_workflow(definition)

    assert result.success
    assert result.execution_path == ["a", "fanout"]
    assert result.output == "merger-output"
    assert calls[0] == "a" and calls[-1] == "merger"


@pytest.mark.asyncio
async def test_registered_termination_condition_reaches_loop(engine, calls):
    engine.register_termination_condition("loop-wf", lambda context, iteration: iteration == 2)
    definition = _definition(id="loop-wf", type="loop", agents=[{"id": "a"}], config={"maxIterations": 5})

    result = await engine.execute_workflow(definition)

    assert result.metrics.total_iterations == 2
    assert result.execution_path[-1] == "condition_exit"


@pytest.mark.asyncio
async def test_workflow_timeout_aborts_run(adapter):
    async def slow(context, instruction):
        await asyncio.sleep(1.0)

    registry = AgentRegistry()
    registry.register(FunctionAgent("slow", slow))
    engine = WorkflowEngine(StateManager(adapter), registry)

    controller = AbortController()
    result = await engine.execute_workflow(
        _definition(agents=[{"id": "slow"}]),
        options=ExecutionOptions(session_id="slow-run", timeout=0.01, abort_controller=controller),
    )

    assert not result.success
    assert "timed out" in result.error
    assert controller.signal.aborted
    assert await adapter.load("slow-run") is not None


@pytest.mark.asyncio
async def test_timeout_during_approval_resolves_pending_record(registry, make_handler):
    hitl = InterventionManager(handler=make_handler(delay=5.0))
    engine = WorkflowEngine(StateManager(MemoryPersistenceAdapter()), registry, hitl=hitl)

    result = await engine.execute_workflow(
        _definition(config={"approvalGates": ["a"]}),
        options=ExecutionOptions(timeout=0.1),
    )

    assert not result.success
    assert result.execution_path == ["timeout"]
    assert hitl.get_pending_approvals() == []
    [record] = hitl.get_history()
    assert record.status == "cancelled"
    assert record.resolved_at is not None


@pytest.mark.asyncio
async def test_cancel_workflow_only_for_active_runs(engine, make_agent, registry):
    seen = []

    def cancel_self(context):
        seen.append(engine.cancel_workflow("wf"))

    registry.register(make_agent("canceller", before=cancel_self))
    await engine.execute_workflow(_definition(agents=[{"id": "canceller"}]))

    assert seen == [True]
    assert engine.cancel_workflow("wf") is False


def test_default_research_workflow(engine):
    definition = engine.get_default_research_workflow()

    assert definition.type == "sequential"
    assert definition.member_ids() == RESEARCH_IDS
    assert definition.config.approval_gates == ["experiment-design", "paper-writing", "formatting-review"]


def test_methodology_selection(engine):
    review = engine.get_workflow_for_methodology("scoping-review")
    assert review.id == "literature-review"
    assert "experiment-design" not in review.member_ids()
    assert review.config.methodology_specific["subtype"] == "scoping-review"

    assert engine.get_workflow_for_methodology("survey").id == "quantitative-research"
    assert engine.get_workflow_for_methodology("ethnography").id == "qualitative-research"
    assert engine.get_workflow_for_methodology("delphi-method").type == "hybrid"
    assert engine.get_workflow_for_methodology("astrology").id == "default-research"


@pytest.mark.asyncio
async def test_pipeline_manager_runs_research_workflow(registry, make_handler, tmp_path):
    handler = make_handler([
        HumanResponse(approved=True),
        HumanResponse(approved=True, modifications={"title": "Sleep and Memory"}),
        HumanResponse(approved=True),
    ])
    settings = Settings(config_dir=str(tmp_path / "config"), persistence="memory")
    manager = PipelineManager(settings=settings, handler=handler, registry=registry)

    try:
        result = await manager.run_research_workflow("sleep and memory", session_id="research-1")
    finally:
        await manager.close()

    assert result.success
    assert result.execution_path == RESEARCH_IDS
    assert result.metrics.human_interventions == 3
    assert [request.agent_id for request in handler.requests] == [
        "experiment-design", "paper-writing", "formatting-review"
    ]
    snapshot = await manager.adapter.load("research-1")
    assert snapshot.research_topic == "sleep and memory"


@pytest.mark.asyncio
async def test_pipeline_manager_rejection(registry, make_handler, tmp_path):
    handler = make_handler([HumanResponse(approved=False, feedback="rethink design")])
    settings = Settings(config_dir=str(tmp_path / "config"), persistence="memory")
    manager = PipelineManager(settings=settings, handler=handler, registry=registry)

    result = await manager.run_research_workflow("sleep and memory")
    await manager.close()

    assert not result.success
    assert result.execution_path == RESEARCH_IDS[:3]
    assert len(result.agent_results) == 2
