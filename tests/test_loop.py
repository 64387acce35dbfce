"""Tests for the loop strategy."""

import pytest

from stageflow.core import AbortController, HumanResponse, WorkflowConfig
from stageflow.hitl import InterventionManager
from stageflow.workflows import LoopWorkflow


@pytest.mark.asyncio
async def test_runs_until_max_iterations(make_agent, make_context, calls):
    """3 iterations of 2 members run 6 invocations and mark the budget exit."""
    workflow = LoopWorkflow(
        "refine", "Refine", [make_agent("draft"), make_agent("critique")], WorkflowConfig(max_iterations=3)
    )

    result = await workflow.execute(make_context())

    assert result.success
    assert len(calls) == 6
    assert result.metrics.total_iterations == 3
    assert "max_iterations_reached" in result.execution_path
    assert "condition_exit" not in result.execution_path
    assert set(result.agent_results) == {
        "draft_iter1", "critique_iter1",
        "draft_iter2", "critique_iter2",
        "draft_iter3", "critique_iter3",
    }


@pytest.mark.asyncio
async def test_termination_condition_after_first_iteration(make_agent, make_context, calls):
    workflow = LoopWorkflow(
        "refine",
        "Refine",
        [make_agent("draft"), make_agent("critique")],
        WorkflowConfig(max_iterations=5),
        termination_condition=lambda context, iteration: iteration >= 1,
    )

    result = await workflow.execute(make_context())

    assert result.metrics.total_iterations == 1
    assert result.execution_path[-1] == "condition_exit"
    assert "max_iterations_reached" not in result.execution_path
    assert calls == ["draft", "critique"]


@pytest.mark.asyncio
async def test_async_termination_condition_reads_state(make_agent, make_context):
    async def good_enough(context, iteration):
        return context.state.get("score", 0) >= 2

    def bump(context):
        context.state.set("score", context.state.get("score", 0) + 1)

    workflow = LoopWorkflow("refine", "Refine", [make_agent("scorer", before=bump)])
    workflow.set_termination_condition(good_enough)

    result = await workflow.execute(make_context())

    assert result.metrics.total_iterations == 2
    assert result.execution_path == ["iteration_1", "scorer_iter1", "iteration_2", "scorer_iter2", "condition_exit"]


@pytest.mark.asyncio
async def test_default_max_iterations_is_ten(make_agent, make_context, calls):
    result = await LoopWorkflow("loop", "Loop", [make_agent("step")]).execute(make_context())
    assert result.metrics.total_iterations == 10
    assert len(calls) == 10


@pytest.mark.asyncio
async def test_escalate_exits_mid_iteration(make_agent, make_context, calls):
    def maybe_escalate(context):
        if context.invocation.iteration == 2:
            context.invocation.actions.escalate = True

    workflow = LoopWorkflow(
        "loop",
        "Loop",
        [make_agent("first", before=maybe_escalate), make_agent("second")],
        WorkflowConfig(max_iterations=5),
    )

    result = await workflow.execute(make_context())

    assert result.success
    assert result.execution_path[-1] == "escalate_exit"
    assert result.metrics.total_iterations == 2
    assert calls == ["first", "second", "first"]


@pytest.mark.asyncio
async def test_review_rejection_fails_loop(make_agent, make_context, make_handler):
    handler = make_handler([HumanResponse(approved=True), HumanResponse(approved=False)])
    workflow = LoopWorkflow(
        "loop",
        "Loop",
        [make_agent("reviewed", requires_approval=True)],
        WorkflowConfig(max_iterations=5),
    )

    result = await workflow.execute(make_context(hitl=InterventionManager(handler=handler)))

    assert not result.success
    assert result.metrics.total_iterations == 2
    assert result.metrics.human_interventions == 2
    assert len(handler.requests) == 2


@pytest.mark.asyncio
async def test_member_exception_propagates_without_continue_on_error(make_context):
    class Exploding:
        id = "exploding"
        name = "Exploding"
        output_key = None

        async def execute(self, context):
            raise RuntimeError("crash")

    workflow = LoopWorkflow("loop", "Loop", [Exploding()], WorkflowConfig(max_iterations=2))
    with pytest.raises(RuntimeError):
        await workflow.execute(make_context())

    tolerant = LoopWorkflow(
        "loop", "Loop", [Exploding()], WorkflowConfig(max_iterations=2, continue_on_error=True)
    )
    result = await tolerant.execute(make_context())
    assert result.success
    assert result.metrics.failed_agents == 2
    assert result.output is None


@pytest.mark.asyncio
async def test_failed_member_stops_loop(make_agent, make_context, calls):
    """A member returning a failed result ends the loop when errors are not tolerated."""

    def fail_on_second(context):
        if context.invocation.iteration == 2:
            raise ValueError("score below threshold")
        return "draft"

    workflow = LoopWorkflow(
        "loop",
        "Loop",
        [make_agent("scorer", output=fail_on_second), make_agent("editor")],
        WorkflowConfig(max_iterations=5),
    )

    result = await workflow.execute(make_context())

    assert not result.success
    assert result.error == "score below threshold"
    assert result.metrics.total_iterations == 2
    assert result.execution_path == ["iteration_1", "scorer_iter1", "editor_iter1", "iteration_2", "scorer_iter2"]
    assert calls == ["scorer", "editor", "scorer"]
    assert "max_iterations_reached" not in result.execution_path


@pytest.mark.asyncio
async def test_abort_checked_at_iteration_head(make_agent, make_context, calls):
    controller = AbortController()
    workflow = LoopWorkflow(
        "loop",
        "Loop",
        [make_agent("step", before=lambda context: controller.abort("user cancelled"))],
        WorkflowConfig(max_iterations=5),
    )

    result = await workflow.execute(make_context(controller=controller))

    assert result.success
    assert result.execution_path == ["iteration_1", "step_iter1", "aborted"]
    assert result.metrics.total_iterations == 1
    assert "max_iterations_reached" not in result.execution_path
    assert calls == ["step"]


@pytest.mark.asyncio
async def test_abort_before_first_iteration(make_agent, make_context, calls):
    controller = AbortController()
    controller.abort("stopped early")

    result = await LoopWorkflow("loop", "Loop", [make_agent("step")]).execute(make_context(controller=controller))

    assert result.execution_path == ["aborted"]
    assert result.metrics.total_iterations == 0
    assert calls == []
