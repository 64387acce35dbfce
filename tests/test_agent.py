"""Tests for the agent contract and BaseAgent lifecycle."""

import pytest

from stageflow.agents import FunctionAgent
from stageflow.core import (
    AgentConfig,
    AgentRegistry,
    BaseAgent,
    DisplayName,
    interpolate,
)


def _config(**overrides) -> AgentConfig:
    values = dict(
        id="idea-building",
        name="Idea Builder",
        display_name=DisplayName(en="Idea Building", ko="아이디어 빌딩"),
        description="Builds research ideas and hypothesis candidates",
        instruction="Topic: {topic}. Gaps: {research_gaps}. Missing: {unknown}",
        output_key="research_idea",
    )
    values.update(overrides)
    return AgentConfig(**values)


class EchoAgent(BaseAgent):
    """Returns the instruction it received."""

    async def run(self, context, instruction):
        return instruction


class FailingAgent(BaseAgent):
    async def run(self, context, instruction):
        raise RuntimeError("model unavailable")


def test_interpolate_substitutes_strings_and_json():
    """Strings are inserted verbatim, other values as JSON, unknown keys untouched."""
    values = {"topic": "sleep", "gaps": ["a", "b"], "count": 3}
    result = interpolate("{topic} {gaps} {count} {missing}", values.get)
    assert result == 'sleep ["a", "b"] 3 {missing}'


@pytest.mark.asyncio
async def test_execute_interpolates_and_publishes_output(make_context):
    """Instruction placeholders resolve from state and output lands under output_key."""
    context = make_context()
    context.state.set("topic", "sleep and memory")
    context.state.set("research_gaps", ["older adults"])

    agent = EchoAgent(_config())
    result = await agent.execute(context)

    assert result.success
    assert result.output == 'Topic: sleep and memory. Gaps: ["older adults"]. Missing: {unknown}'
    assert context.state.get("research_idea") == result.output
    assert result.summary.startswith("Idea Builder: ")
    assert result.requires_review is False


@pytest.mark.asyncio
async def test_requires_review_mirrors_config(make_context):
    """The review flag defaults to the configured requires_approval."""
    agent = EchoAgent(_config(requires_approval=True))
    result = await agent.execute(make_context())
    assert result.requires_review is True


@pytest.mark.asyncio
async def test_execute_never_raises(make_context):
    """Errors become a failed result and run the error hook."""
    seen = []

    async def on_error(context, error):
        seen.append(str(error))

    agent = FailingAgent(_config())
    agent.set_hooks(on_error=on_error)
    context = make_context()

    result = await agent.execute(context)

    assert not result.success
    assert result.output is None
    assert result.error.name == "RuntimeError"
    assert result.error.message == "model unavailable"
    assert result.metrics.tool_calls == 0
    assert seen == ["model unavailable"]
    assert not context.state.has("research_idea")


@pytest.mark.asyncio
async def test_hooks_run_around_execution(make_context):
    """Before and after hooks wrap the agent's work."""
    order = []

    async def before(context):
        order.append("before")

    async def after(context, result):
        order.append(f"after:{result.success}")

    agent = EchoAgent(_config())
    agent.set_hooks(before_execute=before, after_execute=after)
    await agent.execute(make_context())

    assert order == ["before", "after:True"]


@pytest.mark.asyncio
async def test_invocation_counters_flow_into_metrics(make_context):
    """Tool calls and transfer requests recorded on the invocation reach the result."""

    def work(context, instruction):
        context.invocation.tool_calls += 2
        context.invocation.actions.transfer_to = "literature-search"
        return {"ideas": 3}

    agent = FunctionAgent("idea-building", work)
    result = await agent.execute(make_context())

    assert result.metrics.tool_calls == 2
    assert result.next_agent == "literature-search"
    assert result.output == {"ideas": 3}


def test_can_handle_matches_description_words():
    agent = EchoAgent(_config())
    assert agent.can_handle("generate a HYPOTHESIS")
    assert not agent.can_handle("format citations")


def test_agent_config_rejects_uppercase_id():
    with pytest.raises(ValueError):
        _config(id="Idea_Building")


def test_registry_lookup_and_tags():
    registry = AgentRegistry()
    tagged = EchoAgent(_config(tags=["research"]))
    registry.register(tagged)
    registry.register(FunctionAgent("merger", lambda context, instruction: None))

    assert registry.has("idea-building")
    assert "merger" in registry
    assert registry.get_by_tag("research") == [tagged]
    assert set(registry.get_ids()) == {"idea-building", "merger"}
    assert registry.unregister("merger")
    assert registry.get("merger") is None


def test_registry_creates_from_config_with_factory():
    registry = AgentRegistry()
    assert registry.create_from_config(_config()) is None

    registry.register_factory("idea-building", EchoAgent)
    agent = registry.create_from_config(_config())
    assert isinstance(agent, EchoAgent)
    assert registry.get("idea-building") is agent
