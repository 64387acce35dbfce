"""Basic usage example for Stageflow.

This example demonstrates:
1. Registering agents (plain functions here, LLM agents in production)
2. Running the default research workflow with console approvals
3. Resuming a session after a rejection
4. Running a nested hybrid workflow with a parallel fan-out
"""

import asyncio
import sys
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from stageflow import (
    ConsoleInterventionHandler,
    FunctionAgent,
    PipelineManager,
    Settings,
    StateKeys,
    WorkflowDefinition,
)

STAGE_OUTPUT_KEYS = {
    "idea-building": StateKeys.RESEARCH_IDEA,
    "literature-search": StateKeys.LITERATURE_RESULTS,
    "experiment-design": StateKeys.EXPERIMENT_DESIGN,
    "data-analysis": StateKeys.ANALYSIS_RESULTS,
    "paper-writing": StateKeys.PAPER_DRAFT,
    "formatting-review": StateKeys.FINAL_DOCUMENT,
}


def stage_agent(agent_id: str) -> FunctionAgent:
    """Stand-in research stage that echoes what it received."""

    async def work(context, instruction):
        await asyncio.sleep(0.1)
        return {"stage": agent_id, "input": context.invocation.input}

    return FunctionAgent(agent_id, work, output_key=STAGE_OUTPUT_KEYS.get(agent_id))


async def main():
    """Main example function."""
    settings = Settings.from_environment()
    settings.setup_logging()

    manager = PipelineManager(settings=settings, handler=ConsoleInterventionHandler())
    for agent_id in [*STAGE_OUTPUT_KEYS, "web-search", "news-search", "merge-findings"]:
        manager.register_agent(stage_agent(agent_id))

    try:
        await manager.initialize()
        print("✅ Pipeline manager initialized")

        # Example 1: Default research workflow
        print("\n📋 Example 1: Running the default research workflow")
        print("-" * 50)

        result = await manager.run_research_workflow(
            "Effects of sleep on memory consolidation",
            session_id="demo-research",
        )
        print(f"Success: {result.success}")
        print(f"Path: {' -> '.join(result.execution_path)}")
        print(f"Interventions: {result.metrics.human_interventions}")
        if result.error:
            print(f"Stopped: {result.error}")

        # Example 2: Resume the same session
        if not result.success:
            print("\n🔄 Example 2: Resuming the session")
            print("-" * 50)
            result = await manager.run_research_workflow(
                "Effects of sleep on memory consolidation",
                session_id="demo-research",
            )
            print(f"Success after resume: {result.success}")

        # Example 3: Hybrid workflow with a parallel fan-out
        print("\n🔀 Example 3: Hybrid workflow with nested parallel retrieval")
        print("-" * 50)

        definition = WorkflowDefinition.model_validate({
            "id": "retrieve-and-write",
            "name": "Retrieve and Write",
            "type": "hybrid",
            "agents": [
                {"id": "idea-building"},
                {"workflow": {
                    "id": "retrieval",
                    "name": "Parallel Retrieval",
                    "type": "parallel",
                    "agents": [{"id": "web-search"}, {"id": "news-search"}],
                    "mergerAgentId": "merge-findings",
                }},
                {"id": "paper-writing"},
            ],
        })
        result = await manager.engine.execute_workflow(definition, {"topic": "sleep"})
        print(f"Path: {' -> '.join(result.execution_path)}")
        print(f"Agents run: {result.metrics.agent_count}")

    finally:
        await manager.close()
        print("\n✅ Pipeline manager closed")


if __name__ == "__main__":
    print("🚀 Stageflow - Basic Usage Example")
    print("=" * 60)

    asyncio.run(main())
