"""Parallel workflow: fan out to every member, then gather.

All branches share the session state. Writes to the same key from
different branches are not coordinated; the last write wins.
"""

import asyncio
from typing import Dict, List, Optional, Tuple

from ..core.agent import Agent
from ..core.context import WorkflowContext
from ..core.models import AgentResult, ValidationResult, WorkflowConfig, WorkflowResult
from .base import BaseWorkflow, failure_message


class ParallelWorkflow(BaseWorkflow):
    """Runs all members concurrently, optionally reducing with a merger agent."""

    type = "parallel"

    def __init__(
        self,
        id: str,
        name: str,
        agents: List[Agent],
        config: Optional[WorkflowConfig] = None,
        merger_agent: Optional[Agent] = None,
    ):
        super().__init__(id, name, agents, config)
        self.merger_agent = merger_agent

    def validate(self) -> ValidationResult:
        validation = super().validate()
        if self.merger_agent is not None and self.find_agent(self.merger_agent.id) is not None:
            validation.warnings.append(f"Merger agent is also a branch: {self.merger_agent.id}")
        return validation

    async def _run_branch(self, context: WorkflowContext, agent: Agent) -> Tuple[str, AgentResult]:
        parent_branch = context.invocation.branch or "main"
        branch_context = self.child_context(context, branch=f"{parent_branch}.{agent.id}")

        context.logger.info(f"Parallel branch starting: {agent.id}")
        try:
            result = await agent.execute(branch_context)
        except Exception as e:
            context.logger.error(f"Parallel branch {agent.id} raised: {e}")
            return agent.id, self.create_error_result(e)

        if result.success and agent.output_key:
            context.state.set(agent.output_key, result.output)
        return agent.id, result

    async def run(self, context: WorkflowContext) -> WorkflowResult:
        execution_path = ["parallel_start"]
        agent_results: Dict[str, AgentResult] = {}

        context.logger.info(f"Starting parallel execution of {len(self.agents)} agents")
        execution_path.extend(f"branch:{agent.id}" for agent in self.agents)

        outcomes = await asyncio.gather(*(self._run_branch(context, agent) for agent in self.agents))
        for agent_id, result in outcomes:
            agent_results[agent_id] = result

        execution_path.append("parallel_complete")
        context.logger.info("All parallel branches completed")

        outputs = {agent_id: result.output for agent_id, result in agent_results.items()}

        if self.merger_agent is not None:
            execution_path.append(f"merge:{self.merger_agent.id}")
            merger_context = self.child_context(context, input=outputs)
            try:
                merge_result = await self.merger_agent.execute(merger_context)
            except Exception as e:
                merge_result = self.create_error_result(e)
            agent_results[self.merger_agent.id] = merge_result
            return self.create_result(
                merge_result.success,
                agent_results,
                execution_path,
                error=None if merge_result.success else failure_message(merge_result),
                output=merge_result.output,
            )

        failed = [agent_id for agent_id, result in agent_results.items() if not result.success]
        if failed and not self.config.continue_on_error:
            return self.create_result(
                False,
                agent_results,
                execution_path,
                error=f"Parallel branches failed: {', '.join(failed)}",
                output=outputs,
            )

        return self.create_result(True, agent_results, execution_path, output=outputs)
