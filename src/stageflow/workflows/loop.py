"""Loop workflow: the whole member list repeats as one iteration.

Pattern: repeat (Agent A -> Agent B) until a termination condition holds,
a member escalates, or ``max_iterations`` is reached.
"""

import inspect
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from ..core.agent import Agent
from ..core.context import WorkflowContext
from ..core.models import AgentResult, WorkflowConfig, WorkflowResult
from .base import BaseWorkflow, failure_message, merge_modifications

DEFAULT_MAX_ITERATIONS = 10

TerminationCondition = Callable[[WorkflowContext, int], Union[bool, Awaitable[bool]]]


class LoopWorkflow(BaseWorkflow):
    """Iterates its members until one of the exit conditions is met.

    Exit markers recorded in the execution path:
    - ``escalate_exit``: a member set the escalate action
    - ``condition_exit``: the termination condition returned true
    - ``max_iterations_reached``: the iteration budget ran out
    - ``aborted``: the abort signal was set
    """

    type = "loop"

    def __init__(
        self,
        id: str,
        name: str,
        agents: List[Agent],
        config: Optional[WorkflowConfig] = None,
        termination_condition: Optional[TerminationCondition] = None,
    ):
        super().__init__(id, name, agents, config)
        self.termination_condition = termination_condition

    def set_termination_condition(self, condition: TerminationCondition) -> None:
        self.termination_condition = condition

    async def _should_terminate(self, context: WorkflowContext, iteration: int) -> bool:
        if self.termination_condition is None:
            return False
        verdict = self.termination_condition(context, iteration)
        if inspect.isawaitable(verdict):
            verdict = await verdict
        return bool(verdict)

    async def run(self, context: WorkflowContext) -> WorkflowResult:
        max_iterations = self.config.max_iterations or DEFAULT_MAX_ITERATIONS
        execution_path = []
        agent_results: Dict[str, AgentResult] = {}
        current_output: Any = context.invocation.input
        iteration = 0
        exited_early = False

        context.logger.info(f"Starting loop workflow {self.id} with max {max_iterations} iterations")

        while iteration < max_iterations:
            if context.signal.aborted:
                context.logger.info(f"Loop workflow {self.id} aborted")
                execution_path.append("aborted")
                exited_early = True
                break

            iteration += 1
            execution_path.append(f"iteration_{iteration}")
            context.logger.info(f"Loop iteration {iteration}")

            for agent in self.agents:
                result_key = f"{agent.id}_iter{iteration}"
                execution_path.append(result_key)
                iteration_context = self.child_context(context, input=current_output, iteration=iteration)

                try:
                    result = await agent.execute(iteration_context)
                except Exception as e:
                    agent_results[result_key] = self.create_error_result(e)
                    if not self.config.continue_on_error:
                        raise
                    context.logger.warning(f"Agent {agent.id} raised in iteration {iteration}, continuing: {e}")
                    continue

                agent_results[result_key] = result

                if not result.success:
                    if not self.config.continue_on_error:
                        return self.create_result(
                            False,
                            agent_results,
                            execution_path,
                            error=failure_message(result),
                            total_iterations=iteration,
                        )
                    continue

                if agent.output_key:
                    context.state.set(agent.output_key, result.output)
                current_output = result.output

                if iteration_context.invocation.actions.escalate:
                    context.logger.info(f"Escalate signal from {agent.id}, exiting loop")
                    execution_path.append("escalate_exit")
                    return self.create_result(
                        True,
                        agent_results,
                        execution_path,
                        output=current_output,
                        total_iterations=iteration,
                    )

                if result.requires_review:
                    approval = await self.request_approval(context, agent, result.output)
                    if not approval.approved:
                        reason = approval.feedback or "Human rejected"
                        return self.create_result(
                            False,
                            agent_results,
                            execution_path,
                            error=f"Rejected at {agent.id}: {reason}",
                            total_iterations=iteration,
                        )
                    if approval.modifications:
                        current_output = merge_modifications(current_output, approval.modifications)

            if await self._should_terminate(context, iteration):
                context.logger.info(f"Termination condition met after iteration {iteration}")
                execution_path.append("condition_exit")
                exited_early = True
                break

        if not exited_early:
            execution_path.append("max_iterations_reached")
            context.logger.warning(f"Max iterations ({max_iterations}) reached")

        return self.create_result(
            True,
            agent_results,
            execution_path,
            output=current_output,
            total_iterations=iteration,
        )
