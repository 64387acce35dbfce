"""Sequential workflow: members run one after another.

Pattern: Agent A -> Agent B -> Agent C. Each member receives the previous
member's output as its invocation input.
"""

from typing import Any, Dict

from ..core.agent import Agent
from ..core.context import WorkflowContext
from ..core.models import AgentResult, WorkflowResult
from .base import BaseWorkflow, failure_message, merge_modifications


class SequentialWorkflow(BaseWorkflow):
    """Runs members in order with approval gates, escalation and transfer."""

    type = "sequential"

    async def run(self, context: WorkflowContext) -> WorkflowResult:
        execution_path = []
        agent_results: Dict[str, AgentResult] = {}
        current_output: Any = context.invocation.input

        for agent in self.agents:
            if context.signal.aborted:
                context.logger.info(f"Workflow {self.id} aborted: {context.signal.reason or 'no reason given'}")
                execution_path.append("aborted")
                break

            execution_path.append(agent.id)

            if agent.id in self.config.approval_gates:
                approval = await self.request_approval(context, agent, current_output)
                if not approval.approved:
                    reason = approval.feedback or "Human rejected"
                    context.logger.info(f"Approval rejected at {agent.id}: {reason}")
                    return self.create_result(
                        False, agent_results, execution_path, error=f"Rejected at {agent.id}: {reason}"
                    )
                if approval.modifications:
                    current_output = merge_modifications(current_output, approval.modifications)

            agent_context = self.child_context(context, input=current_output)

            try:
                context.logger.info(f"Executing agent: {agent.id}")
                result = await agent.execute(agent_context)
            except Exception as e:
                agent_results[agent.id] = self.create_error_result(e)
                if not self.config.continue_on_error:
                    raise
                context.logger.warning(f"Agent {agent.id} raised, continuing: {e}")
                continue

            agent_results[agent.id] = result

            if not result.success:
                if not self.config.continue_on_error:
                    return self.create_result(
                        False, agent_results, execution_path, error=failure_message(result)
                    )
                context.logger.warning(f"Agent {agent.id} failed, continuing: {failure_message(result)}")
                continue

            self._publish(context, agent, result)
            current_output = result.output

            actions = agent_context.invocation.actions
            if actions.escalate:
                context.logger.info(f"Escalate signal from {agent.id}, terminating workflow")
                execution_path.append("escalate_exit")
                break

            if actions.transfer_to:
                target = self.find_agent(actions.transfer_to)
                if target is None:
                    context.logger.warning(f"Transfer target not found: {actions.transfer_to}")
                    continue

                execution_path.append(f"transfer:{target.id}")
                transfer_context = self.child_context(context, input=current_output)

                try:
                    context.logger.info(f"Transferring from {agent.id} to {target.id}")
                    transfer_result = await target.execute(transfer_context)
                except Exception as e:
                    agent_results[target.id] = self.create_error_result(e)
                    if not self.config.continue_on_error:
                        raise
                    context.logger.warning(f"Transfer target {target.id} raised, continuing: {e}")
                    continue

                agent_results[target.id] = transfer_result

                if not transfer_result.success:
                    if not self.config.continue_on_error:
                        return self.create_result(
                            False, agent_results, execution_path, error=failure_message(transfer_result)
                        )
                    context.logger.warning(
                        f"Transfer target {target.id} failed, continuing: {failure_message(transfer_result)}"
                    )
                    continue

                self._publish(context, target, transfer_result)
                current_output = transfer_result.output

                if transfer_context.invocation.actions.escalate:
                    context.logger.info(f"Escalate signal from {target.id}, terminating workflow")
                    execution_path.append("escalate_exit")
                    break

        return self.create_result(True, agent_results, execution_path)

    @staticmethod
    def _publish(context: WorkflowContext, agent: Agent, result: AgentResult) -> None:
        if agent.output_key:
            context.state.set(agent.output_key, result.output)
