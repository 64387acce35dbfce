"""Agent contract and config-driven base implementation.

Every pipeline step implements :class:`Agent`. :class:`BaseAgent` provides
the standard execution lifecycle:

1. before hook
2. instruction interpolation from session state
3. agent-specific work
4. publishing the output under ``output_key``
5. review flag computation
6. after hook

Any exception is turned into a failed :class:`AgentResult`; ``execute``
never raises.
"""

import json
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Protocol, runtime_checkable

from .context import AgentContext
from .models import AgentConfig, AgentError, AgentResult, DisplayName, ExecutionMetrics, Skill

_PLACEHOLDER = re.compile(r"\{([^}]+)\}")


def interpolate(template: str, lookup: Callable[[str], Any]) -> str:
    """Replace ``{key}`` placeholders using ``lookup``.

    Strings are inserted verbatim, other values as JSON. Placeholders whose
    lookup returns ``None`` are left untouched.
    """

    def _substitute(match: "re.Match[str]") -> str:
        value = lookup(match.group(1))
        if value is None:
            return match.group(0)
        if isinstance(value, str):
            return value
        return json.dumps(value, default=str, ensure_ascii=False)

    return _PLACEHOLDER.sub(_substitute, template)


@runtime_checkable
class Agent(Protocol):
    """Unit-of-work contract consumed by every workflow strategy."""

    id: str
    name: str
    description: str
    instruction: str
    output_key: Optional[str]

    async def execute(self, context: AgentContext) -> AgentResult: ...

    def can_handle(self, task: str) -> bool: ...


@dataclass
class AgentHooks:
    """Optional lifecycle callbacks."""

    before_execute: Optional[Callable[[AgentContext], Awaitable[None]]] = None
    after_execute: Optional[Callable[[AgentContext, AgentResult], Awaitable[None]]] = None
    on_error: Optional[Callable[[AgentContext, BaseException], Awaitable[None]]] = None


class BaseAgent(ABC):
    """Base class for configured agents."""

    def __init__(self, config: AgentConfig):
        self.config = config
        self.id = config.id
        self.name = config.name
        self.display_name: DisplayName = config.display_name
        self.description = config.description
        self.instruction = config.instruction
        self.tools: List[str] = list(config.tools)
        self.skills: List[Skill] = list(config.skills)
        self.output_key = config.output_key
        self.model = config.model
        self.hooks = AgentHooks()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"

    async def execute(self, context: AgentContext) -> AgentResult:
        """Run the agent and return a structured result."""
        started = time.monotonic()

        try:
            if self.hooks.before_execute:
                await self.hooks.before_execute(context)

            instruction = self.interpolate_instruction(context)
            context.logger.info(f"Agent {self.id} starting execution")

            output = await self.run(context, instruction)

            if self.output_key:
                context.state.set(self.output_key, output)

            result = AgentResult(
                success=True,
                output=output,
                summary=self.summarize(output),
                metrics=ExecutionMetrics(
                    duration_ms=_elapsed_ms(started),
                    tool_calls=context.invocation.tool_calls,
                    tokens_used=context.invocation.tokens_used,
                ),
                next_agent=context.invocation.actions.transfer_to,
                requires_review=self.should_request_review(output, context),
            )

            if self.hooks.after_execute:
                await self.hooks.after_execute(context, result)

            context.logger.info(f"Agent {self.id} completed successfully")
            return result

        except Exception as e:
            if self.hooks.on_error:
                try:
                    await self.hooks.on_error(context, e)
                except Exception as hook_error:
                    context.logger.error(f"Error hook of agent {self.id} failed: {hook_error}")

            context.logger.error(f"Agent {self.id} failed: {e}")
            return AgentResult(
                success=False,
                output=None,
                summary=f"Agent {self.id} failed: {e}",
                error=AgentError.from_exception(e),
                metrics=ExecutionMetrics(duration_ms=_elapsed_ms(started), tool_calls=0),
                requires_review=False,
            )

    def interpolate_instruction(self, context: AgentContext) -> str:
        return interpolate(self.instruction, lambda key: context.state.get(key))

    def can_handle(self, task: str) -> bool:
        """Coarse routing hint: any task word found in the description."""
        description = self.description.lower()
        return any(keyword in description for keyword in task.lower().split())

    def set_hooks(
        self,
        before_execute: Optional[Callable[[AgentContext], Awaitable[None]]] = None,
        after_execute: Optional[Callable[[AgentContext, AgentResult], Awaitable[None]]] = None,
        on_error: Optional[Callable[[AgentContext, BaseException], Awaitable[None]]] = None,
    ) -> None:
        """Merge the given hooks into the existing ones."""
        if before_execute is not None:
            self.hooks.before_execute = before_execute
        if after_execute is not None:
            self.hooks.after_execute = after_execute
        if on_error is not None:
            self.hooks.on_error = on_error

    @abstractmethod
    async def run(self, context: AgentContext, instruction: str) -> Any:
        """Agent-specific work; returns the output payload."""

    def summarize(self, output: Any) -> str:
        """Human-readable summary of ``output``."""
        text = output if isinstance(output, str) else json.dumps(output, default=str, ensure_ascii=False)
        if len(text) > 200:
            text = text[:197] + "..."
        return f"{self.name}: {text}"

    def should_request_review(self, output: Any, context: AgentContext) -> bool:
        return self.config.requires_approval


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
