"""Agents backed by plain Python callables."""

import inspect
from typing import Any, Callable, Optional, Union

from ..core.agent import BaseAgent
from ..core.context import AgentContext
from ..core.models import AgentConfig, DisplayName

AgentFunction = Callable[[AgentContext, str], Any]


class FunctionAgent(BaseAgent):
    """Runs ``fn(context, instruction)`` as the agent's work.

    ``fn`` may be a regular function or a coroutine function. Its return
    value becomes the agent output.
    """

    def __init__(
        self,
        config: Union[AgentConfig, str],
        fn: AgentFunction,
        output_key: Optional[str] = None,
        requires_approval: bool = False,
    ):
        if isinstance(config, str):
            config = AgentConfig(
                id=config,
                name=config,
                display_name=DisplayName(en=config, ko=config),
                description=fn.__doc__.strip() if fn.__doc__ else config,
                output_key=output_key,
                requires_approval=requires_approval,
            )
        super().__init__(config)
        self.fn = fn

    async def run(self, context: AgentContext, instruction: str) -> Any:
        result = self.fn(context, instruction)
        if inspect.isawaitable(result):
            result = await result
        return result
