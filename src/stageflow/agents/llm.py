"""LLM-backed agents built on agno.

This module provides:
- AgentFactory for the default OpenAI-compatible chat model
- LLMAgent, which runs an agno Agent as a pipeline step
"""

import json
import logging
import os
from typing import Any, List, Optional

from ..core.agent import BaseAgent
from ..core.context import AgentContext
from ..core.models import AgentConfig, TokenUsage

logger = logging.getLogger(__name__)

DEFAULT_MODEL_ID = "gpt-4o-mini"


class AgentFactory:
    """Factory for creating configured agno agents."""

    @staticmethod
    def _default_openai_chat(model_id: str = DEFAULT_MODEL_ID):
        """Return a standard OpenAIChat model configured via environment variables.

        Args:
            model_id: The model identifier (e.g., "gpt-4o-mini", "gpt-4o")
        """
        from agno.models.openai import OpenAIChat  # Local import to avoid heavy import cost when not needed
        return OpenAIChat(
            id=model_id,
            base_url=os.getenv("BASE_URL"),
            api_key=os.getenv("OPENAI_API_KEY"),
        )

    @staticmethod
    def create_agent(
        config: AgentConfig,
        model: Optional[Any] = None,
        tools: Optional[List[Any]] = None,
    ):
        """Create an agno agent for a pipeline agent config.

        Args:
            config: Pipeline agent configuration
            model: Language model to use (defaults to ``config.model`` or gpt-4o-mini)
            tools: agno toolkits or callables available to the agent

        Returns:
            Configured agno agent
        """
        from agno.agent import Agent

        if model is None:
            model = AgentFactory._default_openai_chat(config.model or DEFAULT_MODEL_ID)

        return Agent(
            name=config.name,
            model=model,
            tools=tools or [],
            description=config.description,
            markdown=True,
        )


class LLMAgent(BaseAgent):
    """Pipeline agent that delegates its work to an agno agent.

    The interpolated instruction is sent as the prompt, followed by the
    invocation input when there is one. Tool calls and token usage are
    copied onto the invocation when the response reports them.
    """

    def __init__(self, config: AgentConfig, agent: Optional[Any] = None, tools: Optional[List[Any]] = None):
        super().__init__(config)
        self._agent = agent
        self._agent_tools = tools

    @property
    def agent(self):
        if self._agent is None:
            self._agent = AgentFactory.create_agent(self.config, tools=self._agent_tools)
        return self._agent

    def build_prompt(self, instruction: str, input: Any) -> str:
        if input is None:
            return instruction
        if not isinstance(input, str):
            input = json.dumps(input, default=str, ensure_ascii=False, indent=2)
        return f"{instruction}\n\nInput:\n{input}"

    async def run(self, context: AgentContext, instruction: str) -> Any:
        prompt = self.build_prompt(instruction, context.invocation.input)
        response = await self.agent.arun(prompt)

        tools = getattr(response, "tools", None)
        if tools:
            context.invocation.tool_calls += len(tools)

        usage = _token_usage(getattr(response, "metrics", None))
        if usage:
            context.invocation.tokens_used = usage

        return response.content if hasattr(response, "content") else str(response)


def _token_usage(metrics: Any) -> Optional[TokenUsage]:
    """Read token counts from an agno metrics object or metrics dict."""
    if metrics is None:
        return None

    if isinstance(metrics, dict):
        input_tokens = metrics.get("input_tokens", 0)
        output_tokens = metrics.get("output_tokens", 0)
    else:
        input_tokens = getattr(metrics, "input_tokens", 0)
        output_tokens = getattr(metrics, "output_tokens", 0)

    # Older agno releases report one entry per model call
    if isinstance(input_tokens, list):
        input_tokens = sum(input_tokens)
    if isinstance(output_tokens, list):
        output_tokens = sum(output_tokens)

    if not input_tokens and not output_tokens:
        return None
    return TokenUsage(input=int(input_tokens or 0), output=int(output_tokens or 0))
