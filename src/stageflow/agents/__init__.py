"""Concrete agent implementations."""

from .function import FunctionAgent
from .llm import AgentFactory, LLMAgent

__all__ = [
    "AgentFactory",
    "FunctionAgent",
    "LLMAgent",
]
