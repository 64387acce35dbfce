"""Registry mapping agent ids to implementations."""

import logging
from typing import Callable, Dict, List, Optional

from .agent import Agent
from .models import AgentConfig

logger = logging.getLogger(__name__)

AgentFactoryFn = Callable[[AgentConfig], Agent]


class AgentRegistry:
    """Holds agent instances and the factories that build them from configs."""

    def __init__(self, default_factory: Optional[AgentFactoryFn] = None):
        """Initialize the registry.

        Args:
            default_factory: Factory used by ``create_from_config`` when no
                factory is registered for a config's id
        """
        self._agents: Dict[str, Agent] = {}
        self._factories: Dict[str, AgentFactoryFn] = {}
        self.default_factory = default_factory

    def register(self, agent: Agent) -> None:
        if agent.id in self._agents:
            logger.warning(f"Replacing registered agent: {agent.id}")
        self._agents[agent.id] = agent

    def register_factory(self, agent_id: str, factory: AgentFactoryFn) -> None:
        self._factories[agent_id] = factory

    def get(self, agent_id: str) -> Optional[Agent]:
        return self._agents.get(agent_id)

    def get_all(self) -> List[Agent]:
        return list(self._agents.values())

    def has(self, agent_id: str) -> bool:
        return agent_id in self._agents

    def unregister(self, agent_id: str) -> bool:
        return self._agents.pop(agent_id, None) is not None

    def get_ids(self) -> List[str]:
        return list(self._agents.keys())

    def get_by_tag(self, tag: str) -> List[Agent]:
        """Agents whose config carries ``tag``."""
        tagged = []
        for agent in self._agents.values():
            config = getattr(agent, "config", None)
            if isinstance(config, AgentConfig) and tag in config.tags:
                tagged.append(agent)
        return tagged

    def create_from_config(self, config: AgentConfig) -> Optional[Agent]:
        """Build and register an agent using its factory.

        Returns:
            The new agent, or None when no factory applies
        """
        factory = self._factories.get(config.id, self.default_factory)
        if factory is None:
            return None

        agent = factory(config)
        self.register(agent)
        logger.info(f"Registered agent: {config.id}")
        return agent

    def __len__(self) -> int:
        return len(self._agents)

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._agents
