"""Declarative configuration loading.

Agents and workflows are described in YAML files:

    <config_dir>/agents/<agent-id>.yaml
    <config_dir>/workflows/<workflow-id>.yaml

Files are parsed with PyYAML and validated against the pydantic models.
A file that parses but does not validate raises ConfigValidationError
naming the file; malformed YAML raises the parser's own error.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

import yaml
from pydantic import BaseModel, ValidationError

from ..core.errors import StageflowError
from ..core.models import AgentConfig, WorkflowDefinition

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

YAML_SUFFIXES = (".yaml", ".yml")


class ConfigValidationError(StageflowError):
    """A configuration file does not match its schema."""

    def __init__(self, path: Union[str, Path], errors: List[Dict[str, Any]], message: Optional[str] = None):
        self.path = str(path)
        self.errors = errors
        details = "; ".join(
            f"{'.'.join(str(part) for part in error.get('loc', ())) or '<root>'}: {error.get('msg')}"
            for error in errors
        )
        super().__init__(message or f"Invalid configuration in {self.path}: {details}")


class ConfigLoader:
    """Loads, validates, caches and saves agent and workflow definitions."""

    def __init__(self, config_dir: Union[str, Path] = "./config"):
        self.config_dir = Path(config_dir)
        self.agents_dir = self.config_dir / "agents"
        self.workflows_dir = self.config_dir / "workflows"
        self._agent_cache: Dict[str, AgentConfig] = {}
        self._workflow_cache: Dict[str, WorkflowDefinition] = {}

    async def load_all_agents(self) -> Dict[str, AgentConfig]:
        """Load every agent file in the agents directory.

        Invalid files are logged and skipped.
        """
        if not await asyncio.to_thread(self.agents_dir.is_dir):
            logger.warning(f"Agents directory not found: {self.agents_dir}")
            return self._agent_cache

        files = await asyncio.to_thread(lambda: sorted(self.agents_dir.iterdir()))
        for path in files:
            if path.suffix not in YAML_SUFFIXES:
                continue
            try:
                config = await self.load_agent_config(path)
            except (ConfigValidationError, yaml.YAMLError, OSError) as e:
                logger.error(f"Failed to load agent config {path.name}: {e}")
                continue
            self._agent_cache[config.id] = config

        logger.info(f"Loaded {len(self._agent_cache)} agent configs from {self.agents_dir}")
        return self._agent_cache

    async def load_agent_config(self, path: Union[str, Path]) -> AgentConfig:
        """Load and validate a single agent file."""
        return await self._load(Path(path), AgentConfig, "agent")

    async def load_workflow_config(self, workflow_id: str) -> WorkflowDefinition:
        """Load a workflow definition by id, using the cache when possible."""
        cached = self._workflow_cache.get(workflow_id)
        if cached is not None:
            return cached

        path = self.workflows_dir / f"{workflow_id}.yaml"
        alternate = path.with_suffix(".yml")
        if not await asyncio.to_thread(path.exists) and await asyncio.to_thread(alternate.exists):
            path = alternate

        definition = await self._load(path, WorkflowDefinition, "workflow")
        self._workflow_cache[workflow_id] = definition
        return definition

    async def _load(self, path: Path, model: Type[ModelT], kind: str) -> ModelT:
        content = await asyncio.to_thread(path.read_text, encoding="utf-8")
        raw = yaml.safe_load(content)
        try:
            return model.model_validate(raw)
        except ValidationError as e:
            raise ConfigValidationError(
                path,
                e.errors(include_url=False),
                message=f"Invalid {kind} configuration in {path}: {e}",
            ) from e

    async def save_agent_config(self, config: AgentConfig) -> Path:
        path = self.agents_dir / f"{config.id}.yaml"
        await self._save(path, config)
        self._agent_cache[config.id] = config
        return path

    async def save_workflow_config(self, definition: WorkflowDefinition) -> Path:
        path = self.workflows_dir / f"{definition.id}.yaml"
        await self._save(path, definition)
        self._workflow_cache[definition.id] = definition
        return path

    async def _save(self, path: Path, model: BaseModel) -> None:
        payload = model.model_dump(mode="json", by_alias=True, exclude_none=True)
        content = yaml.safe_dump(payload, sort_keys=False, allow_unicode=True, default_flow_style=False)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")

        await asyncio.to_thread(_write)
        logger.debug(f"Saved {path}")

    def get_agent_config(self, agent_id: str) -> Optional[AgentConfig]:
        return self._agent_cache.get(agent_id)

    def get_all_agent_configs(self) -> List[AgentConfig]:
        return list(self._agent_cache.values())

    def clear_cache(self) -> None:
        self._agent_cache.clear()
        self._workflow_cache.clear()

    async def config_dir_exists(self) -> bool:
        return await asyncio.to_thread(self.config_dir.is_dir)

    async def create_config_dir(self) -> None:
        """Create the agents/ and workflows/ directory structure."""
        def _create() -> None:
            self.agents_dir.mkdir(parents=True, exist_ok=True)
            self.workflows_dir.mkdir(parents=True, exist_ok=True)

        await asyncio.to_thread(_create)
