"""Runtime settings read from the environment."""

import logging
import os
from dataclasses import dataclass
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Application settings.

    Environment Variables:
        STAGEFLOW_CONFIG_DIR: Directory holding agents/ and workflows/ YAML files
        STAGEFLOW_DATA_DIR: Directory for file-based session persistence
        STAGEFLOW_LOG_LEVEL: Logging level name (default: INFO)
        STAGEFLOW_AUTO_APPROVE: Approve every human checkpoint automatically
        STAGEFLOW_PERSISTENCE: memory, file, sqlite or postgres (default: file)
        SQLITE_DB_PATH: SQLite database path
        POSTGRES_DSN: PostgreSQL connection string
        OPENAI_API_KEY / BASE_URL: Credentials and endpoint for LLM agents
    """

    config_dir: str = "./config"
    data_dir: str = "./data"
    log_level: str = "INFO"
    auto_approve: bool = False
    persistence: str = "file"
    sqlite_db_path: str = "data/sessions.db"
    postgres_dsn: Optional[str] = None
    openai_api_key: Optional[str] = None
    base_url: Optional[str] = None

    @classmethod
    def from_environment(cls) -> "Settings":
        return cls(
            config_dir=os.getenv("STAGEFLOW_CONFIG_DIR", "./config"),
            data_dir=os.getenv("STAGEFLOW_DATA_DIR", "./data"),
            log_level=os.getenv("STAGEFLOW_LOG_LEVEL", "INFO").upper(),
            auto_approve=os.getenv("STAGEFLOW_AUTO_APPROVE", "false").lower() in _TRUE_VALUES,
            persistence=os.getenv("STAGEFLOW_PERSISTENCE", "file").lower(),
            sqlite_db_path=os.getenv("SQLITE_DB_PATH", "data/sessions.db"),
            postgres_dsn=os.getenv("POSTGRES_DSN"),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            base_url=os.getenv("BASE_URL"),
        )

    def setup_logging(self) -> logging.Logger:
        """Configure the ``stageflow`` logger hierarchy for applications."""
        level = getattr(logging, self.log_level, logging.INFO)
        logger = logging.getLogger("stageflow")
        logger.setLevel(level)

        # Avoid duplicate console handlers
        if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)

        return logger
