"""Configuration: YAML definition loading and environment settings."""

from .loader import ConfigLoader, ConfigValidationError
from .settings import Settings

__all__ = [
    "ConfigLoader",
    "ConfigValidationError",
    "Settings",
]
