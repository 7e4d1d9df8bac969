"""Core models and configuration."""

from .task import BacklogSnapshot, TaskRecord
from .config import EngineConfig, EngineMode, load_config
from .errors import ProdmillError

__all__ = [
    "BacklogSnapshot",
    "TaskRecord",
    "EngineConfig",
    "EngineMode",
    "load_config",
    "ProdmillError",
]
