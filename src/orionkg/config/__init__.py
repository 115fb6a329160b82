"""Configuration management."""
from orionkg.config.settings import (
    Config,
    ContradictionConfig,
    GraphConfig,
    ProfileConfig,
    ServerConfig,
    SuppressionConfig,
    TimelineConfig,
)
from orionkg.config.constants import *

__all__ = [
    "Config",
    "ContradictionConfig",
    "GraphConfig",
    "ProfileConfig",
    "ServerConfig",
    "SuppressionConfig",
    "TimelineConfig",
]
