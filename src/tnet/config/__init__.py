"""
Configuration module for tnet.

Exports the main components for convenient imports.
"""

from .loader import load_config
from .schema import (
    AppConfig,
    KeywordsConfig,
    LoggingConfig,
    SyncConfig,
    TreeConfig,
    WorkspaceConfig,
)

__all__ = [
    "load_config",
    "AppConfig",
    "KeywordsConfig",
    "LoggingConfig",
    "SyncConfig",
    "TreeConfig",
    "WorkspaceConfig",
]
