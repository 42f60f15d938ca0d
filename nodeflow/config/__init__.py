"""
Config Module

YAML graph documents and runtime settings.
"""

from .loader import ConfigLoader, ConnectionConfig, GraphConfig, NodeConfig
from .settings import Settings

__all__ = [
    "ConfigLoader",
    "ConnectionConfig",
    "GraphConfig",
    "NodeConfig",
    "Settings",
]
