"""
Tether Configuration Module
"""

from .loader import DEFAULT_CONFIG_PATH, config_path, load_config, save_config
from .models import AgentConfig, ProviderKind, RetrySettings

__all__ = [
    "AgentConfig",
    "ProviderKind",
    "RetrySettings",
    "DEFAULT_CONFIG_PATH",
    "config_path",
    "load_config",
    "save_config",
]
