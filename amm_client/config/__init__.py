"""
Configuration management for amm-client.

Use get_config() to access all configuration settings.

Example:
    from amm_client.config import get_config

    config = get_config()

    rpc_url = config.chain.RPC_URL
    amm_address = config.contracts.amm_address
"""

from .base import BaseConfig, ConfigError
from .chains import ChainConfig
from .contracts import ContractConfig
from .manager import ConfigManager, get_config, reload_config

__all__ = [
    "BaseConfig",
    "ConfigError",
    "ChainConfig",
    "ContractConfig",
    "ConfigManager",
    "get_config",
    "reload_config",
]
