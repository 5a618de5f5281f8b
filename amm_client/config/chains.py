"""
Ledger connection configuration for amm-client.
"""

from dataclasses import dataclass
from typing import Dict

from .base import BaseConfig, ConfigError


@dataclass
class ChainConfig(BaseConfig):
    """Connection and transport settings for the ledger the AMM lives on."""

    RPC_URL: str = BaseConfig.get_env("RPC_URL", "http://127.0.0.1:8545")
    CHAIN_ID: int = BaseConfig.get_env_int("CHAIN_ID", 31337)

    # eth_getLogs range per request during pool discovery
    BLOCKS_PER_REQUEST: int = BaseConfig.get_env_int("BLOCKS_PER_REQUEST", 10000)

    # Receipt waiting is the transport's policy; the client only passes it through
    RECEIPT_TIMEOUT_SECONDS: float = BaseConfig.get_env_float("RECEIPT_TIMEOUT_SECONDS", 120.0)
    RECEIPT_POLL_LATENCY_SECONDS: float = BaseConfig.get_env_float(
        "RECEIPT_POLL_LATENCY_SECONDS", 0.1
    )

    def _validate_config(self):
        super()._validate_config()
        if self.BLOCKS_PER_REQUEST <= 0:
            raise ConfigError(
                f"BLOCKS_PER_REQUEST must be positive, got: {self.BLOCKS_PER_REQUEST}"
            )
        if self.RECEIPT_TIMEOUT_SECONDS <= 0:
            raise ConfigError(
                f"RECEIPT_TIMEOUT_SECONDS must be positive, got: {self.RECEIPT_TIMEOUT_SECONDS}"
            )

    @property
    def transport_options(self) -> Dict[str, float]:
        """Receipt wait settings handed to the signing transport."""
        return {
            "receipt_timeout": self.RECEIPT_TIMEOUT_SECONDS,
            "poll_latency": self.RECEIPT_POLL_LATENCY_SECONDS,
        }
