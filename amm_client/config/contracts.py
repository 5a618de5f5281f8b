"""
Deployed contract configuration for amm-client.
"""

from dataclasses import dataclass

from eth_utils import is_address, to_checksum_address

from .base import BaseConfig, ConfigError


@dataclass
class ContractConfig(BaseConfig):
    """Where the AMM contract is deployed."""

    # Set after deployment; empty means "must be passed explicitly"
    AMM_CONTRACT_ADDRESS: str = BaseConfig.get_env("AMM_CONTRACT_ADDRESS", "")

    # Earliest block worth scanning for PoolCreated events
    AMM_DEPLOYMENT_BLOCK: int = BaseConfig.get_env_int("AMM_DEPLOYMENT_BLOCK", 0)

    def _validate_config(self):
        super()._validate_config()
        if self.AMM_CONTRACT_ADDRESS and not is_address(self.AMM_CONTRACT_ADDRESS):
            raise ConfigError(f"Invalid AMM contract address: {self.AMM_CONTRACT_ADDRESS}")
        if self.AMM_DEPLOYMENT_BLOCK < 0:
            raise ConfigError(
                f"AMM_DEPLOYMENT_BLOCK must not be negative, got: {self.AMM_DEPLOYMENT_BLOCK}"
            )

    @property
    def amm_address(self) -> str:
        """Checksummed AMM address."""
        if not self.AMM_CONTRACT_ADDRESS:
            raise ConfigError("AMM_CONTRACT_ADDRESS is not configured")
        return to_checksum_address(self.AMM_CONTRACT_ADDRESS)
