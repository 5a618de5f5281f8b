"""Tests for the configuration layer."""
import pytest
from eth_utils import is_checksum_address, to_checksum_address

from amm_client.config import ChainConfig, ConfigError, ConfigManager, ContractConfig


class TestChainConfig:
    """Test ledger connection settings."""

    def test_defaults(self):
        """Defaults point at a local development node."""
        config = ChainConfig()

        assert config.RPC_URL
        assert config.BLOCKS_PER_REQUEST > 0
        assert config.RECEIPT_TIMEOUT_SECONDS > 0

    def test_transport_options(self):
        """Receipt wait settings are passed through unchanged."""
        config = ChainConfig(RECEIPT_TIMEOUT_SECONDS=30.0, RECEIPT_POLL_LATENCY_SECONDS=0.5)

        assert config.transport_options == {"receipt_timeout": 30.0, "poll_latency": 0.5}

    def test_rejects_non_positive_chunk_size(self):
        with pytest.raises(ConfigError, match="BLOCKS_PER_REQUEST"):
            ChainConfig(BLOCKS_PER_REQUEST=0)

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ConfigError, match="RECEIPT_TIMEOUT_SECONDS"):
            ChainConfig(RECEIPT_TIMEOUT_SECONDS=0)

    def test_invalid_environment(self):
        with pytest.raises(ConfigError, match="Invalid environment"):
            ChainConfig(ENVIRONMENT="moon")


class TestContractConfig:
    """Test deployed contract settings."""

    def test_amm_address_checksummed(self):
        address = "0xabcdefabcdefabcdefabcdefabcdefabcdefabcd"
        config = ContractConfig(AMM_CONTRACT_ADDRESS=address)

        assert config.amm_address == to_checksum_address(address)
        assert is_checksum_address(config.amm_address)

    def test_missing_address_raises_on_access(self):
        config = ContractConfig(AMM_CONTRACT_ADDRESS="")

        with pytest.raises(ConfigError, match="not configured"):
            config.amm_address

    def test_invalid_address(self):
        with pytest.raises(ConfigError, match="Invalid AMM contract address"):
            ContractConfig(AMM_CONTRACT_ADDRESS="0x1234")

    def test_negative_deployment_block(self):
        with pytest.raises(ConfigError, match="AMM_DEPLOYMENT_BLOCK"):
            ContractConfig(AMM_DEPLOYMENT_BLOCK=-1)


class TestConfigManager:
    """Test the combined configuration."""

    def test_sections(self):
        manager = ConfigManager()

        assert isinstance(manager.chain, ChainConfig)
        assert isinstance(manager.contracts, ContractConfig)
        assert manager.validate_configuration() is True

    def test_environment_override(self):
        manager = ConfigManager(environment="staging")

        assert manager.environment == "staging"

    def test_to_dict(self):
        data = ConfigManager().to_dict()

        assert set(data) == {"environment", "base", "chain", "contracts"}
        assert "RPC_URL" in data["chain"]
        assert "AMM_CONTRACT_ADDRESS" in data["contracts"]
