"""Tests for the web3-backed signer."""
import pytest
from unittest.mock import AsyncMock, Mock

from eth_account import Account

from amm_client.transactions.signer import Web3Signer

OWNER = "0x3333333333333333333333333333333333333333"
AMM = "0x4444444444444444444444444444444444444444"


@pytest.fixture
def mock_web3():
    web3 = Mock()
    web3.eth.get_transaction_count = AsyncMock(return_value=3)
    web3.eth.send_raw_transaction = AsyncMock(return_value=b"\x02" * 32)
    web3.eth.wait_for_transaction_receipt = AsyncMock(return_value={"status": 1})
    return web3


class TestWeb3Signer:
    """Test node-managed and local signing."""

    def test_needs_identity(self, mock_web3):
        with pytest.raises(ValueError):
            Web3Signer(mock_web3)

    @pytest.mark.asyncio
    async def test_node_account(self, mock_web3):
        bound_call = Mock()
        bound_call.transact = AsyncMock(return_value=b"\x01" * 32)
        signer = Web3Signer(mock_web3, address=OWNER)

        tx_hash = await signer.send_transaction(bound_call)

        assert tx_hash == "0x" + "01" * 32
        bound_call.transact.assert_awaited_once_with({"from": OWNER})
        assert "node" in repr(signer)

    @pytest.mark.asyncio
    async def test_local_account(self, mock_web3):
        account = Account.create()
        bound_call = Mock()
        bound_call.build_transaction = AsyncMock(return_value={
            "to": AMM,
            "value": 0,
            "data": "0x",
            "gas": 100000,
            "maxFeePerGas": 2 * 10**9,
            "maxPriorityFeePerGas": 10**9,
            "chainId": 31337,
        })
        signer = Web3Signer(mock_web3, account=account)

        tx_hash = await signer.send_transaction(bound_call)

        assert tx_hash == "0x" + "02" * 32
        assert signer.address == account.address
        mock_web3.eth.get_transaction_count.assert_awaited_once_with(account.address, "pending")
        raw = mock_web3.eth.send_raw_transaction.await_args.args[0]
        assert isinstance(raw, bytes) and len(raw) > 0

    @pytest.mark.asyncio
    async def test_wait_uses_transport_policy(self, mock_web3):
        signer = Web3Signer(mock_web3, address=OWNER, receipt_timeout=5.0, poll_latency=0.5)

        receipt = await signer.wait_for_receipt("0xabc")

        assert receipt == {"status": 1}
        mock_web3.eth.wait_for_transaction_receipt.assert_awaited_once_with(
            "0xabc", timeout=5.0, poll_latency=0.5
        )
