"""
Signing capability.

A signer submits prepared contract calls as transactions and waits for their
receipts. It is the only component that talks to a wallet. Ordering of
transactions from one account is the caller's concern: the signer does not
queue.
"""

import logging
from typing import Any, Mapping, Optional, Protocol

from eth_account.signers.local import LocalAccount
from eth_typing import ChecksumAddress
from eth_utils import encode_hex, to_checksum_address

logger = logging.getLogger(__name__)


class Signer(Protocol):
    """What the transaction layer needs from a wallet."""

    web3: Any
    address: ChecksumAddress

    async def send_transaction(self, bound_call) -> str:
        """Submit ``bound_call`` and return its transaction hash."""
        ...

    async def wait_for_receipt(self, transaction_hash: str) -> Mapping[str, Any]:
        """Suspend until ``transaction_hash`` is included and return the raw receipt."""
        ...


class Web3Signer:
    """
    Signer backed by an AsyncWeb3 instance.

    With ``account`` (an eth_account LocalAccount) transactions are signed
    locally and sent raw. Without it the node's own account for ``address``
    signs via eth_sendTransaction, which is where browser or hardware wallets
    prompt the user.
    """

    def __init__(
        self,
        web3,
        address: Optional[str] = None,
        account: Optional[LocalAccount] = None,
        receipt_timeout: float = 120.0,
        poll_latency: float = 0.1,
    ):
        if account is None and address is None:
            raise ValueError("Web3Signer needs either an address or a local account")
        self.web3 = web3
        self.account = account
        self.address = to_checksum_address(account.address if account is not None else address)
        self.receipt_timeout = receipt_timeout
        self.poll_latency = poll_latency
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def __repr__(self) -> str:
        mode = "local" if self.account is not None else "node"
        return f"Web3Signer({self.address}, {mode})"

    async def send_transaction(self, bound_call) -> str:
        tx_params = {"from": self.address}

        if self.account is None:
            tx_hash = await bound_call.transact(tx_params)
        else:
            tx = await bound_call.build_transaction(tx_params)
            tx["nonce"] = await self.web3.eth.get_transaction_count(self.address, "pending")
            signed = self.account.sign_transaction(tx)
            tx_hash = await self.web3.eth.send_raw_transaction(signed.raw_transaction)

        return encode_hex(tx_hash)

    async def wait_for_receipt(self, transaction_hash: str) -> Mapping[str, Any]:
        return await self.web3.eth.wait_for_transaction_receipt(
            transaction_hash,
            timeout=self.receipt_timeout,
            poll_latency=self.poll_latency,
        )
