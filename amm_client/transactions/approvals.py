"""
Approval orchestrator.

Makes sure a spender may move at least a required amount of a token before a
mutating call draws on it. The allowance is read fresh every time: it can
change out of band between pipeline runs.
"""

import logging
from typing import Optional

from eth_utils import to_checksum_address

from ..codec.amounts import to_internal, validate_amount
from ..codec.events import EventDecoder
from ..contracts.handles import ExecutionContext, get_token_contract
from ..contracts.registry import ERC20_ABI_NAME, load_abi
from ..errors import CallRevertedError, TransportError
from ..pool_types import AllowanceState
from .executor import TransactionExecutor

logger = logging.getLogger(__name__)


class ApprovalOrchestrator:
    """Read-before-write token approvals."""

    def __init__(self, executor: Optional[TransactionExecutor] = None):
        self.executor = executor or TransactionExecutor(EventDecoder(load_abi(ERC20_ABI_NAME)))
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def read_allowance(self, signer, token: str, spender: str) -> AllowanceState:
        """Current allowance of ``spender`` over the signer's ``token``."""
        spender = to_checksum_address(spender)
        handle = get_token_contract(token, ExecutionContext.signing(signer))
        try:
            raw = await handle.call("allowance", signer.address, spender)
        except CallRevertedError as e:
            # A token that cannot answer allowance() gives no usable read
            raise TransportError(
                f"Reading allowance of {handle.address} for {spender} failed: {e.reason}",
                retryable=False,
            ) from e
        current = to_internal(raw)
        return AllowanceState(
            owner=signer.address,
            spender=spender,
            token=handle.address,
            authorized_amount=current,
        )

    async def ensure_allowance(self, signer, token: str, spender: str, required_amount: int) -> AllowanceState:
        """
        Ensure ``spender`` may move ``required_amount`` of the signer's ``token``.

        Issues at most one approval, for exactly ``required_amount``, and only
        when the current allowance falls short.

        Raises:
            TransportError: The allowance read failed
            UserDeclinedError: The signer refused the approval
            OnChainRevertError: The approval transaction reverted
        """
        required_amount = validate_amount(required_amount)
        state = await self.read_allowance(signer, token, spender)

        if state.authorized_amount >= required_amount:
            self.logger.debug(
                f"Sufficient allowance for {state.token}: {state.authorized_amount} >= {required_amount}"
            )
            return state

        self.logger.info(
            f"Approving {required_amount} of {state.token} for {state.spender} "
            f"(current allowance {state.authorized_amount})"
        )
        handle = get_token_contract(token, ExecutionContext.signing(signer))
        receipt = await self.executor.execute(
            signer,
            handle.prepare("approve", state.spender, required_amount),
            description=f"approve {state.token}",
        )
        return AllowanceState(
            owner=state.owner,
            spender=state.spender,
            token=state.token,
            authorized_amount=required_amount,
            approval_transaction=receipt.transaction_hash,
        )


async def ensure_allowance(signer, token: str, spender: str, required_amount: int) -> AllowanceState:
    """
    Convenience function for a one-off allowance check.

    Args:
        signer: Signing capability of the token owner
        token: ERC-20 token address
        spender: Address that will pull the tokens
        required_amount: Minimum allowance needed

    Returns:
        AllowanceState after the call
    """
    return await ApprovalOrchestrator().ensure_allowance(signer, token, spender, required_amount)
