"""
Contract handle factory.

Binds an address, an interface description and an execution context into a
callable handle. A handle built on a read-only context refuses mutating
methods before anything reaches the transport.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from ..errors import AmmClientError, CapabilityError, ErrorHandler
from .registry import AMM_ABI_NAME, ERC20_ABI_NAME, function_entries, load_abi

logger = logging.getLogger(__name__)

READ_ONLY_MUTABILITY = ("view", "pure")


@dataclass(frozen=True)
class ExecutionContext:
    """
    Where a handle's calls go.

    ``web3`` is an AsyncWeb3 instance used for queries. ``signer`` is present
    only for signing contexts and is the only way to submit transactions.
    """

    web3: Any
    signer: Optional[Any] = None

    @classmethod
    def read_only(cls, web3) -> "ExecutionContext":
        return cls(web3=web3)

    @classmethod
    def signing(cls, signer) -> "ExecutionContext":
        return cls(web3=signer.web3, signer=signer)

    @property
    def can_mutate(self) -> bool:
        return self.signer is not None


class ContractHandle:
    """
    A contract bound to an address, ABI and execution context.

    Reads go through ``call``; mutations are prepared with ``prepare`` and
    handed to the transaction executor together with the context's signer.
    """

    def __init__(self, address: str, abi: List[Dict[str, Any]], context: ExecutionContext):
        self.address: ChecksumAddress = to_checksum_address(address)
        self.abi = abi
        self.context = context
        self._functions = function_entries(abi)
        self.contract = context.web3.eth.contract(address=self.address, abi=abi)
        self.error_handler = ErrorHandler(logger)

    def __repr__(self) -> str:
        mode = "signing" if self.context.can_mutate else "read-only"
        return f"ContractHandle({self.address}, {mode})"

    def _function_abi(self, fn_name: str) -> Dict[str, Any]:
        try:
            return self._functions[fn_name]
        except KeyError:
            raise ValueError(f"Function '{fn_name}' not found in ABI for {self.address}") from None

    def is_mutating(self, fn_name: str) -> bool:
        """Whether calling ``fn_name`` changes ledger state."""
        fn_abi = self._function_abi(fn_name)
        mutability = fn_abi.get("stateMutability")
        if mutability is None:
            # Pre-0.4.16 ABIs only carry the constant flag
            return not fn_abi.get("constant", False)
        return mutability not in READ_ONLY_MUTABILITY

    def _require_mutation_capability(self, fn_name: str):
        if not self.context.can_mutate:
            raise CapabilityError(
                f"Cannot invoke mutating method '{fn_name}' on read-only handle for {self.address}"
            )

    async def call(self, fn_name: str, *args, block_identifier="latest") -> Any:
        """
        Run a read call and return the decoded result.

        Raises:
            CapabilityError: ``fn_name`` is mutating and this handle is read-only
            TransportError: The RPC round-trip failed
            CallRevertedError: The contract reverted the call
        """
        if self.is_mutating(fn_name):
            self._require_mutation_capability(fn_name)

        bound = self.contract.functions[fn_name](*args)
        call_kwargs = {"block_identifier": block_identifier}
        if self.context.can_mutate:
            call_kwargs["transaction"] = {"from": self.context.signer.address}

        try:
            return await bound.call(**call_kwargs)
        except AmmClientError:
            raise
        except Exception as e:
            raise self.error_handler.translate(
                e, {"operation": f"call {fn_name}", "address": self.address}
            ) from e

    def prepare(self, fn_name: str, *args) -> Any:
        """
        Bind a mutating method to its arguments without submitting it.

        Raises:
            CapabilityError: This handle is read-only
            ValueError: ``fn_name`` is not a mutating method of the ABI
        """
        self._require_mutation_capability(fn_name)
        if not self.is_mutating(fn_name):
            raise ValueError(f"'{fn_name}' is read-only; use call() instead")
        return self.contract.functions[fn_name](*args)


def get_contract(address: str, abi_name: str, context: ExecutionContext) -> ContractHandle:
    """Bind a bundled ABI to an address and context."""
    return ContractHandle(address, load_abi(abi_name), context)


def get_amm_contract(address: str, context: ExecutionContext) -> ContractHandle:
    """Get a handle on the AMM contract."""
    return get_contract(address, AMM_ABI_NAME, context)


def get_token_contract(address: str, context: ExecutionContext) -> ContractHandle:
    """Get a handle on an ERC-20 token contract."""
    return get_contract(address, ERC20_ABI_NAME, context)
