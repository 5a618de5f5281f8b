"""
Contract handles and bundled interface descriptions.
"""

from .handles import (
    ContractHandle,
    ExecutionContext,
    get_amm_contract,
    get_contract,
    get_token_contract,
)
from .registry import AMM_ABI_NAME, ERC20_ABI_NAME, AbiNotFoundError, load_abi

__all__ = [
    'ContractHandle',
    'ExecutionContext',
    'get_amm_contract',
    'get_contract',
    'get_token_contract',
    'load_abi',
    'AbiNotFoundError',
    'AMM_ABI_NAME',
    'ERC20_ABI_NAME',
]
