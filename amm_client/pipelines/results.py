"""
Typed results of mutating operations.

``decode_anomaly`` is set when the transaction succeeded but its receipt held
no decodable event of the expected kind. The transaction still happened; the
returned amounts are then zero and must not be trusted.
"""

from dataclasses import dataclass
from typing import Tuple

from ..pool_types import AllowanceState


@dataclass(frozen=True)
class OperationResult:
    transaction_hash: str
    decode_anomaly: bool = False
    approvals: Tuple[AllowanceState, ...] = ()


@dataclass(frozen=True)
class CreatePoolResult(OperationResult):
    pool_id: str = ""
    liquidity: int = 0


@dataclass(frozen=True)
class AddLiquidityResult(OperationResult):
    liquidity: int = 0
    amount0: int = 0
    amount1: int = 0


@dataclass(frozen=True)
class RemoveLiquidityResult(OperationResult):
    amount0: int = 0
    amount1: int = 0


@dataclass(frozen=True)
class SwapResult(OperationResult):
    amount_out: int = 0
