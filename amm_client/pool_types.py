"""
Core types for AMM pools, events and allowances.

Every value here is a snapshot of ledger state owned by whoever asked for it.
Nothing is cached or mutated after construction.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass(frozen=True)
class Pool:
    """
    Read-through snapshot of a pool as reported by the AMM contract.

    Attributes:
        pool_id: Canonical pool identity computed by the ledger
        token0: First token of the pair, in ledger order
        token1: Second token of the pair, in ledger order
        reserve0: token0 reserve
        reserve1: token1 reserve
        fee_bps: Fee tier in basis points
        total_supply: Outstanding LP shares
    """

    pool_id: str
    token0: str
    token1: str
    reserve0: int
    reserve1: int
    fee_bps: int
    total_supply: int

    @property
    def exists(self) -> bool:
        """An unset pool slot reads back with a zero token0."""
        return self.token0 != ZERO_ADDRESS

    @property
    def tokens(self) -> tuple:
        return (self.token0, self.token1)


@dataclass(frozen=True)
class PoolCreatedEvent:
    """
    A pool creation fact emitted by the AMM.

    Attributes:
        pool_id: Identity of the new pool
        token0: First token of the pair
        token1: Second token of the pair
        fee_bps: Fee tier in basis points
        initial_liquidity: LP shares minted to the creator
        amount0: token0 deposited at creation
        amount1: token1 deposited at creation
        provider: Account that created the pool
        block_number: Block the event was emitted in
        log_index: Position of the log within its block
        transaction_hash: Transaction that emitted the event
    """

    pool_id: str
    token0: str
    token1: str
    fee_bps: int
    initial_liquidity: int
    amount0: int
    amount1: int
    provider: str
    block_number: Optional[int] = None
    log_index: Optional[int] = None
    transaction_hash: Optional[str] = None


@dataclass(frozen=True)
class LiquidityAddedEvent:
    pool_id: str
    provider: str
    amount0: int
    amount1: int
    liquidity_minted: int


@dataclass(frozen=True)
class LiquidityRemovedEvent:
    pool_id: str
    provider: str
    amount0: int
    amount1: int
    liquidity_burned: int


@dataclass(frozen=True)
class SwapEvent:
    pool_id: str
    sender: str
    token_in: str
    amount_in: int
    amount_out: int
    recipient: str


@dataclass(frozen=True)
class AllowanceState:
    """
    Allowance of ``spender`` over ``owner``'s ``token`` as last read or set.

    ``approval_transaction`` is the hash of the approval this client issued,
    or None when the existing allowance was already sufficient.
    """

    owner: str
    spender: str
    token: str
    authorized_amount: int
    approval_transaction: Optional[str] = None

    @property
    def approved(self) -> bool:
        """Whether an approval transaction was issued to reach this state."""
        return self.approval_transaction is not None


def known_pools(events: Iterable[PoolCreatedEvent]) -> Dict[str, PoolCreatedEvent]:
    """
    Fold a ledger-ordered creation stream into the set of known pools.

    Creation is a one-time fact, so the first event seen for an identity wins
    and later duplicates never overwrite it.
    """
    pools: Dict[str, PoolCreatedEvent] = {}
    for event in events:
        pools.setdefault(event.pool_id, event)
    return pools


def latest_pool_for_pair(events: Iterable[PoolCreatedEvent], token_a: str, token_b: str) -> Optional[PoolCreatedEvent]:
    """Last pool created for an unordered token pair, in ledger order."""
    pair = {token_a.lower(), token_b.lower()}
    latest = None
    for event in events:
        if {event.token0.lower(), event.token1.lower()} == pair:
            latest = event
    return latest
