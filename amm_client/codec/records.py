"""
Typed records for the AMM's events.

Each converter pulls its fields out of a DecodedEvent with the named-then-
positional strategies and runs every amount through the amount codec.
"""

from typing import Dict

from ..pool_types import (
    LiquidityAddedEvent,
    LiquidityRemovedEvent,
    PoolCreatedEvent,
    SwapEvent,
)
from .amounts import to_internal
from .events import DecodedEvent, FieldSpec, extract_field

POOL_CREATED = "PoolCreated"
LIQUIDITY_ADDED = "LiquidityAdded"
LIQUIDITY_REMOVED = "LiquidityRemoved"
SWAP = "Swap"

# Declaration order of the AMM events; indices back the positional fallback
POOL_CREATED_FIELDS: Dict[str, FieldSpec] = {
    "pool_id": FieldSpec("poolId", 0),
    "token0": FieldSpec("token0", 1),
    "token1": FieldSpec("token1", 2),
    "fee_bps": FieldSpec("feeBps", 3),
    "initial_liquidity": FieldSpec("initialLiquidity", 4),
    "amount0": FieldSpec("amount0", 5),
    "amount1": FieldSpec("amount1", 6),
    "provider": FieldSpec("provider", 7),
}

LIQUIDITY_ADDED_FIELDS: Dict[str, FieldSpec] = {
    "pool_id": FieldSpec("poolId", 0),
    "provider": FieldSpec("provider", 1),
    "amount0": FieldSpec("amount0", 2),
    "amount1": FieldSpec("amount1", 3),
    "liquidity_minted": FieldSpec("liquidityMinted", 4),
}

LIQUIDITY_REMOVED_FIELDS: Dict[str, FieldSpec] = {
    "pool_id": FieldSpec("poolId", 0),
    "provider": FieldSpec("provider", 1),
    "amount0": FieldSpec("amount0", 2),
    "amount1": FieldSpec("amount1", 3),
    "liquidity_burned": FieldSpec("liquidityBurned", 4),
}

SWAP_FIELDS: Dict[str, FieldSpec] = {
    "pool_id": FieldSpec("poolId", 0),
    "sender": FieldSpec("sender", 1),
    "token_in": FieldSpec("tokenIn", 2),
    "amount_in": FieldSpec("amountIn", 3),
    "amount_out": FieldSpec("amountOut", 4),
    "recipient": FieldSpec("recipient", 5),
}


def _amount(event: DecodedEvent, field_spec: FieldSpec) -> int:
    return to_internal(extract_field(event, field_spec))


def to_pool_created(event: DecodedEvent) -> PoolCreatedEvent:
    f = POOL_CREATED_FIELDS
    return PoolCreatedEvent(
        pool_id=extract_field(event, f["pool_id"]),
        token0=extract_field(event, f["token0"]),
        token1=extract_field(event, f["token1"]),
        fee_bps=int(extract_field(event, f["fee_bps"])),
        initial_liquidity=_amount(event, f["initial_liquidity"]),
        amount0=_amount(event, f["amount0"]),
        amount1=_amount(event, f["amount1"]),
        provider=extract_field(event, f["provider"]),
        block_number=event.block_number,
        log_index=event.log_index,
        transaction_hash=event.transaction_hash,
    )


def to_liquidity_added(event: DecodedEvent) -> LiquidityAddedEvent:
    f = LIQUIDITY_ADDED_FIELDS
    return LiquidityAddedEvent(
        pool_id=extract_field(event, f["pool_id"]),
        provider=extract_field(event, f["provider"]),
        amount0=_amount(event, f["amount0"]),
        amount1=_amount(event, f["amount1"]),
        liquidity_minted=_amount(event, f["liquidity_minted"]),
    )


def to_liquidity_removed(event: DecodedEvent) -> LiquidityRemovedEvent:
    f = LIQUIDITY_REMOVED_FIELDS
    return LiquidityRemovedEvent(
        pool_id=extract_field(event, f["pool_id"]),
        provider=extract_field(event, f["provider"]),
        amount0=_amount(event, f["amount0"]),
        amount1=_amount(event, f["amount1"]),
        liquidity_burned=_amount(event, f["liquidity_burned"]),
    )


def to_swap(event: DecodedEvent) -> SwapEvent:
    f = SWAP_FIELDS
    return SwapEvent(
        pool_id=extract_field(event, f["pool_id"]),
        sender=extract_field(event, f["sender"]),
        token_in=extract_field(event, f["token_in"]),
        amount_in=_amount(event, f["amount_in"]),
        amount_out=_amount(event, f["amount_out"]),
        recipient=extract_field(event, f["recipient"]),
    )
