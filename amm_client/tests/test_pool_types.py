"""Tests for pool and event types."""
import pytest
from dataclasses import FrozenInstanceError

from amm_client.pool_types import (
    ZERO_ADDRESS,
    AllowanceState,
    Pool,
    PoolCreatedEvent,
    known_pools,
    latest_pool_for_pair,
)

TOKEN_A = "0x1111111111111111111111111111111111111111"
TOKEN_B = "0x2222222222222222222222222222222222222222"
TOKEN_C = "0xcccccccccccccccccccccccccccccccccccccccc"


def created(pool_id, token0=TOKEN_A, token1=TOKEN_B, liquidity=1):
    return PoolCreatedEvent(
        pool_id=pool_id,
        token0=token0,
        token1=token1,
        fee_bps=30,
        initial_liquidity=liquidity,
        amount0=1,
        amount1=1,
        provider=TOKEN_C,
    )


class TestPool:

    def test_exists(self):
        pool = Pool("0x01", TOKEN_A, TOKEN_B, 1, 2, 30, 3)
        empty = Pool("0x02", ZERO_ADDRESS, ZERO_ADDRESS, 0, 0, 0, 0)

        assert pool.exists
        assert not empty.exists

    def test_frozen(self):
        pool = Pool("0x01", TOKEN_A, TOKEN_B, 1, 2, 30, 3)

        with pytest.raises(FrozenInstanceError):
            pool.reserve0 = 5


class TestKnownPools:
    """Test the insertion-only fold."""

    def test_empty(self):
        assert known_pools([]) == {}

    def test_first_creation_wins(self):
        pools = known_pools([created("0x01", liquidity=10), created("0x02"), created("0x01", liquidity=99)])

        assert list(pools) == ["0x01", "0x02"]
        assert pools["0x01"].initial_liquidity == 10

    def test_latest_for_pair_is_order_insensitive(self):
        events = [
            created("0x01"),
            created("0x02", token0=TOKEN_A, token1=TOKEN_C),
            created("0x03", token0=TOKEN_B, token1=TOKEN_A),
        ]

        assert latest_pool_for_pair(events, TOKEN_A, TOKEN_B).pool_id == "0x03"
        assert latest_pool_for_pair(events, "0xCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCCC", TOKEN_A).pool_id == "0x02"
        assert latest_pool_for_pair(events, TOKEN_B, TOKEN_C) is None


class TestAllowanceState:

    def test_approved_flag(self):
        kept = AllowanceState(TOKEN_C, TOKEN_B, TOKEN_A, 10)
        issued = AllowanceState(TOKEN_C, TOKEN_B, TOKEN_A, 10, approval_transaction="0xbeef")

        assert kept.approved is False
        assert issued.approved is True
