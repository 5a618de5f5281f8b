"""Tests for event log decoding."""
import copy

import pytest
from hexbytes import HexBytes

from amm_client.codec.events import NO_MATCH, EventDecoder, FieldSpec, MissingField, NoMatch, extract_field
from amm_client.codec.records import SWAP_FIELDS, to_pool_created, to_swap
from amm_client.contracts.registry import load_abi

POOL_ID = "0x" + "ab" * 32


@pytest.fixture
def decoder():
    return EventDecoder(load_abi("AMM"))


@pytest.fixture
def swap_log(make_log, addresses):
    return make_log(
        "Swap",
        block_number=7,
        log_index=3,
        poolId=POOL_ID,
        sender=addresses["owner"],
        tokenIn=addresses["token_a"],
        amountIn=10**18,
        amountOut=2**200,
        recipient=addresses["other"],
    )


class TestEventDecoder:
    """Test EventDecoder matching and parsing."""

    def test_event_names(self, decoder):
        assert set(decoder.event_names) == {"PoolCreated", "LiquidityAdded", "LiquidityRemoved", "Swap"}

    def test_decode_swap(self, decoder, swap_log, addresses):
        event = decoder.decode(swap_log, "Swap")

        assert event.name == "Swap"
        assert event.args["poolId"] == POOL_ID
        assert event.args["sender"] == addresses["owner"]
        assert event.args["amountOut"] == 2**200
        assert event.block_number == 7
        assert event.log_index == 3
        assert event.position == (7, 3)

    def test_wrong_event_is_no_match(self, decoder, swap_log):
        assert decoder.decode(swap_log, "PoolCreated") is NO_MATCH

    def test_foreign_log_is_no_match(self, decoder, make_log, addresses):
        """A token Transfer has a signature the AMM decoder does not know."""
        transfer = make_log(
            "Transfer",
            abi_name="ERC20",
            address=addresses["token_a"],
            **{"from": addresses["owner"], "to": addresses["amm"], "value": 5},
        )

        assert decoder.decode(transfer) is NO_MATCH

    def test_truncated_data_is_no_match(self, decoder, swap_log):
        broken = dict(swap_log, data=HexBytes(swap_log["data"][:40]))

        assert decoder.decode(broken, "Swap") is NO_MATCH

    def test_missing_topics_is_no_match(self, decoder, swap_log):
        assert decoder.decode(dict(swap_log, topics=[])) is NO_MATCH
        assert decoder.decode(dict(swap_log, topics=swap_log["topics"][:2])) is NO_MATCH

    def test_find_skips_interleaved_logs(self, decoder, make_log, swap_log, addresses):
        logs = [
            make_log("Transfer", abi_name="ERC20", address=addresses["token_a"],
                     **{"from": addresses["owner"], "to": addresses["amm"], "value": 1}),
            make_log("Approval", abi_name="ERC20", address=addresses["token_a"],
                     owner=addresses["owner"], spender=addresses["amm"], value=1),
            make_log("Transfer", abi_name="ERC20", address=addresses["token_b"],
                     **{"from": addresses["amm"], "to": addresses["other"], "value": 2}),
            swap_log,
        ]

        event = decoder.find(logs, "Swap")

        assert event is not NO_MATCH
        assert event.args["amountOut"] == 2**200

    def test_find_by_emitter_skips_same_signature(self, decoder, swap_log, addresses):
        forged = dict(swap_log, address=addresses["token_a"])

        event = decoder.find([forged, swap_log], "Swap", address=addresses["amm"].lower())

        assert event is not NO_MATCH
        assert event.address == addresses["amm"]
        assert decoder.find([forged], "Swap", address=addresses["amm"]) is NO_MATCH
        assert decoder.find([dict(swap_log, address=None)], "Swap", address=addresses["amm"]) is NO_MATCH

    def test_find_without_match(self, decoder, swap_log):
        assert decoder.find([swap_log], "LiquidityAdded") is NO_MATCH
        assert decoder.find([], "Swap") is NO_MATCH

    def test_topic_for_unknown_event(self, decoder):
        with pytest.raises(ValueError, match="not found"):
            decoder.topic_for("Sync")


class TestNoMatch:

    def test_singleton_and_falsy(self):
        assert NoMatch() is NO_MATCH
        assert not NO_MATCH
        assert repr(NO_MATCH) == "NO_MATCH"


class TestFieldExtraction:
    """Test named-then-positional field extraction."""

    @pytest.fixture
    def unnamed_decoder(self):
        """Decoder over an ABI whose Swap event inputs carry no names."""
        abi = copy.deepcopy(load_abi("AMM"))
        for entry in abi:
            if entry.get("type") == "event" and entry["name"] == "Swap":
                for inp in entry["inputs"]:
                    inp["name"] = ""
        return EventDecoder(abi)

    def test_positional_fallback(self, unnamed_decoder, swap_log):
        event = unnamed_decoder.decode(swap_log, "Swap")

        assert event.args == {}
        assert extract_field(event, SWAP_FIELDS["amount_out"]) == 2**200

    def test_typed_record_from_unnamed_abi(self, unnamed_decoder, swap_log, addresses):
        swap = to_swap(unnamed_decoder.decode(swap_log, "Swap"))

        assert swap.pool_id == POOL_ID
        assert swap.token_in == addresses["token_a"]
        assert swap.amount_in == 10**18
        assert swap.amount_out == 2**200
        assert swap.recipient == addresses["other"]

    def test_missing_field(self, decoder, swap_log):
        event = decoder.decode(swap_log, "Swap")

        with pytest.raises(MissingField):
            extract_field(event, FieldSpec("fee", 99))

    def test_pool_created_record(self, decoder, make_log, addresses):
        log = make_log(
            "PoolCreated",
            block_number=12,
            log_index=1,
            poolId=POOL_ID,
            token0=addresses["token_a"],
            token1=addresses["token_b"],
            feeBps=30,
            initialLiquidity=1000,
            amount0=400,
            amount1=2500,
            provider=addresses["owner"],
        )

        record = to_pool_created(decoder.decode(log, "PoolCreated"))

        assert record.pool_id == POOL_ID
        assert (record.token0, record.token1) == (addresses["token_a"], addresses["token_b"])
        assert record.fee_bps == 30
        assert record.initial_liquidity == 1000
        assert record.block_number == 12
        assert record.log_index == 1
