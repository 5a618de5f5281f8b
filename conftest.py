"""Shared test doubles: an in-memory ledger behind a web3-shaped facade."""
import pytest
from unittest.mock import AsyncMock

from eth_abi import encode
from eth_utils import encode_hex, event_abi_to_log_topic, keccak
from hexbytes import HexBytes
from web3.exceptions import ContractLogicError

from amm_client.contracts.registry import event_entries, load_abi

ZERO = "0x0000000000000000000000000000000000000000"
TOKEN_A = "0x1111111111111111111111111111111111111111"
TOKEN_B = "0x2222222222222222222222222222222222222222"
OWNER = "0x3333333333333333333333333333333333333333"
AMM = "0x4444444444444444444444444444444444444444"
OTHER = "0x5555555555555555555555555555555555555555"


def compute_pool_id(token_a, token_b, fee_bps):
    token0, token1 = sorted([token_a, token_b], key=lambda a: int(a, 16))
    return keccak(encode(["address", "address", "uint16"], [token0, token1, fee_bps]))


class FakeBoundCall:
    """Stands in for a web3 ContractFunction bound to its arguments."""

    def __init__(self, ledger, address, fn_name, args):
        self.ledger = ledger
        self.address = address
        self.fn_name = fn_name
        self.args = args

    async def call(self, block_identifier="latest", transaction=None):
        return self.ledger.read(self.address, self.fn_name, self.args)


class FakeFunctions:
    def __init__(self, ledger, address):
        self.ledger = ledger
        self.address = address

    def __getitem__(self, fn_name):
        return lambda *args: FakeBoundCall(self.ledger, self.address, fn_name, args)


class FakeContract:
    def __init__(self, ledger, address):
        self.address = address
        self.functions = FakeFunctions(ledger, address)


class FakeEth:
    def __init__(self, ledger):
        self.ledger = ledger
        self.get_logs = AsyncMock(side_effect=ledger.get_logs)

    def contract(self, address, abi):
        return FakeContract(self.ledger, address)

    @property
    async def block_number(self):
        return self.ledger.block_number


class FakeWeb3:
    def __init__(self, ledger):
        self.eth = FakeEth(ledger)


class FakeLedger:
    """
    Just enough AMM and ERC-20 state to drive the client.

    ``outcomes`` maps a mutating function name to the status and logs its
    receipt should carry. ``reverting_reads`` names read functions that revert.
    """

    def __init__(self):
        self.block_number = 100
        self.pools = {}
        self.lp_balances = {}
        self.allowances = {}
        self.logs = []
        self.reads = []
        self.mined = []
        self.outcomes = {}
        self.reverting_reads = set()
        self.read_error = None
        self.get_logs_error = None
        self.web3 = FakeWeb3(self)

    def add_pool(self, token_a, token_b, reserve0=1000, reserve1=2000, fee_bps=30, total_supply=1414):
        pool_id = compute_pool_id(token_a, token_b, fee_bps)
        token0, token1 = sorted([token_a, token_b], key=lambda a: int(a, 16))
        self.pools[pool_id] = (token0, token1, reserve0, reserve1, fee_bps, total_supply)
        return encode_hex(pool_id)

    def read(self, address, fn_name, args):
        self.reads.append((address, fn_name, args))
        if self.read_error is not None:
            raise self.read_error
        if fn_name in self.reverting_reads:
            raise ContractLogicError(f"execution reverted: {fn_name}")

        if fn_name == "getPool":
            return self.pools.get(bytes(args[0]), (ZERO, ZERO, 0, 0, 0, 0))
        if fn_name == "getLpBalance":
            return self.lp_balances.get((bytes(args[0]), args[1]), 0)
        if fn_name == "getPoolId":
            return compute_pool_id(*args)
        if fn_name == "allowance":
            owner, spender = args
            return self.allowances.get((address, owner, spender), 0)
        raise AssertionError(f"unexpected read {fn_name}")

    def mine(self, bound_call, tx_hash, sender):
        self.block_number += 1
        self.mined.append(bound_call)
        status, logs = 1, []
        if bound_call.fn_name == "approve":
            spender, amount = bound_call.args
            self.allowances[(bound_call.address, sender, spender)] = amount
        else:
            outcome = self.outcomes.get(bound_call.fn_name, {})
            status = outcome.get("status", 1)
            logs = outcome.get("logs", [])
        return {
            "transactionHash": HexBytes(tx_hash),
            "status": status,
            "blockNumber": self.block_number,
            "logs": logs,
        }

    def get_logs(self, log_filter):
        if self.get_logs_error is not None:
            error = self.get_logs_error(log_filter)
            if error is not None:
                raise error
        topic0 = HexBytes(log_filter["topics"][0])
        return [
            log for log in self.logs
            if log["address"] == log_filter["address"]
            and HexBytes(log["topics"][0]) == topic0
            and log_filter["fromBlock"] <= log["blockNumber"] <= log_filter["toBlock"]
        ]


class FakeSigner:
    """
    Signer that mines straight into a FakeLedger.

    ``decline_when(bound_call)`` returning True makes the wallet refuse with
    the EIP-1193 user-rejected error.
    """

    def __init__(self, ledger, address=OWNER):
        self.ledger = ledger
        self.web3 = ledger.web3
        self.address = address
        self.sent = []
        self.pending = {}
        self.decline_when = lambda bound_call: False
        self.send_error = None
        self.wait_error = None

    async def send_transaction(self, bound_call):
        if self.decline_when(bound_call):
            raise ValueError({"code": 4001, "message": "User rejected the request."})
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(bound_call)
        tx_hash = "0x" + f"{len(self.sent):064x}"
        self.pending[tx_hash] = bound_call
        return tx_hash

    async def wait_for_receipt(self, transaction_hash):
        if self.wait_error is not None:
            raise self.wait_error
        return self.ledger.mine(self.pending[transaction_hash], transaction_hash, self.address)

    def sent_names(self):
        return [call.fn_name for call in self.sent]


def build_log(event_name, abi_name="AMM", address=AMM, block_number=1, log_index=0, transaction_hash=None, **values):
    """Encode a log for ``event_name`` the way a node returns it."""
    entry = next(e for e in event_entries(load_abi(abi_name)) if e["name"] == event_name)

    def prepare(abi_type, value):
        if abi_type.startswith("bytes") and isinstance(value, str):
            return bytes(HexBytes(value))
        return value

    topics = [HexBytes(event_abi_to_log_topic(entry))]
    data_types, data_values = [], []
    for inp in entry["inputs"]:
        value = prepare(inp["type"], values[inp["name"]])
        if inp.get("indexed"):
            topics.append(HexBytes(encode([inp["type"]], [value])))
        else:
            data_types.append(inp["type"])
            data_values.append(value)

    return {
        "address": address,
        "topics": topics,
        "data": HexBytes(encode(data_types, data_values)),
        "blockNumber": block_number,
        "logIndex": log_index,
        "transactionHash": HexBytes(transaction_hash or "0x" + f"{block_number:064x}"),
    }


@pytest.fixture
def ledger():
    """Fresh in-memory ledger."""
    return FakeLedger()


@pytest.fixture
def web3(ledger):
    return ledger.web3


@pytest.fixture
def signer(ledger):
    """Signer for OWNER on the fake ledger."""
    return FakeSigner(ledger)


@pytest.fixture
def make_log():
    return build_log


@pytest.fixture
def addresses():
    """Well-known test addresses."""
    return {
        "zero": ZERO,
        "token_a": TOKEN_A,
        "token_b": TOKEN_B,
        "owner": OWNER,
        "amm": AMM,
        "other": OTHER,
    }
