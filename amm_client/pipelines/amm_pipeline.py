"""
AMM operation pipelines.

Each public coroutine of AmmClient is one operation. Queries are a single
read call. Mutations run the approval steps their inputs need, submit one
primary transaction, wait for it, and pull the resulting amounts out of the
receipt's logs.
"""

import logging
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Sequence, Tuple

from eth_typing import ChecksumAddress
from eth_utils import encode_hex, is_address, to_checksum_address
from hexbytes import HexBytes
from web3 import AsyncHTTPProvider, AsyncWeb3

from ..codec.amounts import AmountError, to_internal, validate_amount
from ..codec.events import NO_MATCH, EventDecoder, MissingField
from ..codec.records import (
    LIQUIDITY_ADDED,
    LIQUIDITY_REMOVED,
    POOL_CREATED,
    SWAP,
    to_liquidity_added,
    to_liquidity_removed,
    to_pool_created,
    to_swap,
)
from ..config.manager import ConfigManager
from ..contracts.handles import ContractHandle, ExecutionContext, get_amm_contract
from ..contracts.registry import AMM_ABI_NAME, load_abi
from ..errors import CallRevertedError, CapabilityError, PoolNotFoundError
from ..fetchers.pool_scanner import PoolScanner
from ..pool_types import Pool, PoolCreatedEvent, ZERO_ADDRESS, known_pools
from ..transactions.approvals import ApprovalOrchestrator
from ..transactions.executor import Receipt, TransactionExecutor
from ..transactions.signer import Web3Signer
from .base import PipelineRun
from .results import (
    AddLiquidityResult,
    CreatePoolResult,
    RemoveLiquidityResult,
    SwapResult,
)

logger = logging.getLogger(__name__)

UINT16_MAX = 2**16 - 1
DEFAULT_BLOCKS_PER_REQUEST = 10000


def parse_pool_id(pool_id: Any) -> bytes:
    """
    Normalize a pool identity to its 32-byte form.

    Raises:
        ValueError: ``pool_id`` is not a 32-byte value
    """
    try:
        raw = bytes(HexBytes(pool_id))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid pool id {pool_id!r}: {e}") from None
    if len(raw) != 32:
        raise ValueError(f"Invalid pool id {pool_id!r}: expected 32 bytes, got {len(raw)}")
    return raw


def _checksum(address: str, what: str) -> ChecksumAddress:
    if not is_address(address):
        raise ValueError(f"Invalid {what} address: {address!r}")
    return to_checksum_address(address)


def _validate_fee(fee_bps: int) -> int:
    if isinstance(fee_bps, bool) or not isinstance(fee_bps, int) or not 0 <= fee_bps <= UINT16_MAX:
        raise ValueError(f"Fee tier must be an integer in [0, {UINT16_MAX}] basis points, got {fee_bps!r}")
    return fee_bps


class AmmClient:
    """
    Client-side interaction layer for one AMM deployment.

    Reads need only a web3 instance. Mutations also need a signer; calling
    one without it raises CapabilityError before anything is sent.

    The client keeps no ledger state between calls. Every call reads what it
    needs fresh, so instances can be shared freely. Mutations from the same
    signer must be awaited one at a time by the caller.
    """

    def __init__(
        self,
        amm_address: Optional[str] = None,
        web3=None,
        signer=None,
        config: Optional[ConfigManager] = None,
        on_transition: Optional[Callable[[PipelineRun], None]] = None,
    ):
        if web3 is None and signer is None:
            raise ValueError("AmmClient needs a web3 instance or a signer")
        if amm_address is None:
            if config is None:
                raise ValueError("AmmClient needs an AMM address or a config that provides one")
            amm_address = config.contracts.amm_address

        self.address = to_checksum_address(amm_address)
        self.web3 = web3 if web3 is not None else signer.web3
        self.signer = signer
        self.config = config
        self.on_transition = on_transition
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self.decoder = EventDecoder(load_abi(AMM_ABI_NAME))
        self.amm = get_amm_contract(self.address, ExecutionContext.read_only(self.web3))
        self.executor = TransactionExecutor(self.decoder)
        self.approvals = ApprovalOrchestrator()

        blocks_per_request = config.chain.BLOCKS_PER_REQUEST if config else DEFAULT_BLOCKS_PER_REQUEST
        self.deployment_block = config.contracts.AMM_DEPLOYMENT_BLOCK if config else 0
        self.scanner = PoolScanner(self.web3, self.address, blocks_per_request, decoder=self.decoder)

    @classmethod
    def from_config(cls, config: Optional[ConfigManager] = None, account=None, address: Optional[str] = None) -> "AmmClient":
        """
        Build a client from configuration.

        Args:
            config: Configuration, defaults to the global one
            account: eth_account LocalAccount for local signing
            address: Node-managed account to sign with instead of ``account``

        Returns:
            Read-only client when neither ``account`` nor ``address`` is given
        """
        if config is None:
            from ..config.manager import get_config
            config = get_config()

        web3 = AsyncWeb3(AsyncHTTPProvider(config.chain.RPC_URL))
        signer = None
        if account is not None or address is not None:
            signer = Web3Signer(web3, address=address, account=account, **config.chain.transport_options)
        return cls(config.contracts.amm_address, web3=web3, signer=signer, config=config)

    @property
    def can_mutate(self) -> bool:
        return self.signer is not None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_pool(self, pool_id) -> Optional[Pool]:
        """
        Read a pool snapshot.

        Returns:
            Pool, or None when no such pool exists

        Raises:
            TransportError: The read failed
        """
        try:
            raw_id = parse_pool_id(pool_id)
        except ValueError as e:
            self.logger.debug(f"{e}; no pool can have this id")
            return None

        try:
            token0, token1, reserve0, reserve1, fee_bps, total_supply = await self.amm.call("getPool", raw_id)
        except CallRevertedError as e:
            self.logger.debug(f"getPool({encode_hex(raw_id)}) reverted: {e.reason}")
            return None

        pool = Pool(
            pool_id=encode_hex(raw_id),
            token0=to_checksum_address(token0),
            token1=to_checksum_address(token1),
            reserve0=to_internal(reserve0),
            reserve1=to_internal(reserve1),
            fee_bps=int(fee_bps),
            total_supply=to_internal(total_supply),
        )
        return pool if pool.exists else None

    async def get_user_liquidity(self, pool_id, account: str) -> int:
        """
        LP shares ``account`` holds in ``pool_id``; 0 when the pool is unknown.

        Raises:
            ValueError: ``account`` is not an address
            TransportError: The read failed
        """
        account = _checksum(account, "account")
        try:
            raw_id = parse_pool_id(pool_id)
        except ValueError:
            return 0

        try:
            balance = await self.amm.call("getLpBalance", raw_id, account)
        except CallRevertedError as e:
            self.logger.debug(f"getLpBalance({encode_hex(raw_id)}, {account}) reverted: {e.reason}")
            return 0
        return to_internal(balance)

    async def get_pool_id(self, token_a: str, token_b: str, fee_bps: int) -> str:
        """
        Pool identity the ledger assigns to a token pair and fee tier.

        The ledger orders the pair itself, so swapping the tokens gives the
        same id. Pure computation: the pool need not exist.
        """
        token_a = _checksum(token_a, "token")
        token_b = _checksum(token_b, "token")
        fee_bps = _validate_fee(fee_bps)
        pool_id = await self.amm.call("getPoolId", token_a, token_b, fee_bps)
        return encode_hex(pool_id)

    async def iter_pools(self, from_block: Optional[int] = None, to_block: Optional[int] = None) -> AsyncIterator[PoolCreatedEvent]:
        """Stream PoolCreated events in ledger order."""
        start = self.deployment_block if from_block is None else from_block
        async for event in self.scanner.scan(start, to_block):
            yield event

    async def get_all_pools(self, from_block: Optional[int] = None, to_block: Optional[int] = None) -> List[PoolCreatedEvent]:
        """
        Every PoolCreated event from ``from_block`` (default: the deployment
        block) through ``to_block`` (default: latest), in ledger order.

        Raises:
            LogRangeError: A log range request failed
        """
        start = self.deployment_block if from_block is None else from_block
        return await self.scanner.collect(start, to_block)

    async def get_known_pools(self, from_block: Optional[int] = None, to_block: Optional[int] = None) -> Dict[str, PoolCreatedEvent]:
        """Pool id to creation event, first creation wins."""
        return known_pools(await self.get_all_pools(from_block, to_block))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _require_signer(self, operation: str):
        if self.signer is None:
            raise CapabilityError(f"{operation} needs a signer; this client is read-only")

    def _signing_amm(self) -> ContractHandle:
        return get_amm_contract(self.address, ExecutionContext.signing(self.signer))

    def _new_run(self, operation: str, approvals_required: int) -> PipelineRun:
        return PipelineRun(
            operation=operation,
            approvals_required=approvals_required,
            on_transition=self.on_transition,
        )

    async def _run_pipeline(
        self,
        run: PipelineRun,
        approvals: Sequence[Tuple[str, int]],
        fn_name: str,
        args: Sequence[Any],
        event_name: str,
    ) -> Tuple[Receipt, Any]:
        """
        Approvals, then the primary transaction, then event extraction.

        Returns:
            The receipt and the decoded event (or NO_MATCH)
        """
        try:
            for token, amount in approvals:
                run.start_approval(token)
                state = await self.approvals.ensure_allowance(self.signer, token, self.address, amount)
                run.record_approval(state)

            run.submitted()
            receipt = await self.executor.execute(self.signer, self._signing_amm().prepare(fn_name, *args), fn_name)
            run.confirmed(receipt.transaction_hash)

            event = self.executor.extract(receipt, event_name, address=self.address)
            run.extracted()
        except Exception as e:
            run.fail(e)
            raise
        return receipt, event

    def _convert(self, run: PipelineRun, receipt: Receipt, event, event_name: str, converter):
        """Typed record for ``event``, or None when the receipt held nothing usable."""
        record = None
        if event is not NO_MATCH:
            try:
                record = converter(event)
            except (MissingField, AmountError) as e:
                self.logger.debug(f"{event_name} in {receipt.transaction_hash} is malformed: {e}")

        if record is None:
            self.logger.warning(
                f"⚠️ DecodeAnomaly: {run.operation} transaction {receipt.transaction_hash} "
                f"succeeded but no {event_name} event could be decoded from its "
                f"{len(receipt.logs)} log(s)"
            )
        run.done()
        return record

    async def create_pool(self, token_a: str, token_b: str, amount_a: int, amount_b: int) -> CreatePoolResult:
        """
        Create a pool for a token pair with initial reserves.

        Approves ``token_a`` then ``token_b`` for the AMM where needed.

        Returns:
            CreatePoolResult with the new pool id and minted liquidity

        Raises:
            CapabilityError, UserDeclinedError, CallRevertedError,
            OnChainRevertError, TransportError
        """
        self._require_signer("create_pool")
        token_a = _checksum(token_a, "token")
        token_b = _checksum(token_b, "token")
        amount_a = validate_amount(amount_a)
        amount_b = validate_amount(amount_b)

        run = self._new_run("create_pool", approvals_required=2)
        receipt, event = await self._run_pipeline(
            run,
            [(token_a, amount_a), (token_b, amount_b)],
            "createPool",
            (token_a, token_b, amount_a, amount_b),
            POOL_CREATED,
        )
        record = self._convert(run, receipt, event, POOL_CREATED, to_pool_created)
        if record is None:
            return CreatePoolResult(receipt.transaction_hash, decode_anomaly=True, approvals=tuple(run.approvals))

        self.logger.info(f"🆕 Created pool {record.pool_id} ({record.token0}/{record.token1})")
        return CreatePoolResult(
            receipt.transaction_hash,
            approvals=tuple(run.approvals),
            pool_id=record.pool_id,
            liquidity=record.initial_liquidity,
        )

    async def add_liquidity(self, pool_id, amount0_desired: int, amount1_desired: int) -> AddLiquidityResult:
        """
        Deposit into an existing pool.

        The pool is read first to learn its token order; token0 then token1
        are approved where needed.

        Raises:
            PoolNotFoundError: The pool does not exist; nothing was submitted
        """
        self._require_signer("add_liquidity")
        raw_id = parse_pool_id(pool_id)
        amount0_desired = validate_amount(amount0_desired)
        amount1_desired = validate_amount(amount1_desired)

        run = self._new_run("add_liquidity", approvals_required=2)
        try:
            pool = await self.get_pool(raw_id)
            if pool is None:
                raise PoolNotFoundError(encode_hex(raw_id))
        except Exception as e:
            run.fail(e)
            raise

        receipt, event = await self._run_pipeline(
            run,
            [(pool.token0, amount0_desired), (pool.token1, amount1_desired)],
            "addLiquidity",
            (raw_id, amount0_desired, amount1_desired),
            LIQUIDITY_ADDED,
        )
        record = self._convert(run, receipt, event, LIQUIDITY_ADDED, to_liquidity_added)
        if record is None:
            return AddLiquidityResult(receipt.transaction_hash, decode_anomaly=True, approvals=tuple(run.approvals))

        return AddLiquidityResult(
            receipt.transaction_hash,
            approvals=tuple(run.approvals),
            liquidity=record.liquidity_minted,
            amount0=record.amount0,
            amount1=record.amount1,
        )

    async def remove_liquidity(self, pool_id, liquidity: int) -> RemoveLiquidityResult:
        """Burn LP shares. LP shares are held by the AMM itself, so nothing is approved."""
        self._require_signer("remove_liquidity")
        raw_id = parse_pool_id(pool_id)
        liquidity = validate_amount(liquidity)

        run = self._new_run("remove_liquidity", approvals_required=0)
        receipt, event = await self._run_pipeline(
            run,
            [],
            "removeLiquidity",
            (raw_id, liquidity),
            LIQUIDITY_REMOVED,
        )
        record = self._convert(run, receipt, event, LIQUIDITY_REMOVED, to_liquidity_removed)
        if record is None:
            return RemoveLiquidityResult(receipt.transaction_hash, decode_anomaly=True)

        return RemoveLiquidityResult(
            receipt.transaction_hash,
            amount0=record.amount0,
            amount1=record.amount1,
        )

    async def swap(
        self,
        pool_id,
        token_in: str,
        amount_in: int,
        min_amount_out: int,
        recipient: Optional[str] = None,
    ) -> SwapResult:
        """
        Swap ``amount_in`` of ``token_in`` through a pool.

        Args:
            recipient: Receiver of the output, defaults to the signer

        Raises:
            CallRevertedError: The ledger refused, e.g. output below ``min_amount_out``
            OnChainRevertError: The swap was mined but reverted
        """
        self._require_signer("swap")
        raw_id = parse_pool_id(pool_id)
        token_in = _checksum(token_in, "token")
        amount_in = validate_amount(amount_in)
        min_amount_out = validate_amount(min_amount_out)
        recipient = _checksum(recipient, "recipient") if recipient is not None else self.signer.address
        if recipient == ZERO_ADDRESS:
            raise ValueError("Swap recipient cannot be the zero address")

        run = self._new_run("swap", approvals_required=1)
        receipt, event = await self._run_pipeline(
            run,
            [(token_in, amount_in)],
            "swap",
            (raw_id, token_in, amount_in, min_amount_out, recipient),
            SWAP,
        )
        record = self._convert(run, receipt, event, SWAP, to_swap)
        if record is None:
            return SwapResult(receipt.transaction_hash, decode_anomaly=True, approvals=tuple(run.approvals))

        self.logger.info(f"🔁 Swapped {amount_in} {token_in} for {record.amount_out} in {record.pool_id}")
        return SwapResult(
            receipt.transaction_hash,
            approvals=tuple(run.approvals),
            amount_out=record.amount_out,
        )
