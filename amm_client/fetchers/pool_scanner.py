"""
Pool discovery by replaying the AMM's PoolCreated events.

The ledger is the only record of which pools exist. The scanner re-reads the
creation stream over a block range every time it is asked; callers that want
incremental discovery carry the last scanned block forward themselves.
"""

from typing import Any, AsyncIterator, Dict, List, Optional

from eth_utils import encode_hex, to_checksum_address

from ..codec.events import NO_MATCH, EventDecoder
from ..codec.records import POOL_CREATED, to_pool_created
from ..contracts.registry import AMM_ABI_NAME, load_abi
from ..errors import TransportError
from ..pool_types import PoolCreatedEvent
from .base import BaseLogScanner, ScanResult


class PoolScanner(BaseLogScanner):
    """
    Replays PoolCreated logs of one AMM deployment in ledger order.

    Events come out exactly as the node returned them: no sorting, no
    deduplication. Folds such as "latest pool for a pair" rely on that order.
    """

    def __init__(
        self,
        web3,
        amm_address: str,
        blocks_per_request: int = 10000,
        decoder: Optional[EventDecoder] = None,
    ):
        super().__init__(web3, to_checksum_address(amm_address), blocks_per_request)
        self.decoder = decoder or EventDecoder(load_abi(AMM_ABI_NAME))
        self._topic = encode_hex(self.decoder.topic_for(POOL_CREATED))

    def log_filter(self, from_block: int, to_block: int) -> Dict[str, Any]:
        return {
            "address": self.address,
            "topics": [self._topic],
            "fromBlock": from_block,
            "toBlock": to_block,
        }

    def _decode_chunk(self, logs) -> List[PoolCreatedEvent]:
        events = []
        for log in logs:
            decoded = self.decoder.decode(log, POOL_CREATED)
            if decoded is NO_MATCH:
                self.logger.warning(
                    f"Skipping undecodable PoolCreated log at block {log.get('blockNumber')} "
                    f"index {log.get('logIndex')}"
                )
                continue
            events.append(to_pool_created(decoded))
        return events

    async def scan(self, start_block: int = 0, end_block: Optional[int] = None) -> AsyncIterator[PoolCreatedEvent]:
        """
        Yield every PoolCreatedEvent in [start_block, end_block] in ledger order.

        Args:
            start_block: First block to scan
            end_block: Last block to scan, defaults to the latest block

        Raises:
            LogRangeError: A range request failed; nothing is retried
        """
        async for _, logs in self.iter_chunks(start_block, end_block):
            for event in self._decode_chunk(logs):
                yield event

    async def collect(self, start_block: int = 0, end_block: Optional[int] = None) -> List[PoolCreatedEvent]:
        """Run ``scan`` to completion and return the events as a list."""
        return [event async for event in self.scan(start_block, end_block)]

    async def scan_with_checkpoint(self, start_block: int = 0, end_block: Optional[int] = None) -> ScanResult:
        """
        Scan a range and report how far it got.

        On a transport failure the result is marked failed, keeps the events of
        every fully scanned request, and ``next_start_block`` points at the
        first block that still needs scanning.
        """
        result = ScanResult(success=True, start_block=start_block, end_block=end_block)
        try:
            if result.end_block is None:
                result.end_block = await self.get_latest_block()
            async for chunk_end, logs in self.iter_chunks(start_block, result.end_block):
                result.events.extend(self._decode_chunk(logs))
                result.last_block = chunk_end
        except TransportError as e:
            result.success = False
            result.error = str(e)
        result.metadata["address"] = self.address
        self.log_result(result)
        return result
