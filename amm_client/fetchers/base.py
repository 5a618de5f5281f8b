"""
Base classes for ledger log scanners.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Tuple
import logging

from ..errors import AmmClientError, ErrorHandler, LogRangeError

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Result from a scan over a block range."""
    success: bool
    events: List[Any] = field(default_factory=list)
    start_block: Optional[int] = None
    end_block: Optional[int] = None
    # Last block whose logs are fully reflected in ``events``
    last_block: Optional[int] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        """Check if scan failed."""
        return not self.success

    @property
    def next_start_block(self) -> Optional[int]:
        """Where an incremental follow-up scan should start."""
        if self.last_block is None:
            return self.start_block
        return self.last_block + 1


class BaseLogScanner(ABC):
    """
    Abstract base class for log scanners.

    Splits a block range into fixed-size requests and replays them in order.
    No retries: a failed range is reported to the caller, who decides
    whether to narrow it or give up.
    """

    def __init__(self, web3, address: str, blocks_per_request: int = 10000):
        """
        Initialize scanner.

        Args:
            web3: AsyncWeb3 instance
            address: Contract whose logs are scanned
            blocks_per_request: Block span of each eth_getLogs request
        """
        if blocks_per_request <= 0:
            raise ValueError(f"blocks_per_request must be positive, got: {blocks_per_request}")
        self.web3 = web3
        self.address = address
        self.blocks_per_request = blocks_per_request
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")
        self.error_handler = ErrorHandler(self.logger)

    @abstractmethod
    def log_filter(self, from_block: int, to_block: int) -> Dict[str, Any]:
        """
        Build the eth_getLogs filter for one request.

        Returns:
            dict: Filter params
        """
        pass

    async def get_latest_block(self) -> int:
        """
        Get the latest block number.

        Returns:
            int: Latest block number
        """
        try:
            return await self.web3.eth.block_number
        except Exception as e:
            raise self.error_handler.translate(e, {"operation": "eth_blockNumber"}) from e

    def chunk_ranges(self, start_block: int, end_block: int) -> List[Tuple[int, int]]:
        """Split [start_block, end_block] into inclusive request ranges."""
        return [
            (chunk_start, min(chunk_start + self.blocks_per_request - 1, end_block))
            for chunk_start in range(start_block, end_block + 1, self.blocks_per_request)
        ]

    async def fetch_logs(self, from_block: int, to_block: int) -> List[Mapping[str, Any]]:
        """
        Fetch raw logs for one inclusive block range.

        Raises:
            LogRangeError: The request failed
        """
        try:
            return list(await self.web3.eth.get_logs(self.log_filter(from_block, to_block)))
        except AmmClientError:
            raise
        except Exception as e:
            self.error_handler.log_error(
                e, self.error_handler.classify_error(e),
                {"operation": "eth_getLogs", "from_block": from_block, "to_block": to_block},
            )
            raise LogRangeError(from_block, to_block, str(e)) from e

    async def iter_chunks(
        self, start_block: int, end_block: Optional[int] = None
    ) -> AsyncIterator[Tuple[int, List[Mapping[str, Any]]]]:
        """
        Yield ``(chunk_end, raw_logs)`` for each request in block order.

        ``end_block`` defaults to the latest block at the time of the call.
        """
        if start_block < 0:
            raise ValueError(f"start_block must not be negative, got: {start_block}")
        if end_block is None:
            end_block = await self.get_latest_block()
        if end_block < start_block:
            self.logger.debug(f"Empty range {start_block}-{end_block}, nothing to scan")
            return

        ranges = self.chunk_ranges(start_block, end_block)
        self.logger.info(
            f"Scanning {self.address} blocks {start_block}-{end_block} in {len(ranges)} requests"
        )
        for from_block, to_block in ranges:
            logs = await self.fetch_logs(from_block, to_block)
            self.logger.debug(f"Blocks {from_block}-{to_block}: {len(logs)} logs")
            yield to_block, logs

    def log_result(self, result: ScanResult) -> None:
        """Log scan result."""
        if result.success:
            self.logger.info(
                f"Scan completed: {len(result.events)} events "
                f"({result.start_block}-{result.end_block})"
            )
        else:
            self.logger.error(f"Scan failed after block {result.last_block}: {result.error}")
