"""
Transaction executor.

Submits one prepared call, waits for inclusion and hands back the receipt.
Return values of a mined transaction cannot be read back directly; the
receipt's logs are the only record of what it did, so the executor also
extracts the event a caller is interested in.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Union

from eth_utils import encode_hex

from ..codec.events import DecodedEvent, EventDecoder, NoMatch
from ..errors import AmmClientError, ErrorHandler, OnChainRevertError, TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Receipt:
    """Confirmation record of an included transaction."""

    transaction_hash: str
    status: int
    block_number: Optional[int] = None
    logs: List[Mapping[str, Any]] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    @classmethod
    def from_web3(cls, raw: Mapping[str, Any]) -> "Receipt":
        tx_hash = raw["transactionHash"]
        return cls(
            transaction_hash=tx_hash if isinstance(tx_hash, str) else encode_hex(tx_hash),
            status=int(raw["status"]),
            block_number=raw.get("blockNumber"),
            logs=list(raw.get("logs") or []),
        )


def describe_call(bound_call) -> str:
    """Human-readable name of a prepared contract call."""
    return getattr(bound_call, "fn_name", None) or "transaction"


class TransactionExecutor:
    """
    Submits transactions and decodes their receipts.

    The executor holds no per-transaction state; one instance can serve any
    number of pipelines.
    """

    def __init__(self, decoder: EventDecoder):
        self.decoder = decoder
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.error_handler = ErrorHandler(self.logger)

    async def execute(self, signer, bound_call, description: Optional[str] = None) -> Receipt:
        """
        Submit ``bound_call`` through ``signer`` and wait for its receipt.

        Returns:
            Receipt of a successful transaction

        Raises:
            UserDeclinedError: The signer refused to sign
            CallRevertedError: The node rejected the call before submission
            TransportError: Submission or receipt wait failed (retryable)
            OnChainRevertError: The transaction was mined but reverted
        """
        description = description or describe_call(bound_call)

        try:
            tx_hash = await signer.send_transaction(bound_call)
        except AmmClientError:
            raise
        except Exception as e:
            raise self.error_handler.translate(e, {"operation": f"submit {description}"}) from e

        self.logger.info(f"📡 Submitted {description}: {tx_hash}")

        try:
            raw_receipt = await signer.wait_for_receipt(tx_hash)
        except AmmClientError:
            raise
        except Exception as e:
            # Submitted already: whatever went wrong, the hash is what the caller needs
            category = self.error_handler.classify_error(e)
            self.error_handler.log_error(
                e, category, {"operation": f"wait for {description}", "transaction_hash": tx_hash}
            )
            raise TransportError(
                f"Waiting for receipt of {description} ({tx_hash}) failed: {e}",
                retryable=True,
                transaction_hash=tx_hash,
            ) from e

        receipt = Receipt.from_web3(raw_receipt)
        if not receipt.succeeded:
            self.logger.error(f"❌ {description} reverted: {receipt.transaction_hash}")
            raise OnChainRevertError(receipt.transaction_hash)

        self.logger.info(
            f"✅ {description} confirmed: {receipt.transaction_hash} (block {receipt.block_number})"
        )
        return receipt

    def extract(self, receipt: Receipt, event_name: str, address: Optional[str] = None) -> Union[DecodedEvent, NoMatch]:
        """First ``event_name`` event in the receipt emitted by ``address``, or NO_MATCH."""
        return self.decoder.find(receipt.logs, event_name, address=address)
