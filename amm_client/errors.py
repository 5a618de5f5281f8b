"""
Error taxonomy for AMM client operations.

Every failure that leaves a pipeline has one of the kinds below. Raw
exceptions coming out of web3, the RPC transport or the wallet are translated
by ErrorHandler so callers only ever need to handle these classes.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from web3.exceptions import (
    BadFunctionCallOutput,
    ContractLogicError,
    TimeExhausted,
)

logger = logging.getLogger(__name__)

# EIP-1193 "User Rejected Request"
USER_REJECTED_CODE = 4001


class AmmClientError(Exception):
    """Base exception for AMM client errors."""

    def __init__(self, message: str):
        super().__init__(message)
        # Set by pipelines so callers can see which step last succeeded
        self.run = None


class CapabilityError(AmmClientError):
    """Raised when a mutating call is attempted through a read-only handle."""
    pass


class TransportError(AmmClientError):
    """Raised when the network or RPC endpoint fails. Retryable at caller discretion."""

    def __init__(self, message: str, retryable: bool = True, transaction_hash: Optional[str] = None):
        super().__init__(message)
        self.retryable = retryable
        # Set when the failure happened after a transaction was already submitted
        self.transaction_hash = transaction_hash


class UserDeclinedError(AmmClientError):
    """Raised when the signer refuses an interactive approval."""
    pass


class OnChainRevertError(AmmClientError):
    """Raised when a submitted transaction was included but reverted."""

    def __init__(self, transaction_hash: str, reason: Optional[str] = None):
        message = f"Transaction {transaction_hash} reverted"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.transaction_hash = transaction_hash
        self.reason = reason


class CallRevertedError(AmmClientError):
    """Raised when the node refuses a call because it would revert. Nothing was mined."""

    def __init__(self, reason: Optional[str] = None):
        super().__init__(f"Call would revert: {reason or 'no reason given'}")
        self.reason = reason


class PoolNotFoundError(AmmClientError):
    """Raised when a mutation targets a pool the ledger does not know."""

    def __init__(self, pool_id: str):
        super().__init__(f"Pool {pool_id} does not exist")
        self.pool_id = pool_id


def _rpc_error_payload(error: Exception) -> Optional[Dict[str, Any]]:
    """Dig the JSON-RPC error object out of a web3 or provider exception."""
    payload = getattr(error, "rpc_response", None)
    if isinstance(payload, dict):
        inner = payload.get("error", payload)
        return inner if isinstance(inner, dict) else None
    if error.args and isinstance(error.args[0], dict):
        return error.args[0]
    return None


class ErrorHandler:
    """
    Centralized error classification for client operations.

    Maps whatever the transport raised onto the client error taxonomy
    and logs it with context.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def classify_error(self, error: Exception) -> str:
        """
        Classify an error into a category for appropriate handling.

        Args:
            error: Exception to classify

        Returns:
            Error category string
        """
        payload = _rpc_error_payload(error)
        if payload and payload.get("code") == USER_REJECTED_CODE:
            return 'user_declined'

        error_str = str(error).lower()

        if any(keyword in error_str for keyword in ['user rejected', 'user denied', 'rejected by user']):
            return 'user_declined'

        if isinstance(error, (TimeExhausted, asyncio.TimeoutError)):
            return 'timeout'

        if isinstance(error, (ContractLogicError, BadFunctionCallOutput)):
            return 'revert'

        if isinstance(error, (ConnectionError, OSError)):
            return 'network'

        if any(keyword in error_str for keyword in ['execution reverted', 'revert']):
            return 'revert'

        if any(keyword in error_str for keyword in ['timeout', 'timed out']):
            return 'timeout'

        if any(keyword in error_str for keyword in ['connection', 'network', 'dns', '502', '503']):
            return 'network'

        return 'unknown'

    def translate(self, error: Exception, context: Dict[str, Any]) -> AmmClientError:
        """
        Convert a raw exception into the client error taxonomy.

        Errors that already belong to the taxonomy are returned unchanged.

        Args:
            error: Exception to translate
            context: Where it happened, used for logging

        Returns:
            AmmClientError subclass instance; raise it ``from error``
        """
        if isinstance(error, AmmClientError):
            return error

        category = self.classify_error(error)
        self.log_error(error, category, context)

        operation = context.get("operation", "operation")
        if category == 'user_declined':
            return UserDeclinedError(f"Signer declined {operation}")
        if category == 'revert':
            reason = getattr(error, "message", None) or str(error)
            return CallRevertedError(reason)
        if category == 'timeout':
            return TransportError(f"Timed out during {operation}: {error}", retryable=True)
        return TransportError(f"{operation} failed: {error}", retryable=True)

    def log_error(self, error: Exception, category: str, context: Dict[str, Any]):
        """
        Log error with appropriate level and context.

        Args:
            error: Exception to log
            category: Category returned by classify_error
            context: Additional context for logging
        """
        log_data = {
            'error_type': type(error).__name__,
            'error_category': category,
            'error_message': str(error),
            **context
        }

        if category == 'user_declined':
            self.logger.info("Signer declined request", extra=log_data)
        elif category == 'revert':
            self.logger.error("Contract execution failed", extra=log_data)
        else:
            self.logger.warning("Transport error", extra=log_data)


class LogRangeError(TransportError):
    """Raised when a log query over a block range fails."""

    def __init__(self, from_block: int, to_block: int, cause: str):
        super().__init__(f"eth_getLogs for blocks {from_block}-{to_block} failed: {cause}", retryable=True)
        self.from_block = from_block
        self.to_block = to_block
