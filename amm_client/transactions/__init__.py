"""
Transaction submission: signing, execution and token approvals.
"""

from .approvals import ApprovalOrchestrator, ensure_allowance
from .executor import Receipt, TransactionExecutor
from .signer import Signer, Web3Signer

__all__ = [
    'ApprovalOrchestrator',
    'ensure_allowance',
    'Receipt',
    'TransactionExecutor',
    'Signer',
    'Web3Signer',
]
