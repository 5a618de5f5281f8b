"""
Ledger log scanners.

KISS: each scanner replays one event stream of one contract.
"""

from .base import BaseLogScanner, ScanResult
from .pool_scanner import PoolScanner

__all__ = [
    'BaseLogScanner',
    'ScanResult',
    'PoolScanner',
]
