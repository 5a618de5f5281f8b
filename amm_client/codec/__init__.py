"""
Wire codecs: exact amount conversion and event log decoding.
"""

from .amounts import UINT256_MAX, AmountError, to_internal, to_wire, validate_amount
from .events import (
    NO_MATCH,
    NoMatch,
    DecodedEvent,
    EventDecoder,
    FieldSpec,
    MissingField,
    extract_field,
)

__all__ = [
    'UINT256_MAX',
    'AmountError',
    'to_internal',
    'to_wire',
    'validate_amount',
    'NO_MATCH',
    'NoMatch',
    'DecodedEvent',
    'EventDecoder',
    'FieldSpec',
    'MissingField',
    'extract_field',
]
