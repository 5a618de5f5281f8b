"""
Event decoder.

Matches raw log entries against the event shapes of an ABI. A log that does
not parse, or parses to a different event, is reported as NO_MATCH rather
than an error: receipts routinely interleave logs from other contracts
(token transfers, approvals) with the one a caller is after.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import encode_hex, event_abi_to_log_topic, to_checksum_address
from hexbytes import HexBytes

from ..contracts.registry import event_entries

logger = logging.getLogger(__name__)


class LogDecodeError(Exception):
    """Raised internally when a log cannot be parsed against the ABI."""
    pass


class MissingField(LookupError):
    """Raised when no extraction strategy can locate a field of a decoded event."""
    pass


class NoMatch:
    """Sentinel for "this log is not the event you asked for"."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_MATCH"


NO_MATCH = NoMatch()


@dataclass(frozen=True)
class DecodedEvent:
    """
    A log parsed against an event ABI.

    Attributes:
        name: Event name
        args: Values keyed by input name; unnamed inputs are absent
        values: All values in declaration order
        address: Emitting contract
        block_number: Block the log belongs to
        log_index: Position of the log within its block
        transaction_hash: Transaction that emitted the log
    """

    name: str
    args: Dict[str, Any]
    values: Tuple[Any, ...]
    address: Optional[str] = None
    block_number: Optional[int] = None
    log_index: Optional[int] = None
    transaction_hash: Optional[str] = None

    @property
    def position(self) -> Tuple[int, int]:
        """Ledger ordering key."""
        return (self.block_number or 0, self.log_index or 0)


@dataclass(frozen=True)
class FieldSpec:
    """Where to find a field: by input name first, then by declaration index."""

    name: str
    index: int


_MISSING = object()


def by_name(event: DecodedEvent, field_spec: FieldSpec) -> Any:
    return event.args.get(field_spec.name, _MISSING)


def by_index(event: DecodedEvent, field_spec: FieldSpec) -> Any:
    if 0 <= field_spec.index < len(event.values):
        return event.values[field_spec.index]
    return _MISSING


ExtractionStrategy = Callable[[DecodedEvent, FieldSpec], Any]

# Interface descriptions differ in completeness across deployments, so named
# access falls back to positional access.
EXTRACTION_STRATEGIES: Tuple[ExtractionStrategy, ...] = (by_name, by_index)


def extract_field(
    event: DecodedEvent,
    field_spec: FieldSpec,
    strategies: Sequence[ExtractionStrategy] = EXTRACTION_STRATEGIES,
) -> Any:
    """
    Return the first value any strategy finds for ``field_spec``.

    Raises:
        MissingField: Every strategy missed
    """
    for strategy in strategies:
        value = strategy(event, field_spec)
        if value is not _MISSING:
            return value
    raise MissingField(f"{event.name} has no field '{field_spec.name}' (index {field_spec.index})")


def _is_dynamic(abi_type: str) -> bool:
    return abi_type in ("string", "bytes") or abi_type.endswith("]") or abi_type.startswith("(")


def _normalize(abi_type: str, value: Any) -> Any:
    if abi_type == "address":
        return to_checksum_address(value)
    if abi_type.startswith("bytes") and isinstance(value, (bytes, bytearray)):
        return encode_hex(value)
    return value


def _same_address(emitter: Any, address: str) -> bool:
    if not emitter:
        return False
    try:
        return to_checksum_address(emitter) == to_checksum_address(address)
    except (TypeError, ValueError):
        return False


def _hex_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return encode_hex(value)


class EventDecoder:
    """
    Decodes logs against the events of one ABI.

    Events are indexed by their topic0 signature hash, so a log is matched
    by signature before any data is decoded.
    """

    def __init__(self, abi: List[Dict[str, Any]]):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._events: Dict[bytes, Dict[str, Any]] = {}
        for entry in event_entries(abi):
            if entry.get("anonymous"):
                continue
            self._events[bytes(event_abi_to_log_topic(entry))] = entry

    @property
    def event_names(self) -> List[str]:
        return [entry["name"] for entry in self._events.values()]

    def topic_for(self, event_name: str) -> HexBytes:
        """topic0 of ``event_name``, for log filters."""
        for topic, entry in self._events.items():
            if entry["name"] == event_name:
                return HexBytes(topic)
        raise ValueError(f"Event '{event_name}' not found in ABI")

    def decode(self, log: Mapping[str, Any], expected_event_name: Optional[str] = None) -> Union[DecodedEvent, NoMatch]:
        """
        Parse ``log`` and compare it with ``expected_event_name``.

        Returns:
            DecodedEvent on a match, NO_MATCH otherwise
        """
        try:
            event = self._parse(log)
        except (LogDecodeError, DecodingError, KeyError, TypeError, ValueError) as e:
            self.logger.debug(f"Log did not decode: {e}")
            return NO_MATCH

        if expected_event_name is not None and event.name != expected_event_name:
            return NO_MATCH
        return event

    def find(
        self,
        logs: Iterable[Mapping[str, Any]],
        expected_event_name: str,
        address: Optional[str] = None,
    ) -> Union[DecodedEvent, NoMatch]:
        """
        First log in ``logs`` that decodes as ``expected_event_name``.

        With ``address`` set, logs emitted by any other contract are skipped,
        even when they carry the same event signature.
        """
        for log in logs:
            if address is not None and not _same_address(log.get("address"), address):
                continue
            event = self.decode(log, expected_event_name)
            if event is not NO_MATCH:
                return event
        return NO_MATCH

    def _parse(self, log: Mapping[str, Any]) -> DecodedEvent:
        topics = [HexBytes(topic) for topic in log["topics"]]
        if not topics:
            raise LogDecodeError("Log has no topics")

        entry = self._events.get(bytes(topics[0]))
        if entry is None:
            raise LogDecodeError(f"Unknown event signature {encode_hex(topics[0])}")

        inputs = entry["inputs"]
        indexed_inputs = [inp for inp in inputs if inp.get("indexed")]
        data_inputs = [inp for inp in inputs if not inp.get("indexed")]

        if len(topics) - 1 != len(indexed_inputs):
            raise LogDecodeError(
                f"{entry['name']} expects {len(indexed_inputs)} indexed topics, got {len(topics) - 1}"
            )

        indexed_values = iter([
            self._decode_topic(inp["type"], topic)
            for inp, topic in zip(indexed_inputs, topics[1:])
        ])

        data = bytes(HexBytes(log.get("data") or b""))
        data_values = iter(decode([inp["type"] for inp in data_inputs], data) if data_inputs else ())

        values = []
        for inp in inputs:
            raw = next(indexed_values) if inp.get("indexed") else next(data_values)
            values.append(_normalize(inp["type"], raw))

        args = {inp["name"]: value for inp, value in zip(inputs, values) if inp.get("name")}

        return DecodedEvent(
            name=entry["name"],
            args=args,
            values=tuple(values),
            address=log.get("address"),
            block_number=log.get("blockNumber"),
            log_index=log.get("logIndex"),
            transaction_hash=_hex_or_none(log.get("transactionHash")),
        )

    @staticmethod
    def _decode_topic(abi_type: str, topic: HexBytes) -> Any:
        # Indexed dynamic values are stored as their keccak hash
        if _is_dynamic(abi_type):
            return bytes(topic)
        return decode([abi_type], bytes(topic))[0]
