"""Receipt log decoding for manga-deployments library."""

import logging
from typing import Any, Dict, List, Optional, Union

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError

from .abi import canonical_type, event_entries, event_topic, normalize_value
from .exceptions import EventNotFoundError
from .types import ContractDescriptor, DomainEvent, RawLog, TransactionResult, UnmatchedLog

logger = logging.getLogger(__name__)

LogMatch = Union[DomainEvent, UnmatchedLog]


def _is_hashed_when_indexed(abi_type: str) -> bool:
    # Dynamic types are stored in topics as their keccak hash
    return abi_type in ("string", "bytes") or abi_type.endswith("]") or abi_type.startswith("(")


class EventDecoder:
    """
    Decodes receipt logs against the events declared in one contract's ABI.

    Logs whose first topic matches no known event, or whose payload does not
    decode against it, are reported as UnmatchedLog and skipped by ``decode``;
    they usually belong to other contracts touched by the same transaction.
    """

    def __init__(self, descriptor: ContractDescriptor, address: Optional[str] = None):
        """
        Args:
            descriptor: Contract whose events should be recognized
            address: When given, only logs emitted by this address match
        """
        self._descriptor = descriptor
        self._address = address.lower() if address else None
        self._by_topic: Dict[bytes, Dict[str, Any]] = {
            event_topic(entry): entry for entry in event_entries(descriptor.abi)
        }

    def event_names(self) -> List[str]:
        return [entry["name"] for entry in self._by_topic.values()]

    def topic_of(self, event_name: str) -> bytes:
        """
        Raises:
            EventNotFoundError: If event not found in contract ABI
        """
        for topic, entry in self._by_topic.items():
            if entry["name"] == event_name:
                return topic
        raise EventNotFoundError(
            f"Event '{event_name}' not found in {self._descriptor.name} ABI"
        )

    @staticmethod
    def _decode_fields(entry: Dict[str, Any], log: RawLog) -> Dict[str, Any]:
        plain = [p for p in entry["inputs"] if not p.get("indexed")]
        plain_values = abi_decode([canonical_type(p) for p in plain], log.data) if plain else ()
        topic_values = iter(log.topics[1:])
        plain_iter = iter(plain_values)

        fields: Dict[str, Any] = {}
        for position, param in enumerate(entry["inputs"]):
            abi_type = canonical_type(param)
            key = param.get("name") or f"arg{position}"
            if param.get("indexed"):
                raw = next(topic_values)
                if _is_hashed_when_indexed(abi_type):
                    fields[key] = "0x" + raw.hex()
                else:
                    fields[key] = normalize_value(abi_type, abi_decode([abi_type], raw)[0])
            else:
                fields[key] = normalize_value(abi_type, next(plain_iter))
        return fields

    def match(self, log: RawLog) -> LogMatch:
        """Decode one log, or report it as unmatched."""
        topic = log.topics[0] if log.topics else None
        entry = self._by_topic.get(topic) if topic is not None else None

        if entry is None or (self._address and log.address.lower() != self._address):
            return UnmatchedLog(log_index=log.log_index, topic=topic)

        indexed = [p for p in entry["inputs"] if p.get("indexed")]
        if len(log.topics) != len(indexed) + 1:
            # Same signature, different indexing: not this contract's event
            return UnmatchedLog(log_index=log.log_index, topic=topic)

        try:
            fields = self._decode_fields(entry, log)
        except DecodingError as e:
            logger.debug(
                "Log %d has the %s signature but undecodable data: %s", log.log_index, entry["name"], e
            )
            return UnmatchedLog(log_index=log.log_index, topic=topic)

        return DomainEvent(
            name=entry["name"],
            fields=fields,
            transaction_hash=log.transaction_hash,
            log_index=log.log_index,
        )

    def decode(self, result: Union[TransactionResult, List[RawLog]]) -> List[DomainEvent]:
        """
        Decode every known event in emission order.

        Args:
            result: Confirmed transaction, or its raw logs

        Returns:
            DomainEvents ordered by log index
        """
        logs = result.logs if isinstance(result, TransactionResult) else result
        events: List[DomainEvent] = []
        for log in sorted(logs, key=lambda entry: entry.log_index):
            match self.match(log):
                case DomainEvent() as event:
                    events.append(event)
                case UnmatchedLog(log_index=index):
                    logger.debug("Skipping unmatched log %d", index)
        return events

    def decode_named(
        self, result: Union[TransactionResult, List[RawLog]], event_name: str
    ) -> List[DomainEvent]:
        """Decode and keep only events called ``event_name``."""
        self.topic_of(event_name)
        return [event for event in self.decode(result) if event.name == event_name]
