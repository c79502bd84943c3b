"""Chain data returned by a gateway."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any

from flow_deploy_core.exceptions import (
    MissingExpectedEventError,
    TransactionExecutionError,
)

from .network import Address

ACCOUNT_CREATED_EVENT = "flow.AccountCreated"


class TransactionStatus(IntEnum):
    """Transaction lifecycle as reported by access nodes."""

    UNKNOWN = 0
    PENDING = 1
    FINALIZED = 2
    EXECUTED = 3
    SEALED = 4
    EXPIRED = 5

    @classmethod
    def from_name(cls, name: str) -> "TransactionStatus":
        try:
            return cls[name.upper()]
        except KeyError:
            return cls.UNKNOWN


@dataclass
class AccountKeyInfo:
    """Public key registered on an account."""

    index: int
    public_key: bytes
    signature_algorithm: str
    hash_algorithm: str
    sequence_number: int
    weight: int = 1000
    revoked: bool = False


@dataclass
class Account:
    """On-chain account state."""

    address: Address
    balance: int = 0
    keys: list[AccountKeyInfo] = field(default_factory=list)
    contracts: dict[str, bytes] = field(default_factory=dict)

    def key(self, index: int) -> AccountKeyInfo | None:
        for key in self.keys:
            if key.index == index:
                return key
        return None


@dataclass
class Block:
    """Block header fields the core relies on."""

    id: bytes
    parent_id: bytes
    height: int
    timestamp: datetime | None = None
    collection_ids: list[bytes] = field(default_factory=list)


@dataclass
class Collection:
    """Collection of transactions included in a block."""

    id: bytes
    transaction_ids: list[bytes] = field(default_factory=list)


@dataclass
class Event:
    """Event emitted by a transaction."""

    type: str
    transaction_id: bytes
    transaction_index: int
    event_index: int
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class BlockEvents:
    """Events of one type found in a single block."""

    block_id: bytes
    height: int
    events: list[Event] = field(default_factory=list)
    timestamp: datetime | None = None


@dataclass
class TransactionResult:
    """Result of a submitted transaction."""

    transaction_id: bytes
    status: TransactionStatus
    error_message: str = ""
    events: list[Event] = field(default_factory=list)
    block_id: bytes | None = None
    computation_used: int = 0

    @property
    def failed(self) -> bool:
        return bool(self.error_message)

    @property
    def is_sealed(self) -> bool:
        return self.status == TransactionStatus.SEALED

    def raise_for_error(self) -> "TransactionResult":
        """Raise TransactionExecutionError if execution failed."""
        if self.error_message:
            raise TransactionExecutionError(
                self.transaction_id.hex(), self.error_message
            )
        return self

    def find_events(self, event_type: str) -> list[Event]:
        return [event for event in self.events if event.type == event_type]

    def expect_event(self, event_type: str) -> Event:
        """Get the first event of a type.

        Raises:
            MissingExpectedEventError: If no such event was emitted
        """
        events = self.find_events(event_type)
        if not events:
            raise MissingExpectedEventError(event_type)
        return events[0]

    def created_address(self) -> Address:
        """Get the address carried by the AccountCreated event."""
        event = self.expect_event(ACCOUNT_CREATED_EVENT)
        created = event.payload.get("address")
        if not isinstance(created, Address):
            raise MissingExpectedEventError(ACCOUNT_CREATED_EVENT)
        return created
