"""Flow transaction body and its canonical signing messages.

Signatures are computed over the RLP encoding of the payload (or of the
payload plus payload signatures for the envelope), prefixed with the
transaction domain tag.
"""

import hashlib
from dataclasses import dataclass, field
from typing import Any, Final

import rlp

from flow_deploy_core.exceptions import (
    IncompleteTransactionError,
    MissingSignatureError,
)

from . import cadence
from .network import Address

DOMAIN_TAG_LENGTH: Final[int] = 32
TRANSACTION_DOMAIN_TAG: Final[bytes] = b"FLOW-V0.0-transaction".ljust(
    DOMAIN_TAG_LENGTH, b"\x00"
)
BLOCK_ID_LENGTH: Final[int] = 32


@dataclass
class ProposalKey:
    """Key whose sequence number orders the transaction."""

    address: Address
    key_index: int
    sequence_number: int


@dataclass
class TransactionSignature:
    """Signature by one account key."""

    address: Address
    key_index: int
    signature: bytes
    signer_index: int = 0


@dataclass
class Transaction:
    """Unsigned or signed Flow transaction."""

    script: str
    arguments: list[dict[str, Any]] = field(default_factory=list)
    reference_block_id: bytes = b""
    gas_limit: int = 9999
    proposal_key: ProposalKey | None = None
    payer: Address | None = None
    authorizers: list[Address] = field(default_factory=list)
    payload_signatures: list[TransactionSignature] = field(default_factory=list)
    envelope_signatures: list[TransactionSignature] = field(default_factory=list)

    def encoded_arguments(self) -> list[bytes]:
        return [cadence.encode_argument(arg) for arg in self.arguments]

    def missing_fields(self) -> list[str]:
        return [
            name
            for name, value in (
                ("proposal_key", self.proposal_key),
                ("payer", self.payer),
                ("reference_block_id", self.reference_block_id),
            )
            if not value
        ]

    def _payload_fields(self) -> list[Any]:
        missing = self.missing_fields()
        if missing:
            raise IncompleteTransactionError(missing)

        return [
            self.script.encode(),
            self.encoded_arguments(),
            self.reference_block_id.rjust(BLOCK_ID_LENGTH, b"\x00"),
            self.gas_limit,
            self.proposal_key.address.raw,
            self.proposal_key.key_index,
            self.proposal_key.sequence_number,
            self.payer.raw,
            [authorizer.raw for authorizer in self.authorizers],
        ]

    @staticmethod
    def _signature_fields(signatures: list[TransactionSignature]) -> list[Any]:
        return [[s.signer_index, s.key_index, s.signature] for s in signatures]

    def signers(self) -> list[Address]:
        """Accounts required to sign: proposer, payer then authorizers, deduplicated."""
        ordered: list[Address] = []
        candidates = [self.proposal_key.address if self.proposal_key else None]
        candidates += [self.payer, *self.authorizers]
        for address in candidates:
            if address is not None and address not in ordered:
                ordered.append(address)
        return ordered

    def signer_index(self, address: Address) -> int:
        try:
            return self.signers().index(address)
        except ValueError as e:
            raise MissingSignatureError(address.hex()) from e

    def payload_message(self) -> bytes:
        return TRANSACTION_DOMAIN_TAG + rlp.encode(self._payload_fields())

    def envelope_message(self) -> bytes:
        return TRANSACTION_DOMAIN_TAG + rlp.encode(
            [self._payload_fields(), self._signature_fields(self.payload_signatures)]
        )

    def add_envelope_signature(
        self, address: Address, key_index: int, signature: bytes
    ) -> "Transaction":
        self.envelope_signatures.append(
            TransactionSignature(
                address=address,
                key_index=key_index,
                signature=signature,
                signer_index=self.signer_index(address),
            )
        )
        return self

    def id(self) -> bytes:
        """Transaction id: SHA3-256 over the canonical signed encoding."""
        encoded = rlp.encode(
            [
                self._payload_fields(),
                self._signature_fields(self.payload_signatures),
                self._signature_fields(self.envelope_signatures),
            ]
        )
        return hashlib.sha3_256(encoded).digest()
