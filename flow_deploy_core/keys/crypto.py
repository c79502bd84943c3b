"""Signature and hash algorithms supported for Flow account keys."""

import hashlib
from collections.abc import Callable
from enum import Enum

import ecdsa


class SignatureAlgorithm(str, Enum):
    """Signature algorithms accepted by Flow accounts."""

    ECDSA_P256 = "ECDSA_P256"
    ECDSA_SECP256K1 = "ECDSA_secp256k1"

    @classmethod
    def parse(cls, value: "str | SignatureAlgorithm") -> "SignatureAlgorithm":
        if isinstance(value, SignatureAlgorithm):
            return value
        for algo in cls:
            if algo.value.lower() == value.strip().lower():
                return algo
        raise ValueError(f"invalid signature algorithm: {value}")

    @property
    def curve(self) -> ecdsa.curves.Curve:
        return ecdsa.NIST256p if self is SignatureAlgorithm.ECDSA_P256 else ecdsa.SECP256k1


class HashAlgorithm(str, Enum):
    """Hash algorithms accepted by Flow accounts."""

    SHA2_256 = "SHA2_256"
    SHA3_256 = "SHA3_256"

    @classmethod
    def parse(cls, value: "str | HashAlgorithm") -> "HashAlgorithm":
        if isinstance(value, HashAlgorithm):
            return value
        for algo in cls:
            if algo.value.lower() == value.strip().lower():
                return algo
        raise ValueError(f"invalid hash algorithm: {value}")

    @property
    def hashfunc(self) -> Callable:
        return hashlib.sha256 if self is HashAlgorithm.SHA2_256 else hashlib.sha3_256

    def digest(self, message: bytes) -> bytes:
        return self.hashfunc(message).digest()


DEFAULT_SIGNATURE_ALGORITHM = SignatureAlgorithm.ECDSA_P256
DEFAULT_HASH_ALGORITHM = HashAlgorithm.SHA3_256


def decode_private_key(
    private_key_hex: str, sig_algo: SignatureAlgorithm
) -> ecdsa.SigningKey:
    """Decode a raw hex scalar into a signing key for the algorithm's curve.

    Raises:
        ValueError: If the hex is malformed or out of range for the curve
    """
    text = private_key_hex.strip()
    if text.startswith("0x"):
        text = text[2:]
    try:
        raw = bytes.fromhex(text)
    except ValueError as e:
        raise ValueError("private key is not valid hex") from e

    curve = sig_algo.curve
    if len(raw) != curve.baselen:
        raise ValueError(
            f"private key must be {curve.baselen} bytes for {sig_algo.value}, "
            f"got {len(raw)}"
        )
    try:
        return ecdsa.SigningKey.from_string(raw, curve=curve)
    except ecdsa.MalformedPointError as e:
        raise ValueError(f"private key is out of range for {sig_algo.value}") from e
