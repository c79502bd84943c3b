"""Runtime account keys built from configuration."""

import logging
from abc import ABC, abstractmethod
from typing import Any

import ecdsa

from flow_deploy_core.config.exceptions import (
    InvalidKeyTypeError,
    InvalidSemanticsError,
    MissingContextFieldError,
)
from flow_deploy_core.config.model import (
    KEY_LOCATION_FIELD,
    KMS_RESOURCE_FIELD,
    LEGACY_KMS_RESOURCE_FIELDS,
    PRIVATE_KEY_FIELD,
    AccountKeyConfig,
    KeyType,
)
from flow_deploy_core.exceptions import SigningError
from flow_deploy_core.utils.filesystem import Filesystem, LocalFilesystem

from .crypto import HashAlgorithm, SignatureAlgorithm, decode_private_key
from .signers import KMS_RESOURCE_PATTERN, InMemorySigner, KmsSigner, Signer

logger = logging.getLogger(__name__)


class AccountKey(ABC):
    """Key of an account able to produce a signer."""

    def __init__(
        self,
        key_type: KeyType,
        index: int,
        sig_algo: SignatureAlgorithm,
        hash_algo: HashAlgorithm,
    ) -> None:
        self.type = key_type
        self.index = index
        self.sig_algo = sig_algo
        self.hash_algo = hash_algo

    @abstractmethod
    def signer(self) -> Signer:
        """Create a signer for this key."""

    @abstractmethod
    def to_config(self) -> AccountKeyConfig:
        """Project the key back to its configuration form."""

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(index={self.index}, "
            f"sig_algo={self.sig_algo.value}, hash_algo={self.hash_algo.value})"
        )


class HexAccountKey(AccountKey):
    """Key whose private scalar is held in memory."""

    def __init__(
        self,
        index: int,
        sig_algo: SignatureAlgorithm,
        hash_algo: HashAlgorithm,
        private_key: ecdsa.SigningKey,
    ) -> None:
        super().__init__(KeyType.HEX, index, sig_algo, hash_algo)
        self._private_key = private_key

    @classmethod
    def from_hex(
        cls,
        private_key_hex: str,
        index: int = 0,
        sig_algo: SignatureAlgorithm = SignatureAlgorithm.ECDSA_P256,
        hash_algo: HashAlgorithm = HashAlgorithm.SHA3_256,
    ) -> "HexAccountKey":
        try:
            private_key = decode_private_key(private_key_hex, sig_algo)
        except ValueError as e:
            raise InvalidSemanticsError(f"invalid private key: {e}") from e
        return cls(index, sig_algo, hash_algo, private_key)

    def signer(self) -> Signer:
        return InMemorySigner(self._private_key, self.sig_algo, self.hash_algo)

    def private_key_hex(self) -> str:
        return self._private_key.to_string().hex()

    def public_key(self) -> bytes:
        """Uncompressed public point without the 0x04 prefix, as Flow stores it."""
        return self._private_key.get_verifying_key().to_string()

    def to_config(self) -> AccountKeyConfig:
        return AccountKeyConfig(
            type=KeyType.HEX,
            index=self.index,
            signature_algorithm=self.sig_algo,
            hash_algorithm=self.hash_algo,
            context={PRIVATE_KEY_FIELD: self.private_key_hex()},
        )


class KmsAccountKey(AccountKey):
    """Key held by Google Cloud KMS; only the resource id lives in process."""

    def __init__(
        self,
        index: int,
        sig_algo: SignatureAlgorithm,
        hash_algo: HashAlgorithm,
        resource_id: str,
        client: Any | None = None,
    ) -> None:
        super().__init__(KeyType.GOOGLE_KMS, index, sig_algo, hash_algo)
        self.resource_id = resource_id
        self._client = client

    def signer(self) -> Signer:
        return KmsSigner(
            self.resource_id,
            signature_algorithm=self.sig_algo,
            hash_algorithm=self.hash_algo,
            client=self._client,
        )

    def to_config(self) -> AccountKeyConfig:
        return AccountKeyConfig(
            type=KeyType.GOOGLE_KMS,
            index=self.index,
            signature_algorithm=self.sig_algo,
            hash_algorithm=self.hash_algo,
            context={KMS_RESOURCE_FIELD: self.resource_id},
        )


class FileAccountKey(AccountKey):
    """Key whose hex private scalar is stored in a separate file.

    Only the file location is kept in configuration. The key is read through
    the filesystem the first time it is needed and then held in memory.
    """

    def __init__(
        self,
        index: int,
        sig_algo: SignatureAlgorithm,
        hash_algo: HashAlgorithm,
        location: str,
        filesystem: Filesystem | None = None,
    ) -> None:
        super().__init__(KeyType.FILE, index, sig_algo, hash_algo)
        self.location = location
        self.filesystem = filesystem or LocalFilesystem()
        self._private_key: ecdsa.SigningKey | None = None

    def private_key(self) -> ecdsa.SigningKey:
        """Load the private key from its file.

        Raises:
            SigningError: If the file cannot be read or does not hold a valid key
        """
        if self._private_key is None:
            try:
                raw = self.filesystem.read_file(self.location)
            except OSError as e:
                raise SigningError(
                    f"could not load the key from {self.location}: {e}"
                ) from e
            try:
                self._private_key = decode_private_key(
                    raw.decode("utf-8").strip(), self.sig_algo
                )
            except ValueError as e:
                raise SigningError(
                    f"could not decode the key from {self.location}: {e}"
                ) from e
            logger.debug("Loaded key %d from %s", self.index, self.location)
        return self._private_key

    def signer(self) -> Signer:
        return InMemorySigner(self.private_key(), self.sig_algo, self.hash_algo)

    def public_key(self) -> bytes:
        return self.private_key().get_verifying_key().to_string()

    def to_config(self) -> AccountKeyConfig:
        return AccountKeyConfig(
            type=KeyType.FILE,
            index=self.index,
            signature_algorithm=self.sig_algo,
            hash_algorithm=self.hash_algo,
            context={KEY_LOCATION_FIELD: self.location},
        )


def _context_value(config: AccountKeyConfig, *fields: str) -> str:
    for name in fields:
        value = config.context.get(name)
        if value:
            return value
    raise MissingContextFieldError(fields[0])


def new_account_key(
    config: AccountKeyConfig, filesystem: Filesystem | None = None
) -> AccountKey:
    """Create a runtime key from its configuration.

    Args:
        config: Key configuration
        filesystem: Filesystem file keys are read from, the local one by default

    Returns:
        Account key for the configured backend

    Raises:
        InvalidKeyTypeError: If the key type is not supported
        MissingContextFieldError: If the backend's context field is absent
        InvalidSemanticsError: If the context value is malformed, or the hash
            algorithm is not supported by the backend
    """
    if config.type == KeyType.HEX:
        private_key_hex = _context_value(config, PRIVATE_KEY_FIELD)
        return HexAccountKey.from_hex(
            private_key_hex,
            index=config.index,
            sig_algo=config.signature_algorithm,
            hash_algo=config.hash_algorithm,
        )

    if config.type == KeyType.GOOGLE_KMS:
        resource_id = _context_value(
            config, KMS_RESOURCE_FIELD, *LEGACY_KMS_RESOURCE_FIELDS
        )
        if not KMS_RESOURCE_PATTERN.match(resource_id):
            raise InvalidSemanticsError(f"invalid KMS key resource id: {resource_id}")
        if config.hash_algorithm is not HashAlgorithm.SHA2_256:
            raise InvalidSemanticsError(
                f"KMS keys only support {HashAlgorithm.SHA2_256.value}, "
                f"got {config.hash_algorithm.value}"
            )
        return KmsAccountKey(
            index=config.index,
            sig_algo=config.signature_algorithm,
            hash_algo=config.hash_algorithm,
            resource_id=resource_id,
        )

    if config.type == KeyType.FILE:
        location = _context_value(config, KEY_LOCATION_FIELD)
        return FileAccountKey(
            index=config.index,
            sig_algo=config.signature_algorithm,
            hash_algo=config.hash_algorithm,
            location=location,
            filesystem=filesystem,
        )

    key_type = config.type.value if isinstance(config.type, KeyType) else config.type
    raise InvalidKeyTypeError(str(key_type))


