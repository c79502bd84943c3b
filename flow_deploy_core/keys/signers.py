"""Signers producing Flow signatures over arbitrary messages."""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Final

import ecdsa
from ecdsa.der import UnexpectedDER
from ecdsa.util import sigdecode_der, sigencode_string
from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import kms

from flow_deploy_core.exceptions import SigningError

from .crypto import HashAlgorithm, SignatureAlgorithm

logger = logging.getLogger(__name__)

KMS_RESOURCE_PATTERN: Final[re.Pattern] = re.compile(
    r"^projects/(?P<project_id>[^/]+)/locations/(?P<location_id>[^/]+)"
    r"/keyRings/(?P<key_ring_id>[^/]+)/cryptoKeys/(?P<key_id>[^/]+)"
    r"/cryptoKeyVersions/(?P<key_version>[^/]+)$"
)


class Signer(ABC):
    """Produces raw ``r || s`` signatures for one account key."""

    signature_algorithm: SignatureAlgorithm
    hash_algorithm: HashAlgorithm

    @abstractmethod
    async def sign(self, message: bytes) -> bytes:
        """Hash and sign a message.

        Raises:
            SigningError: If no signature could be produced
        """


class InMemorySigner(Signer):
    """Signs with a private key held in process memory."""

    def __init__(
        self,
        signing_key: ecdsa.SigningKey,
        signature_algorithm: SignatureAlgorithm,
        hash_algorithm: HashAlgorithm,
    ) -> None:
        self._signing_key = signing_key
        self.signature_algorithm = signature_algorithm
        self.hash_algorithm = hash_algorithm

    async def sign(self, message: bytes) -> bytes:
        digest = self.hash_algorithm.digest(message)
        try:
            return self._signing_key.sign_digest_deterministic(
                digest,
                hashfunc=self.hash_algorithm.hashfunc,
                sigencode=sigencode_string,
            )
        except ecdsa.BadDigestError as e:
            raise SigningError(f"failed to sign message: {e}") from e

    def __repr__(self) -> str:
        return (
            f"InMemorySigner({self.signature_algorithm.value}, "
            f"{self.hash_algorithm.value})"
        )


class KmsSigner(Signer):
    """Signs through an asymmetric Google Cloud KMS key version.

    Cloud KMS only signs SHA2-256 digests, so the hash is computed locally and
    the DER signature returned by the service is converted to ``r || s``.
    """

    def __init__(
        self,
        resource_id: str,
        signature_algorithm: SignatureAlgorithm = SignatureAlgorithm.ECDSA_P256,
        hash_algorithm: HashAlgorithm = HashAlgorithm.SHA2_256,
        client: Any | None = None,
    ) -> None:
        if not KMS_RESOURCE_PATTERN.match(resource_id):
            raise SigningError(f"invalid KMS key resource id: {resource_id}")
        if hash_algorithm is not HashAlgorithm.SHA2_256:
            raise SigningError(
                f"KMS keys only support {HashAlgorithm.SHA2_256.value}, "
                f"got {hash_algorithm.value}"
            )
        self.resource_id = resource_id
        self.signature_algorithm = signature_algorithm
        self.hash_algorithm = hash_algorithm
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = kms.KeyManagementServiceAsyncClient()
        return self._client

    async def sign(self, message: bytes) -> bytes:
        digest = self.hash_algorithm.digest(message)
        logger.debug("Requesting KMS signature from %s", self.resource_id)
        try:
            response = await self.client.asymmetric_sign(
                request={"name": self.resource_id, "digest": {"sha256": digest}}
            )
        except (google_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as e:
            raise SigningError(f"KMS signing failed for {self.resource_id}: {e}") from e

        order = self.signature_algorithm.curve.order
        try:
            r, s = sigdecode_der(response.signature, order)
        except UnexpectedDER as e:
            raise SigningError(f"KMS returned a malformed signature: {e}") from e
        return sigencode_string(r, s, order)

    def __repr__(self) -> str:
        return f"KmsSigner({self.resource_id!r})"
