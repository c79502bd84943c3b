"""Gateway implementation over the Flow Access REST API.

Access nodes and the emulator both expose the same REST API, so one
implementation serves every configured network.
"""

import asyncio
import base64
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import aiohttp
from pydantic import BaseModel
from pydantic import ValidationError as PayloadValidationError

from flow_deploy_core.config.model import NetworkConfig
from flow_deploy_core.exceptions import (
    AccountNotFoundError,
    BlockNotFoundError,
    CollectionNotFoundError,
    DuplicateTransactionError,
    ExpiredTransactionError,
    FlowError,
    IncompleteTransactionError,
    InvalidGasLimitError,
    InvalidScriptError,
    InvalidSignatureError,
    ScriptExecutionError,
    TransactionNotFoundError,
    TransactionRejectedError,
    TransportError,
)
from flow_deploy_core.models.rest import (
    RestAccount,
    RestBlock,
    RestBlockEvents,
    RestCollection,
    RestErrorBody,
    RestEvent,
    RestProposalKey,
    RestScriptRequest,
    RestSignature,
    RestTransactionRequest,
    RestTransactionResponse,
    RestTransactionResult,
)

from . import cadence
from .gateway import POLL_INTERVAL, Gateway
from .models import (
    Account,
    AccountKeyInfo,
    Block,
    BlockEvents,
    Collection,
    Event,
    TransactionResult,
    TransactionStatus,
)
from .network import Address
from .transaction import Transaction, TransactionSignature

logger = logging.getLogger(__name__)

SEALED_HEIGHT = "sealed"
FRACTIONAL_SECONDS = re.compile(r"\.(\d{6})\d+")


@dataclass
class GatewayConfig:
    """REST gateway configuration."""

    timeout: float = 30.0  # seconds per request


def base_url(host: str) -> str:
    """Build the API base URL for a configured host.

    Hosts with a scheme are used as is, hosts with an explicit port are
    assumed to be local (plain HTTP) and anything else uses HTTPS.
    """
    host = host.rstrip("/")
    if "://" in host:
        return host
    if re.search(r":\d+$", host):
        return f"http://{host}"
    return f"https://{host}"


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


def _unb64(data: str) -> bytes:
    return base64.b64decode(data)


def _hex_bytes(value: str) -> bytes:
    return bytes.fromhex(value.removeprefix("0x"))


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    # Nodes report nanoseconds; datetime only keeps microseconds
    value = FRACTIONAL_SECONDS.sub(r".\1", value.replace("Z", "+00:00"))
    return datetime.fromisoformat(value)


def _rejection_error(message: str, tx: Transaction) -> FlowError:
    """Map an access node rejection message to a validation error."""
    lowered = message.lower()
    if "expired" in lowered:
        return ExpiredTransactionError(message)
    if "duplicate" in lowered or "already" in lowered:
        return DuplicateTransactionError(message)
    if "signature" in lowered:
        key = tx.proposal_key
        return InvalidSignatureError(
            key.address.hex() if key else "", key.key_index if key else 0, message
        )
    if "gas limit" in lowered:
        return InvalidGasLimitError(message)
    if "missing" in lowered or "required" in lowered:
        return IncompleteTransactionError([message])
    if "script" in lowered or "parse" in lowered:
        return InvalidScriptError(message)
    return TransactionRejectedError(message)


def _signatures(signatures: list[TransactionSignature]) -> list[RestSignature]:
    return [
        RestSignature(
            address=s.address.hex(),
            key_index=str(s.key_index),
            signature=_b64(s.signature),
        )
        for s in signatures
    ]


class _ErrorResponse(Exception):
    """Non-success HTTP status returned by the node."""

    def __init__(self, status: int, message: str) -> None:
        self.status = status
        self.message = message
        super().__init__(f"{status}: {message}")


class HttpGateway(Gateway):
    """Gateway talking to an access node REST endpoint."""

    def __init__(
        self,
        host: str,
        config: GatewayConfig | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.host = host
        self.base_url = base_url(host)
        self.config = config or GatewayConfig()
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout)
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        body: BaseModel | None = None,
    ) -> Any:
        """Perform a request and return the decoded JSON body.

        Raises:
            _ErrorResponse: If the node answers with an error status
            TransportError: If the node cannot be reached or answers garbage
        """
        endpoint = f"{self.base_url}{path}"
        payload = body.model_dump(mode="json") if body is not None else None
        logger.debug("%s %s %s", method, endpoint, params or "")

        try:
            async with self._get_session().request(
                method, endpoint, params=params, json=payload
            ) as response:
                if response.status >= 400:
                    text = await response.text()
                    try:
                        message = RestErrorBody.model_validate_json(text).message
                    except PayloadValidationError:
                        message = text
                    raise _ErrorResponse(response.status, message or response.reason)
                return await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise TransportError(endpoint, str(e)) from e
        except asyncio.TimeoutError as e:
            raise TransportError(endpoint, "request timed out") from e
        except ValueError as e:
            raise TransportError(endpoint, f"invalid JSON response: {e}") from e

    def _transport_error(self, path: str, error: _ErrorResponse) -> TransportError:
        return TransportError(f"{self.base_url}{path}", str(error))

    @staticmethod
    def _validate(model: type[BaseModel], data: Any, endpoint: str) -> Any:
        try:
            return model.model_validate(data)
        except PayloadValidationError as e:
            raise TransportError(endpoint, f"unexpected response: {e}") from e

    # Accounts

    async def get_account(self, address: Address) -> Account:
        path = f"/v1/accounts/{address.hex()}"
        try:
            data = await self._request(
                "GET",
                path,
                params={"expand": "keys,contracts", "block_height": SEALED_HEIGHT},
            )
        except _ErrorResponse as e:
            if e.status in (400, 404):
                raise AccountNotFoundError(
                    f"account {address.hex()} not found: {e.message}"
                ) from e
            raise self._transport_error(path, e) from e

        account = self._validate(RestAccount, data, path)
        return Account(
            address=Address.from_hex(account.address),
            balance=account.balance,
            keys=[
                AccountKeyInfo(
                    index=key.index,
                    public_key=_hex_bytes(key.public_key),
                    signature_algorithm=key.signing_algorithm,
                    hash_algorithm=key.hashing_algorithm,
                    sequence_number=key.sequence_number,
                    weight=key.weight,
                    revoked=key.revoked,
                )
                for key in account.keys
            ],
            contracts={name: _unb64(code) for name, code in account.contracts.items()},
        )

    # Transactions

    async def send_signed_transaction(self, tx: Transaction) -> bytes:
        missing = tx.missing_fields()
        if missing:
            raise IncompleteTransactionError(missing)

        request = RestTransactionRequest(
            script=_b64(tx.script.encode()),
            arguments=[_b64(arg) for arg in tx.encoded_arguments()],
            reference_block_id=tx.reference_block_id.hex(),
            gas_limit=str(tx.gas_limit),
            payer=tx.payer.hex(),
            proposal_key=RestProposalKey(
                address=tx.proposal_key.address.hex(),
                key_index=str(tx.proposal_key.key_index),
                sequence_number=str(tx.proposal_key.sequence_number),
            ),
            authorizers=[a.hex() for a in tx.authorizers],
            payload_signatures=_signatures(tx.payload_signatures),
            envelope_signatures=_signatures(tx.envelope_signatures),
        )

        path = "/v1/transactions"
        try:
            data = await self._request("POST", path, body=request)
        except _ErrorResponse as e:
            if e.status == 400:
                raise _rejection_error(e.message, tx) from e
            raise self._transport_error(path, e) from e

        response = self._validate(RestTransactionResponse, data, path)
        tx_id = _hex_bytes(response.id)
        logger.info("Submitted transaction %s", tx_id.hex())
        return tx_id

    async def get_transaction_result(
        self, tx_id: bytes, wait_sealed: bool = False
    ) -> TransactionResult:
        result = await self._fetch_transaction_result(tx_id)
        while wait_sealed and result.status < TransactionStatus.SEALED:
            await asyncio.sleep(POLL_INTERVAL)
            result = await self._fetch_transaction_result(tx_id)
        return result

    async def _fetch_transaction_result(self, tx_id: bytes) -> TransactionResult:
        path = f"/v1/transaction_results/{tx_id.hex()}"
        try:
            data = await self._request("GET", path)
        except _ErrorResponse as e:
            if e.status == 404:
                raise TransactionNotFoundError(
                    f"transaction {tx_id.hex()} not found"
                ) from e
            raise self._transport_error(path, e) from e

        result = self._validate(RestTransactionResult, data, path)
        return TransactionResult(
            transaction_id=tx_id,
            status=TransactionStatus.from_name(result.status),
            error_message=result.error_message,
            events=[self._event(event) for event in result.events],
            block_id=_hex_bytes(result.block_id) if result.block_id else None,
            computation_used=result.computation_used,
        )

    @staticmethod
    def _event(event: RestEvent) -> Event:
        payload = cadence.decode(_unb64(event.payload))
        return Event(
            type=event.type,
            transaction_id=_hex_bytes(event.transaction_id),
            transaction_index=event.transaction_index,
            event_index=event.event_index,
            payload=payload if isinstance(payload, dict) else {"value": payload},
        )

    # Scripts

    async def execute_script(
        self, code: str, args: list[dict[str, Any]] | None = None
    ) -> Any:
        request = RestScriptRequest(
            script=_b64(code.encode()),
            arguments=[_b64(cadence.encode_argument(arg)) for arg in args or []],
        )
        path = "/v1/scripts"
        try:
            data = await self._request(
                "POST", path, params={"block_height": SEALED_HEIGHT}, body=request
            )
        except _ErrorResponse as e:
            if e.status == 400:
                raise ScriptExecutionError(e.message) from e
            raise self._transport_error(path, e) from e

        if not isinstance(data, str):
            raise TransportError(f"{self.base_url}{path}", "unexpected script result")
        return cadence.decode(_unb64(data))

    # Blocks

    async def _get_block(
        self, path: str, params: dict[str, str] | None, error: FlowError
    ) -> Block:
        try:
            data = await self._request("GET", path, params=params)
        except _ErrorResponse as e:
            if e.status in (400, 404):
                raise error from e
            raise self._transport_error(path, e) from e

        blocks = data if isinstance(data, list) else [data]
        if not blocks:
            raise error
        block = self._validate(RestBlock, blocks[0], path)
        guarantees = block.payload.collection_guarantees if block.payload else []
        return Block(
            id=_hex_bytes(block.header.id),
            parent_id=_hex_bytes(block.header.parent_id),
            height=block.header.height,
            timestamp=_parse_timestamp(block.header.timestamp),
            collection_ids=[_hex_bytes(g.collection_id) for g in guarantees],
        )

    async def get_latest_block(self) -> Block:
        return await self._get_block(
            "/v1/blocks",
            {"height": SEALED_HEIGHT, "expand": "payload"},
            BlockNotFoundError(),
        )

    async def get_block_by_id(self, block_id: bytes) -> Block:
        return await self._get_block(
            f"/v1/blocks/{block_id.hex()}",
            {"expand": "payload"},
            BlockNotFoundError(block_id=block_id.hex()),
        )

    async def get_block_by_height(self, height: int) -> Block:
        return await self._get_block(
            "/v1/blocks",
            {"height": str(height), "expand": "payload"},
            BlockNotFoundError(height=height),
        )

    # Events and collections

    async def get_events(
        self, event_type: str, start_height: int, end_height: int
    ) -> list[BlockEvents]:
        path = "/v1/events"
        params = {
            "type": event_type,
            "start_height": str(start_height),
            "end_height": str(end_height),
        }
        try:
            data = await self._request("GET", path, params=params)
        except _ErrorResponse as e:
            raise self._transport_error(path, e) from e

        results = []
        for item in data or []:
            block_events = self._validate(RestBlockEvents, item, path)
            results.append(
                BlockEvents(
                    block_id=_hex_bytes(block_events.block_id),
                    height=block_events.block_height,
                    events=[self._event(event) for event in block_events.events],
                    timestamp=_parse_timestamp(block_events.block_timestamp),
                )
            )
        return results

    async def get_collection(self, collection_id: bytes) -> Collection:
        path = f"/v1/collections/{collection_id.hex()}"
        try:
            data = await self._request("GET", path, params={"expand": "transactions"})
        except _ErrorResponse as e:
            if e.status in (400, 404):
                raise CollectionNotFoundError(
                    f"collection {collection_id.hex()} not found"
                ) from e
            raise self._transport_error(path, e) from e

        collection = self._validate(RestCollection, data, path)
        return Collection(
            id=_hex_bytes(collection.id),
            transaction_ids=[_hex_bytes(t.id) for t in collection.transactions],
        )

    async def ping(self) -> None:
        path = "/v1/blocks"
        try:
            await self._request("GET", path, params={"height": SEALED_HEIGHT})
        except _ErrorResponse as e:
            raise self._transport_error(path, e) from e

    def __repr__(self) -> str:
        return f"HttpGateway({self.base_url})"


def create_gateway(
    network: NetworkConfig, config: GatewayConfig | None = None
) -> HttpGateway:
    """Create a gateway for a configured network."""
    logger.debug("Using access node %s for network %s", network.host, network.name)
    return HttpGateway(network.host, config)
