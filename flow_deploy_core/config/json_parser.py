"""JSON configuration format.

Several fields accept a simple string form and an advanced object form.
Decoders try the simple form first; encoders emit the simple form whenever
the record still has the shape the simple form implies.

    {
        "emulators": {"default": {"port": 3569, "serviceAccount": "emulator-account"}},
        "contracts": {
            "Token": "./contracts/Token.cdc",
            "FungibleToken": {
                "source": "./contracts/FungibleToken.cdc",
                "aliases": {"testnet": "9a0766d93b6608b7"}
            }
        },
        "networks": {
            "emulator": "127.0.0.1:8888",
            "testnet": {"host": "rest-testnet.onflow.org", "chain": "testnet"}
        },
        "accounts": {
            "emulator-account": {
                "address": "service",
                "chain": "flow-emulator",
                "keys": "<hex private key>"
            }
        },
        "deployments": {
            "emulator": {"emulator-account": ["Token", {"name": "Other", "args": []}]}
        }
    }
"""

import json
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from flow_deploy_core.blockchain.network import (
    SERVICE_KEYWORD,
    Address,
    ChainID,
    chain_for_network,
    infer_chain,
    parse_address,
)
from flow_deploy_core.exceptions import InvalidAddressForChainError
from flow_deploy_core.keys.crypto import (
    DEFAULT_HASH_ALGORITHM,
    HashAlgorithm,
    SignatureAlgorithm,
)

from .exceptions import InvalidSemanticsError, InvalidSyntaxError
from .model import (
    PRIVATE_KEY_FIELD,
    AccountConfig,
    AccountKeyConfig,
    Config,
    ContractConfig,
    ContractDeployment,
    DeploymentConfig,
    EmulatorConfig,
    KeyType,
    NetworkConfig,
)
from .parsers import Parser

logger = logging.getLogger(__name__)

SECTION_ORDER = ("emulators", "contracts", "networks", "accounts", "deployments")


class JsonModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class JsonAccountKey(JsonModel):
    """Advanced account key entry."""

    type: str = Field(KeyType.HEX.value, description="Key backend")
    index: int = Field(0, ge=0, description="Key index on the account")
    signature_algorithm: str = Field(
        SignatureAlgorithm.ECDSA_P256.value, alias="signatureAlgorithm"
    )
    # Defaults per key type when omitted
    hash_algorithm: str | None = Field(None, alias="hashAlgorithm")
    context: dict[str, str] = Field(default_factory=dict)


class JsonAccount(JsonModel):
    address: str
    chain: str | None = None
    keys: str | list[JsonAccountKey]


class JsonNetwork(JsonModel):
    host: str
    chain: str


class JsonContract(JsonModel):
    source: str = ""
    aliases: dict[str, str] = Field(default_factory=dict)


class JsonEmulator(JsonModel):
    port: int
    service_account: str = Field(..., alias="serviceAccount")


class JsonContractDeployment(JsonModel):
    name: str
    args: list[dict[str, Any]] = Field(default_factory=list)


def _validate(model: type[JsonModel], data: Any, where: str) -> Any:
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise InvalidSyntaxError("", f"{where}: {e}") from e


def _parse_chain(value: str, where: str) -> ChainID:
    try:
        return ChainID.parse(value)
    except InvalidAddressForChainError as e:
        raise InvalidSemanticsError(f"{where}: {e}") from e


def _parse_address(value: str, chain: ChainID, where: str) -> Address:
    try:
        return parse_address(value, chain)
    except ValueError as e:
        raise InvalidSemanticsError(f"{where}: {e}") from e


# Decoders


def _default_hash(key_type: KeyType | str) -> HashAlgorithm:
    # Cloud KMS signs SHA2-256 digests only
    if key_type == KeyType.GOOGLE_KMS:
        return HashAlgorithm.SHA2_256
    return DEFAULT_HASH_ALGORITHM


def _decode_key(data: JsonAccountKey, where: str) -> AccountKeyConfig:
    try:
        key_type: KeyType | str = KeyType(data.type)
    except ValueError:
        # Rejected when the key is hydrated, so the file still round-trips
        key_type = data.type
    try:
        sig_algo = SignatureAlgorithm.parse(data.signature_algorithm)
        hash_algo = HashAlgorithm.parse(data.hash_algorithm or _default_hash(key_type))
    except ValueError as e:
        raise InvalidSemanticsError(f"{where}: {e}") from e
    return AccountKeyConfig(
        type=key_type,
        index=data.index,
        signature_algorithm=sig_algo,
        hash_algorithm=hash_algo,
        context=dict(data.context),
    )


def decode_account(name: str, raw: Any) -> AccountConfig:
    where = f"account {name}"
    data = _validate(JsonAccount, raw, where)

    if data.chain:
        chain = _parse_chain(data.chain, where)
        address = _parse_address(data.address, chain, where)
    elif data.address.strip().lower() == SERVICE_KEYWORD:
        chain = ChainID.EMULATOR
        address = _parse_address(data.address, chain, where)
    else:
        address = _parse_address(data.address, ChainID.EMULATOR, where)
        chain = infer_chain(address)

    if isinstance(data.keys, str):
        keys = [AccountKeyConfig(context={PRIVATE_KEY_FIELD: data.keys})]
    else:
        keys = [_decode_key(key, where) for key in data.keys]
    if not keys:
        raise InvalidSemanticsError(f"{where}: at least one key is required")

    return AccountConfig(name=name, address=address, chain_id=chain, keys=keys)


def decode_network(name: str, raw: Any) -> NetworkConfig:
    if isinstance(raw, str):
        return NetworkConfig(name=name, host=raw, chain_id=chain_for_network(name))
    data = _validate(JsonNetwork, raw, f"network {name}")
    return NetworkConfig(
        name=name, host=data.host, chain_id=_parse_chain(data.chain, f"network {name}")
    )


def decode_contracts(name: str, raw: Any) -> list[ContractConfig]:
    if isinstance(raw, str):
        return [ContractConfig(name=name, source=raw)]

    where = f"contract {name}"
    data = _validate(JsonContract, raw, where)
    contracts = []
    if data.source:
        contracts.append(ContractConfig(name=name, source=data.source))
    for network, alias in data.aliases.items():
        try:
            address = Address.from_hex(alias)
        except ValueError as e:
            raise InvalidSemanticsError(
                f"{where}: invalid alias address for network {network}"
            ) from e
        contracts.append(
            ContractConfig(name=name, source=data.source, network=network, alias=address)
        )
    if not contracts:
        raise InvalidSemanticsError(f"{where}: a source or an alias is required")
    return contracts


def decode_emulator(name: str, raw: Any) -> EmulatorConfig:
    data = _validate(JsonEmulator, raw, f"emulator {name}")
    return EmulatorConfig(name=name, port=data.port, service_account=data.service_account)


def decode_deployments(network: str, raw: Any) -> list[DeploymentConfig]:
    if not isinstance(raw, dict):
        raise InvalidSyntaxError("", f"deployments for {network} must be an object")

    deployments = []
    for account, entries in raw.items():
        if not isinstance(entries, list):
            raise InvalidSyntaxError(
                "", f"deployment of {account} on {network} must be a list"
            )
        contracts = []
        for entry in entries:
            if isinstance(entry, str):
                contracts.append(ContractDeployment(name=entry))
            else:
                data = _validate(
                    JsonContractDeployment, entry, f"deployment {network}/{account}"
                )
                contracts.append(ContractDeployment(name=data.name, args=data.args))
        deployments.append(
            DeploymentConfig(network=network, account=account, contracts=contracts)
        )
    return deployments


# Encoders


def encode_account(account: AccountConfig) -> dict[str, Any]:
    if len(account.keys) == 1 and account.keys[0].is_default():
        keys: Any = account.keys[0].context[PRIVATE_KEY_FIELD]
    else:
        keys = [
            {
                "type": key.type.value if isinstance(key.type, KeyType) else key.type,
                "index": key.index,
                "signatureAlgorithm": key.signature_algorithm.value,
                "hashAlgorithm": key.hash_algorithm.value,
                "context": dict(key.context),
            }
            for key in account.keys
        ]
    return {
        "address": account.address.hex(),
        "chain": account.chain_id.value,
        "keys": keys,
    }


def encode_network(network: NetworkConfig) -> Any:
    if network.chain_id == chain_for_network(network.name):
        return network.host
    return {"host": network.host, "chain": network.chain_id.value}


def encode_contracts(contracts: list[ContractConfig]) -> dict[str, Any]:
    grouped: dict[str, list[ContractConfig]] = {}
    for contract in contracts:
        grouped.setdefault(contract.name, []).append(contract)

    encoded: dict[str, Any] = {}
    for name, records in grouped.items():
        aliased = [c for c in records if c.network and c.alias is not None]
        if not aliased:
            encoded[name] = records[0].source
            continue
        encoded[name] = {
            "source": records[0].source,
            "aliases": {c.network: c.alias.hex() for c in aliased},
        }
    return encoded


def encode_deployments(deployments: list[DeploymentConfig]) -> dict[str, Any]:
    encoded: dict[str, dict[str, list[Any]]] = {}
    for deployment in deployments:
        entries = encoded.setdefault(deployment.network, {}).setdefault(
            deployment.account, []
        )
        for contract in deployment.contracts:
            if contract.args:
                entries.append({"name": contract.name, "args": contract.args})
            else:
                entries.append(contract.name)
    return encoded


class JsonParser(Parser):
    """Parser for ``.json`` configuration files."""

    def __init__(self, indent: str | int | None = "\t") -> None:
        self.indent = indent

    def supports(self, extension: str) -> bool:
        return extension.lower().lstrip(".") == "json"

    def deserialize(self, raw: bytes) -> Config:
        try:
            document = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InvalidSyntaxError("", str(e)) from e
        if not isinstance(document, dict):
            raise InvalidSyntaxError("", "configuration must be a JSON object")

        sections = {}
        for section in SECTION_ORDER:
            value = document.get(section) or {}
            if not isinstance(value, dict):
                raise InvalidSyntaxError("", f"section {section} must be an object")
            sections[section] = value

        config = Config()
        for name, raw_emulator in sections["emulators"].items():
            config.add_or_update_emulator(decode_emulator(name, raw_emulator))
        for name, raw_contract in sections["contracts"].items():
            for contract in decode_contracts(name, raw_contract):
                config.add_or_update_contract(contract)
        for name, raw_network in sections["networks"].items():
            config.add_or_update_network(decode_network(name, raw_network))
        for name, raw_account in sections["accounts"].items():
            config.add_or_update_account(decode_account(name, raw_account))
        for network, raw_deployments in sections["deployments"].items():
            for deployment in decode_deployments(network, raw_deployments):
                config.add_deployment(deployment)
        return config

    def serialize(self, config: Config) -> bytes:
        document: dict[str, Any] = {}
        if config.emulators:
            document["emulators"] = {
                e.name: {"port": e.port, "serviceAccount": e.service_account}
                for e in config.emulators
            }
        if config.contracts:
            document["contracts"] = encode_contracts(config.contracts)
        if config.networks:
            document["networks"] = {n.name: encode_network(n) for n in config.networks}
        if config.accounts:
            document["accounts"] = {a.name: encode_account(a) for a in config.accounts}
        if config.deployments:
            document["deployments"] = encode_deployments(config.deployments)
        return (json.dumps(document, indent=self.indent) + "\n").encode()
