"""Canonical configuration model.

Every supported file format is decoded into these dataclasses, and every
command reads configuration through them. Collections are plain lists kept
in insertion order; the helper methods on ``Config`` enforce uniqueness
(accounts, networks and emulators by name, contracts by name and network).
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final

from flow_deploy_core.blockchain.network import Address, ChainID
from flow_deploy_core.keys.crypto import (
    DEFAULT_HASH_ALGORITHM,
    DEFAULT_SIGNATURE_ALGORITHM,
    HashAlgorithm,
    SignatureAlgorithm,
)

from .exceptions import InvalidSemanticsError

logger = logging.getLogger(__name__)

PRIVATE_KEY_FIELD: Final[str] = "privateKey"
KMS_RESOURCE_FIELD: Final[str] = "kmsResourceId"
KEY_LOCATION_FIELD: Final[str] = "location"
LEGACY_KMS_RESOURCE_FIELDS: Final[tuple[str, ...]] = ("resourceName", "resourceId")

DEFAULT_EMULATOR_NAME: Final[str] = "default"
DEFAULT_EMULATOR_PORT: Final[int] = 3569
DEFAULT_SERVICE_ACCOUNT_NAME: Final[str] = "emulator-account"


class KeyType(str, Enum):
    """Account key storage backends."""

    HEX = "hex"
    GOOGLE_KMS = "google-kms"
    FILE = "file"


@dataclass
class AccountKeyConfig:
    """Serializable description of an account key."""

    type: KeyType | str = KeyType.HEX
    index: int = 0
    signature_algorithm: SignatureAlgorithm = DEFAULT_SIGNATURE_ALGORITHM
    hash_algorithm: HashAlgorithm = DEFAULT_HASH_ALGORITHM
    context: dict[str, str] = field(default_factory=dict)

    def is_default(self) -> bool:
        """Whether the key can be written in the simple string form."""
        return (
            self.type == KeyType.HEX
            and self.index == 0
            and self.signature_algorithm == DEFAULT_SIGNATURE_ALGORITHM
            and self.hash_algorithm == DEFAULT_HASH_ALGORITHM
            and PRIVATE_KEY_FIELD in self.context
        )

    def __repr__(self) -> str:
        # Context may hold key material
        return (
            f"AccountKeyConfig(type={self.type!r}, index={self.index}, "
            f"signature_algorithm={self.signature_algorithm.value}, "
            f"hash_algorithm={self.hash_algorithm.value})"
        )


@dataclass
class AccountConfig:
    """Named account with its keys."""

    name: str
    address: Address
    chain_id: ChainID = ChainID.EMULATOR
    keys: list[AccountKeyConfig] = field(default_factory=list)


@dataclass
class NetworkConfig:
    """Named network and the access node serving it."""

    name: str
    host: str
    chain_id: ChainID = ChainID.EMULATOR


@dataclass
class EmulatorConfig:
    """Emulator profile."""

    name: str = DEFAULT_EMULATOR_NAME
    port: int = DEFAULT_EMULATOR_PORT
    service_account: str = DEFAULT_SERVICE_ACCOUNT_NAME


@dataclass
class ContractConfig:
    """Contract source, optionally bound to a network with an on-chain alias."""

    name: str
    source: str
    network: str = ""
    alias: Address | None = None

    @property
    def is_alias(self) -> bool:
        return self.alias is not None


@dataclass
class ContractDeployment:
    """Contract listed in a deployment, with optional initializer arguments."""

    name: str
    args: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class DeploymentConfig:
    """Contracts to deploy to one account on one network."""

    network: str
    account: str
    contracts: list[ContractDeployment] = field(default_factory=list)

    @property
    def contract_names(self) -> list[str]:
        return [contract.name for contract in self.contracts]

    def same_as(self, other: "DeploymentConfig") -> bool:
        return (
            self.network == other.network
            and self.account == other.account
            and set(self.contract_names) == set(other.contract_names)
        )


@dataclass
class Config:
    """Complete project configuration."""

    emulators: list[EmulatorConfig] = field(default_factory=list)
    networks: list[NetworkConfig] = field(default_factory=list)
    accounts: list[AccountConfig] = field(default_factory=list)
    contracts: list[ContractConfig] = field(default_factory=list)
    deployments: list[DeploymentConfig] = field(default_factory=list)

    # Accounts

    def get_account(self, name: str) -> AccountConfig | None:
        return next((a for a in self.accounts if a.name == name), None)

    def add_or_update_account(self, account: AccountConfig) -> None:
        for i, existing in enumerate(self.accounts):
            if existing.name == account.name:
                self.accounts[i] = account
                return
        self.accounts.append(account)

    def remove_account(self, name: str) -> None:
        self.accounts = [a for a in self.accounts if a.name != name]

    # Networks

    def get_network(self, name: str) -> NetworkConfig | None:
        return next((n for n in self.networks if n.name == name), None)

    def add_or_update_network(self, network: NetworkConfig) -> None:
        for i, existing in enumerate(self.networks):
            if existing.name == network.name:
                self.networks[i] = network
                return
        self.networks.append(network)

    # Emulators

    def get_emulator(self, name: str = DEFAULT_EMULATOR_NAME) -> EmulatorConfig | None:
        return next((e for e in self.emulators if e.name == name), None)

    def add_or_update_emulator(self, emulator: EmulatorConfig) -> None:
        for i, existing in enumerate(self.emulators):
            if existing.name == emulator.name:
                self.emulators[i] = emulator
                return
        self.emulators.append(emulator)

    # Contracts

    def get_contract(self, name: str, network: str = "") -> ContractConfig | None:
        """Get a contract by name and network.

        Without a record for the network, the network-less record of the same
        name is returned rebound to the network, so that a contract aliased on
        one network stays deployable from source on the others.
        """
        for contract in self.contracts:
            if contract.name == name and contract.network == network:
                return contract

        fallback = next((c for c in self.contracts if c.name == name), None)
        if fallback is None:
            return None
        return ContractConfig(name=name, source=fallback.source, network=network)

    def contracts_for_network(self, network: str) -> list[ContractConfig]:
        """Get one record per contract name, resolved for the network."""
        names = list(dict.fromkeys(c.name for c in self.contracts))
        return [self.get_contract(name, network) for name in names]

    def add_or_update_contract(self, contract: ContractConfig) -> None:
        for i, existing in enumerate(self.contracts):
            if existing.name == contract.name and existing.network == contract.network:
                self.contracts[i] = contract
                return
        self.contracts.append(contract)

    def remove_contract(self, name: str) -> None:
        self.contracts = [c for c in self.contracts if c.name != name]

    # Deployments

    def deployments_for_network(self, network: str) -> list[DeploymentConfig]:
        return [d for d in self.deployments if d.network == network]

    def get_deployment(self, network: str, account: str) -> DeploymentConfig | None:
        return next(
            (
                d
                for d in self.deployments
                if d.network == network and d.account == account
            ),
            None,
        )

    def add_deployment(self, deployment: DeploymentConfig) -> bool:
        """Append a deployment unless an equivalent one exists."""
        if any(existing.same_as(deployment) for existing in self.deployments):
            return False
        self.deployments.append(deployment)
        return True

    # Composition

    def merge(self, other: "Config") -> "Config":
        """Merge another config into this one, the other config winning."""
        for emulator in other.emulators:
            self.add_or_update_emulator(emulator)
        for network in other.networks:
            self.add_or_update_network(network)
        for account in other.accounts:
            self.add_or_update_account(account)
        for contract in other.contracts:
            self.add_or_update_contract(contract)
        for deployment in other.deployments:
            self.add_deployment(deployment)
        return self

    def validate(self) -> None:
        """Check cross references between sections.

        Raises:
            InvalidSemanticsError: If a section references something undefined
        """
        for contract in self.contracts:
            if contract.network and self.get_network(contract.network) is None:
                raise InvalidSemanticsError(
                    f"contract {contract.name} is defined on network "
                    f"{contract.network} that does not exist"
                )

        for emulator in self.emulators:
            if self.get_account(emulator.service_account) is None:
                raise InvalidSemanticsError(
                    f"emulator {emulator.name} uses service account "
                    f"{emulator.service_account} that does not exist"
                )

        seen: set[tuple[str, str, str]] = set()
        for deployment in self.deployments:
            if self.get_network(deployment.network) is None:
                raise InvalidSemanticsError(
                    f"deployment contains nonexisting network {deployment.network}"
                )
            if self.get_account(deployment.account) is None:
                raise InvalidSemanticsError(
                    f"deployment contains nonexisting account {deployment.account}"
                )
            for contract in deployment.contracts:
                if self.get_contract(contract.name, deployment.network) is None:
                    raise InvalidSemanticsError(
                        f"deployment contains nonexisting contract {contract.name}"
                    )
                key = (deployment.network, deployment.account, contract.name)
                if key in seen:
                    raise InvalidSemanticsError(
                        f"contract {contract.name} is listed more than once for "
                        f"account {deployment.account} on network {deployment.network}"
                    )
                seen.add(key)
