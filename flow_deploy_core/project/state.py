"""Project state: configuration hydrated into runtime accounts.

The project is the entry point commands use to reach configuration. It owns
the loader it was created with so changes made through it (adding accounts,
contracts or deployments) can be persisted with ``save``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from flow_deploy_core.blockchain.network import Address
from flow_deploy_core.config.defaults import default_config
from flow_deploy_core.config.exceptions import ConfigError, InvalidSemanticsError
from flow_deploy_core.config.loader import DEFAULT_CONFIG_PATHS, LOCAL_CONFIG_PATH, Loader
from flow_deploy_core.config.model import (
    DEFAULT_EMULATOR_NAME,
    Config,
    NetworkConfig,
)
from flow_deploy_core.contracts.loader import clean
from flow_deploy_core.keys.crypto import (
    DEFAULT_HASH_ALGORITHM,
    DEFAULT_SIGNATURE_ALGORITHM,
    HashAlgorithm,
    SignatureAlgorithm,
)

from .account import Account

logger = logging.getLogger(__name__)


@dataclass
class DeploymentContract:
    """Contract scheduled for deployment to an account."""

    name: str
    source: str
    account_name: str
    target: Address
    args: list[dict[str, Any]] = field(default_factory=list)


class Project:
    """Configuration plus runtime accounts."""

    def __init__(
        self,
        config: Config,
        loader: Loader | None = None,
        paths: list[str] | None = None,
    ) -> None:
        self.config = config
        self.loader = loader or Loader()
        self.paths = list(paths or [LOCAL_CONFIG_PATH])
        self._accounts = [
            Account.from_config(a, self.loader.filesystem) for a in config.accounts
        ]

    @classmethod
    def load(
        cls, paths: list[str] | None = None, loader: Loader | None = None
    ) -> "Project":
        """Load a project from configuration files, or the default ones."""
        loader = loader or Loader()
        if paths:
            config = loader.load(paths)
            loaded = list(paths)
        else:
            loaded = [p for p in DEFAULT_CONFIG_PATHS if loader.exists(p)]
            config = loader.load_default()
        return cls(config, loader, loaded)

    @classmethod
    def init(
        cls,
        service_private_key: str,
        loader: Loader | None = None,
        path: str = LOCAL_CONFIG_PATH,
        sig_algo: SignatureAlgorithm = DEFAULT_SIGNATURE_ALGORITHM,
        hash_algo: HashAlgorithm = DEFAULT_HASH_ALGORITHM,
        reset: bool = False,
    ) -> "Project":
        """Create and save a default configuration.

        Raises:
            ConfigError: If the file exists and ``reset`` is not set
        """
        loader = loader or Loader()
        if loader.exists(path) and not reset:
            raise ConfigError(
                f"configuration already exists at {path}, use reset to overwrite it"
            )

        config = default_config(service_private_key)
        service_key = config.accounts[0].keys[0]
        service_key.signature_algorithm = sig_algo
        service_key.hash_algorithm = hash_algo

        project = cls(config, loader, [path])
        project.save(path)
        logger.info("Initialized project configuration at %s", path)
        return project

    def save(self, path: str | None = None) -> None:
        """Persist configuration to the given path or the last loaded file."""
        self.loader.save(self.config, path or self.paths[-1])

    # Accounts

    @property
    def accounts(self) -> list[Account]:
        return list(self._accounts)

    def account_by_name(self, name: str) -> Account | None:
        return next((a for a in self._accounts if a.name == name), None)

    def account_by_address(self, address: Address) -> Account | None:
        return next((a for a in self._accounts if a.address == address), None)

    def add_or_update_account(self, account: Account) -> None:
        for i, existing in enumerate(self._accounts):
            if existing.name == account.name:
                self._accounts[i] = account
                break
        else:
            self._accounts.append(account)
        self.config.add_or_update_account(account.to_config())

    def remove_account(self, name: str) -> None:
        self._accounts = [a for a in self._accounts if a.name != name]
        self.config.remove_account(name)

    def emulator_service_account(self, emulator: str = DEFAULT_EMULATOR_NAME) -> Account:
        profile = self.config.get_emulator(emulator)
        if profile is None:
            raise InvalidSemanticsError(f"emulator {emulator} is not configured")
        account = self.account_by_name(profile.service_account)
        if account is None:
            raise InvalidSemanticsError(
                f"service account {profile.service_account} is not configured"
            )
        return account

    # Network scoped views

    def network(self, name: str) -> NetworkConfig:
        network = self.config.get_network(name)
        if network is None:
            raise InvalidSemanticsError(f"network with name {name} does not exist in configuration")
        return network

    def aliases_for_network(self, network: str) -> dict[str, Address]:
        """Map import locations and contract names to aliased addresses."""
        aliases: dict[str, Address] = {}
        for contract in self.config.contracts_for_network(network):
            if contract.alias is None:
                continue
            if contract.source:
                aliases[clean(contract.source)] = contract.alias
            aliases[contract.name] = contract.alias
        return aliases

    def deployment_contracts_for_network(self, network: str) -> list[DeploymentContract]:
        """List contracts to deploy on a network, in configuration order.

        Contracts aliased on the network are skipped since they already live
        on chain.
        """
        self.network(network)

        contracts = []
        for deployment in self.config.deployments_for_network(network):
            account = self.account_by_name(deployment.account)
            if account is None:
                raise InvalidSemanticsError(
                    f"could not find account with name {deployment.account} in the configuration"
                )
            for entry in deployment.contracts:
                contract = self.config.get_contract(entry.name, network)
                if contract is None:
                    raise InvalidSemanticsError(
                        f"could not find contract with name {entry.name} in the configuration"
                    )
                if contract.is_alias:
                    logger.warning(
                        "Contract %s is aliased on %s and will not be deployed",
                        entry.name,
                        network,
                    )
                    continue
                contracts.append(
                    DeploymentContract(
                        name=contract.name,
                        source=contract.source,
                        account_name=account.name,
                        target=account.address,
                        args=list(entry.args),
                    )
                )
        return contracts


def init_project(service_private_key: str, **kwargs: Any) -> Project:
    """Initialize a project with a default configuration file."""
    return Project.init(service_private_key, **kwargs)
