"""Test project state built from configuration."""

import json
from typing import Any

import pytest

from flow_deploy_core.blockchain.network import Address, ChainID
from flow_deploy_core.config.exceptions import ConfigError, InvalidSemanticsError
from flow_deploy_core.config.model import KEY_LOCATION_FIELD
from flow_deploy_core.keys.account_key import FileAccountKey, HexAccountKey
from flow_deploy_core.keys.crypto import HashAlgorithm, SignatureAlgorithm
from flow_deploy_core.project.state import DeploymentContract, Project, init_project

from .base import TestBase
from .test_utils import (
    OTHER_KEY,
    SERVICE_ADDRESS,
    SERVICE_KEY,
    config_document,
    logger,
    make_account,
)

FUNGIBLE_TOKEN_TESTNET = Address.from_hex("9a0766d93b6608b7")


class TestProject(TestBase):
    """Test project loading, initialization and network views."""

    FILES = {
        "flow.json": config_document(
            emulators={"default": {"port": 3569, "serviceAccount": "emulator-account"}},
            contracts={
                "Token": "./contracts/Token.cdc",
                "FungibleToken": {
                    "source": "./contracts/FungibleToken.cdc",
                    "aliases": {"testnet": "9a0766d93b6608b7"},
                },
            },
            networks={
                "emulator": "127.0.0.1:8888",
                "testnet": "rest-testnet.onflow.org",
            },
            accounts={
                "emulator-account": {"address": "service", "keys": SERVICE_KEY},
                "testnet-account": {
                    "address": "8c5303eaa26202d6",
                    "chain": "testnet",
                    "keys": OTHER_KEY,
                },
            },
            deployments={
                "emulator": {
                    "emulator-account": [
                        "FungibleToken",
                        {"name": "Token", "args": [{"type": "String", "value": "T"}]},
                    ]
                },
                "testnet": {"testnet-account": ["FungibleToken", "Token"]},
            },
        )
    }

    def setup_method(self, method: Any) -> None:
        super().setup_method(method)
        self.project = Project.load(["flow.json"], self.loader)
        logger.info("TestProject setup complete")

    def test_accounts_are_hydrated(self) -> None:
        service = self.project.account_by_name("emulator-account")

        assert service.address == SERVICE_ADDRESS
        assert isinstance(service.default_key, HexAccountKey)
        assert service.default_key.private_key_hex() == SERVICE_KEY
        assert self.project.account_by_address(SERVICE_ADDRESS) is service
        assert self.project.emulator_service_account() is service

    def test_aliases_for_network(self) -> None:
        assert self.project.aliases_for_network("testnet") == {
            "contracts/FungibleToken.cdc": FUNGIBLE_TOKEN_TESTNET,
            "FungibleToken": FUNGIBLE_TOKEN_TESTNET,
        }
        assert self.project.aliases_for_network("emulator") == {}

    def test_deployment_contracts_skip_aliased_contracts(self) -> None:
        testnet_account = self.project.account_by_name("testnet-account")

        assert self.project.deployment_contracts_for_network("testnet") == [
            DeploymentContract(
                name="Token",
                source="./contracts/Token.cdc",
                account_name="testnet-account",
                target=testnet_account.address,
            )
        ]

    def test_deployment_contracts_keep_order_and_args(self) -> None:
        contracts = self.project.deployment_contracts_for_network("emulator")

        assert [c.name for c in contracts] == ["FungibleToken", "Token"]
        assert contracts[0].source == "./contracts/FungibleToken.cdc"
        assert contracts[1].args == [{"type": "String", "value": "T"}]
        assert {c.target for c in contracts} == {SERVICE_ADDRESS}

    def test_unknown_network(self) -> None:
        with pytest.raises(InvalidSemanticsError, match="does not exist"):
            self.project.deployment_contracts_for_network("mainnet")

    def test_account_changes_are_saved(self) -> None:
        self.project.add_or_update_account(
            make_account("extra", Address.from_hex("01cf0e2f2f715450"), OTHER_KEY)
        )
        self.project.save()

        accounts = json.loads(self.read("flow.json"))["accounts"]
        assert set(accounts) == {"emulator-account", "testnet-account", "extra"}
        assert accounts["extra"]["keys"] == OTHER_KEY

        reloaded = Project.load(["flow.json"], self.loader)
        assert reloaded.account_by_name("extra").address.hex() == "01cf0e2f2f715450"

        reloaded.remove_account("extra")
        assert reloaded.account_by_name("extra") is None
        assert reloaded.config.get_account("extra") is None


class TestProjectInit(TestBase):
    """Test initializing a new project configuration."""

    def test_init_writes_default_configuration(self) -> None:
        project = init_project(
            SERVICE_KEY,
            loader=self.loader,
            sig_algo=SignatureAlgorithm.ECDSA_SECP256K1,
            hash_algo=HashAlgorithm.SHA2_256,
        )

        document = json.loads(self.read("flow.json"))
        assert set(document["networks"]) == {"emulator", "testnet", "mainnet"}
        assert document["emulators"] == {
            "default": {"port": 3569, "serviceAccount": "emulator-account"}
        }
        key = document["accounts"]["emulator-account"]["keys"][0]
        assert key["signatureAlgorithm"] == "ECDSA_secp256k1"
        assert key["hashAlgorithm"] == "SHA2_256"

        service = project.emulator_service_account()
        assert service.address == SERVICE_ADDRESS
        assert service.chain_id == ChainID.EMULATOR

    def test_init_refuses_to_overwrite(self) -> None:
        init_project(SERVICE_KEY, loader=self.loader)

        with pytest.raises(ConfigError, match="already exists"):
            Project.init(OTHER_KEY, loader=self.loader)

        Project.init(OTHER_KEY, loader=self.loader, reset=True)
        document = json.loads(self.read("flow.json"))
        assert document["accounts"]["emulator-account"]["keys"] == OTHER_KEY


class TestProjectFileKeys(TestBase):
    """Test accounts whose keys are stored in separate files."""

    FILES = {
        "flow.json": config_document(
            accounts={
                "file-account": {
                    "address": "service",
                    "keys": [
                        {
                            "type": "file",
                            "context": {KEY_LOCATION_FIELD: "./emulator-account.pkey"},
                        }
                    ],
                }
            }
        ),
        "emulator-account.pkey": SERVICE_KEY,
    }

    def test_key_is_read_through_the_project_filesystem(self) -> None:
        project = Project.load(["flow.json"], self.loader)

        key = project.account_by_name("file-account").default_key

        assert isinstance(key, FileAccountKey)
        assert key.public_key() == HexAccountKey.from_hex(SERVICE_KEY).public_key()
