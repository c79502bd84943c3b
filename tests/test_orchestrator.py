"""Test deployment orchestration against an in-memory network."""

from typing import Any

import pytest

from flow_deploy_core.blockchain import templates
from flow_deploy_core.blockchain.transactions import TransactionConfig, TransactionManager
from flow_deploy_core.constants.status import ProcessStatus
from flow_deploy_core.contracts.exceptions import UnresolvedImportError
from flow_deploy_core.deployment.exceptions import (
    DeploymentError,
    DuplicateContractConflictError,
)
from flow_deploy_core.deployment.orchestrator import DeploymentOrchestrator, deploy
from flow_deploy_core.project.state import Project

from .base import TestBase
from .test_utils import (
    OTHER_KEY,
    SERVICE_ADDRESS,
    SERVICE_KEY,
    FakeGateway,
    chain_account_for,
    config_document,
    logger,
)

OTHER_ADDRESS = "01cf0e2f2f715450"


def flow_json(deployments: dict[str, Any], contracts: dict[str, Any] | None = None) -> str:
    return config_document(
        emulators={"default": {"port": 3569, "serviceAccount": "emulator-account"}},
        contracts=contracts or {"A": "./A.cdc", "B": "./B.cdc"},
        networks={"emulator": "127.0.0.1:8888"},
        accounts={
            "emulator-account": {"address": "service", "keys": SERVICE_KEY},
            "other-account": {
                "address": OTHER_ADDRESS,
                "chain": "flow-emulator",
                "keys": OTHER_KEY,
            },
        },
        deployments={"emulator": deployments},
    )


class TestDeploymentOrchestrator(TestBase):
    """Test deploying project contracts through the orchestrator."""

    FILES = {
        "flow.json": flow_json({"emulator-account": ["B", "A"]}),
        "A.cdc": "pub contract A {}",
        "B.cdc": 'import A from "./A.cdc"\npub contract B {}',
    }

    def setup_method(self, method: Any) -> None:
        super().setup_method(method)
        self.load_project()
        logger.info("TestDeploymentOrchestrator setup complete")

    def load_project(self) -> None:
        self.project = Project.load(["flow.json"], self.loader)
        self.gateway = FakeGateway(
            [chain_account_for(account) for account in self.project.accounts]
        )
        self.statuses: list[tuple[ProcessStatus, str]] = []
        self.orchestrator = DeploymentOrchestrator(
            self.project,
            self.gateway,
            TransactionManager(self.gateway, TransactionConfig(poll_interval=0)),
            status_callback=lambda status, message: self.statuses.append(
                (status, message)
            ),
            source_loader=self.source_loader,
        )

    @property
    def service_contracts(self) -> dict[str, bytes]:
        return self.gateway.accounts[SERVICE_ADDRESS].contracts

    @pytest.mark.asyncio
    async def test_contracts_are_added_in_dependency_order(self) -> None:
        result = await self.orchestrator.deploy("emulator")

        assert result.status == ProcessStatus.COMPLETED
        assert [c.name for c in result.deployed] == ["A", "B"]
        assert result.skipped == []
        assert set(result.transaction_ids) == {"A", "B"}
        assert list(self.service_contracts) == ["A", "B"]
        assert b"import A from 0xf8d6e0586b0a20c7" in self.service_contracts["B"]

        assert self.statuses[0][0] == ProcessStatus.PREPROCESSING
        assert self.statuses[-1] == (ProcessStatus.COMPLETED, "2 deployed, 0 skipped")
        assert [s for s, _ in self.statuses].count(ProcessStatus.SEALED) == 2
        assert self.orchestrator.current_status == ProcessStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_deployed_contracts_are_skipped_without_update(self) -> None:
        await self.orchestrator.deploy("emulator")
        sent = len(self.gateway.sent)

        result = await self.orchestrator.deploy("emulator")

        assert [c.name for c in result.skipped] == ["A", "B"]
        assert result.deployed == []
        assert len(self.gateway.sent) == sent
        assert (ProcessStatus.SKIPPED, "A already deployed, use --update") in self.statuses

    @pytest.mark.asyncio
    async def test_update_replaces_deployed_contracts(self) -> None:
        await self.orchestrator.deploy("emulator")
        self.write("A.cdc", "pub contract A { pub let v: Int\n init() { self.v = 1 } }")

        result = await self.orchestrator.deploy("emulator", update=True)

        assert [c.name for c in result.deployed] == ["A", "B"]
        updates = self.gateway.sent[-2:]
        assert all(tx.script == templates.UPDATE_CONTRACT_TEMPLATE for tx in updates)
        assert self.service_contracts["A"].startswith(b"pub contract A { pub let v")

    @pytest.mark.asyncio
    async def test_failures_are_collected(self) -> None:
        """Test a failing contract does not stop the remaining deployments."""
        self.gateway.execution_errors["A"] = "error: cannot deploy A"

        with pytest.raises(DeploymentError) as exc_info:
            await self.orchestrator.deploy("emulator")

        assert exc_info.value.contract_names == ["A"]
        assert "cannot deploy A" in str(exc_info.value)
        assert list(self.service_contracts) == ["B"]
        assert self.orchestrator.current_status == ProcessStatus.FAILED

    @pytest.mark.asyncio
    async def test_missing_chain_account_is_reported(self) -> None:
        del self.gateway.accounts[SERVICE_ADDRESS]

        with pytest.raises(DeploymentError) as exc_info:
            await self.orchestrator.deploy("emulator")

        assert exc_info.value.contract_names == ["A", "B"]

    @pytest.mark.asyncio
    async def test_duplicate_contract_on_network(self) -> None:
        self.write(
            "flow.json",
            flow_json({"emulator-account": ["A"], "other-account": ["A"]}),
        )
        self.load_project()

        with pytest.raises(DuplicateContractConflictError) as exc_info:
            await self.orchestrator.deploy("emulator")

        assert (exc_info.value.contract, exc_info.value.network) == ("A", "emulator")
        assert self.gateway.sent == []
        assert self.statuses[-1][0] == ProcessStatus.FAILED

    @pytest.mark.asyncio
    async def test_contracts_on_several_accounts(self) -> None:
        self.write(
            "flow.json",
            flow_json({"emulator-account": ["A"], "other-account": ["B"]}),
        )
        self.load_project()

        await self.orchestrator.deploy("emulator")

        other = self.project.account_by_name("other-account")
        b_code = self.gateway.accounts[other.address].contracts["B"]
        assert b"import A from 0xf8d6e0586b0a20c7" in b_code
        assert self.gateway.sent[1].payer == other.address

    @pytest.mark.asyncio
    async def test_unresolved_import_stops_deployment(self) -> None:
        self.write(
            "flow.json",
            flow_json({"emulator-account": ["B"]}, contracts={"B": "./B.cdc"}),
        )
        self.load_project()

        with pytest.raises(UnresolvedImportError):
            await self.orchestrator.deploy("emulator")

        assert self.gateway.sent == []

    @pytest.mark.asyncio
    async def test_deploy_helper(self) -> None:
        result = await deploy(
            self.project,
            "emulator",
            self.gateway,
            config=TransactionConfig(poll_interval=0),
            source_loader=self.source_loader,
        )

        assert result.status == ProcessStatus.COMPLETED
        assert list(self.service_contracts) == ["A", "B"]
