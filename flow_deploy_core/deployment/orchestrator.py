"""Orchestrates contract deployment to the accounts configured for a network."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from flow_deploy_core.blockchain.gateway import Gateway
from flow_deploy_core.blockchain.transactions import TransactionConfig, TransactionManager
from flow_deploy_core.config.exceptions import InvalidSemanticsError
from flow_deploy_core.contracts.loader import FilesystemLoader, SourceLoader
from flow_deploy_core.contracts.parser import ImportParser
from flow_deploy_core.contracts.preprocessor import Contract, preprocess
from flow_deploy_core.exceptions import FlowError
from flow_deploy_core.project.state import Project

from ..constants.status import ProcessStatus
from .exceptions import DeploymentError, DuplicateContractConflictError

logger = logging.getLogger(__name__)


@dataclass
class DeploymentResult:
    """Result of a deployment run"""

    status: ProcessStatus
    deployed: list[Contract] = field(default_factory=list)
    skipped: list[Contract] = field(default_factory=list)
    transaction_ids: dict[str, bytes] = field(default_factory=dict)
    error: Exception | None = None


class DeploymentOrchestrator:
    """Coordinates preprocessing and deployment of project contracts."""

    def __init__(
        self,
        project: Project,
        gateway: Gateway,
        tx_manager: TransactionManager | None = None,
        status_callback: Callable[[ProcessStatus, str], None] | None = None,
        source_loader: SourceLoader | None = None,
        parser: ImportParser | None = None,
    ) -> None:
        """Initialize the deployment orchestrator.

        Args:
            project: Project holding configuration and accounts
            gateway: Gateway to the target network
            tx_manager: Transaction manager, built on the gateway if omitted
            status_callback: Optional callback for status updates
            source_loader: Contract source loader, local files by default
            parser: Import parser, the Cadence one by default
        """
        self.project = project
        self.gateway = gateway
        self.tx_manager = tx_manager or TransactionManager(gateway, TransactionConfig())
        self.status_callback = status_callback
        self.source_loader = source_loader or FilesystemLoader()
        self.parser = parser

        # Track deployment state
        self.current_status = ProcessStatus.NOT_STARTED

    def _update_status(self, status: ProcessStatus, message: str = "") -> None:
        """Update deployment status and notify callback."""
        self.current_status = status
        if self.status_callback:
            self.status_callback(status, message)

    def check_duplicate_contracts(self, network: str) -> None:
        """Reject a contract deployed to more than one account on a network.

        Raises:
            DuplicateContractConflictError: On the first conflicting contract
        """
        owners: dict[str, str] = {}
        for deployment in self.project.config.deployments_for_network(network):
            for name in deployment.contract_names:
                owner = owners.setdefault(name, deployment.account)
                if owner != deployment.account:
                    raise DuplicateContractConflictError(name, network)

    def prepare(self, network: str) -> list[Contract]:
        """Preprocess the contracts of a network into deployment order.

        Raises:
            DuplicateContractConflictError: If a contract targets several accounts
            PreprocessorError: If imports cannot be resolved or are cyclic
        """
        self._update_status(
            ProcessStatus.PREPROCESSING, f"Resolving contracts for {network}..."
        )
        self.check_duplicate_contracts(network)
        return preprocess(
            self.project.deployment_contracts_for_network(network),
            self.project.aliases_for_network(network),
            loader=self.source_loader,
            parser=self.parser,
        )

    async def deploy(self, network: str, update: bool = False) -> DeploymentResult:
        """Deploy every contract configured for a network.

        Contracts are sent one at a time in dependency order. A failing
        contract does not stop the run; failures are raised together once
        every contract has been attempted.

        Args:
            network: Configured network name
            update: Replace contracts that are already deployed

        Returns:
            DeploymentResult with deployed and skipped contracts

        Raises:
            DeploymentError: If one or more contracts failed
        """
        try:
            contracts = self.prepare(network)
        except FlowError as e:
            logger.error("Deployment failed: %s", e)
            self._update_status(ProcessStatus.FAILED, str(e))
            raise

        logger.info(
            "Deploying %d contract(s) to %s: %s",
            len(contracts),
            network,
            ", ".join(c.name for c in contracts),
        )

        result = DeploymentResult(status=ProcessStatus.PENDING)
        errors: list[tuple[str, Exception]] = []

        for contract in contracts:
            try:
                tx_id = await self._deploy_contract(contract, update)
            except FlowError as e:
                logger.error("Failed to deploy %s: %s", contract.name, e)
                self._update_status(ProcessStatus.FAILED, f"{contract.name}: {e}")
                errors.append((contract.name, e))
                continue

            if tx_id is None:
                result.skipped.append(contract)
            else:
                result.deployed.append(contract)
                result.transaction_ids[contract.name] = tx_id

        if errors:
            error = DeploymentError(errors)
            result.status = ProcessStatus.FAILED
            result.error = error
            self._update_status(ProcessStatus.FAILED, str(error))
            raise error

        result.status = ProcessStatus.COMPLETED
        self._update_status(
            ProcessStatus.COMPLETED,
            f"{len(result.deployed)} deployed, {len(result.skipped)} skipped",
        )
        return result

    async def _deploy_contract(self, contract: Contract, update: bool) -> bytes | None:
        """Deploy a single contract.

        Returns:
            The sealed transaction id, or None when the contract was skipped
        """
        self._update_status(ProcessStatus.PENDING, contract.name)

        signer = self.project.account_by_name(
            contract.account_name
        ) or self.project.account_by_address(contract.target)
        if signer is None:
            raise InvalidSemanticsError(
                f"no account configured for address {contract.target.hex()}"
            )

        on_chain = await self.tx_manager.get_account(contract.target)
        exists = contract.name in on_chain.contracts

        if exists and not update:
            logger.warning(
                "Contract %s on %s already deployed, use --update to replace it",
                contract.name,
                signer.name,
            )
            self._update_status(
                ProcessStatus.SKIPPED,
                f"{contract.name} already deployed, use --update",
            )
            return None

        self._update_status(ProcessStatus.ASSEMBLING, contract.name)
        if exists:
            tx = await self.tx_manager.build_update_contract(signer, contract)
        else:
            tx = await self.tx_manager.build_add_contract(signer, contract)
        await self.tx_manager.sign(tx, signer)

        self._update_status(ProcessStatus.SUBMITTED, contract.name)
        sealed = await self.tx_manager.send(tx)
        sealed.raise_for_error()

        action = "updated" if exists else "added"
        logger.info(
            "Contract %s %s on %s", contract.name, action, contract.target.hex_with_prefix()
        )
        self._update_status(ProcessStatus.SEALED, f"{contract.name} {action}")
        return sealed.transaction_id


async def deploy(
    project: Project,
    network: str,
    gateway: Gateway,
    update: bool = False,
    config: TransactionConfig | None = None,
    source_loader: SourceLoader | None = None,
) -> DeploymentResult:
    """Deploy the contracts of a network with default collaborators."""
    orchestrator = DeploymentOrchestrator(
        project,
        gateway,
        TransactionManager(gateway, config),
        source_loader=source_loader,
    )
    return await orchestrator.deploy(network, update=update)
