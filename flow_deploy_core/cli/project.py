"""CLI commands for project initialization and contract deployment."""

import logging

import click

from flow_deploy_core.blockchain.transactions import TransactionConfig, TransactionManager
from flow_deploy_core.config.loader import LOCAL_CONFIG_PATH
from flow_deploy_core.deployment.exceptions import DeploymentError
from flow_deploy_core.deployment.orchestrator import DeploymentOrchestrator
from flow_deploy_core.exceptions import FlowError
from flow_deploy_core.keys.crypto import HashAlgorithm, SignatureAlgorithm
from flow_deploy_core.project.state import Project

from .base import create_network_gateway, load_project
from .formatting import (
    format_deployment_summary,
    format_status_update,
    print_address_info,
    print_header,
    print_progress,
    print_status,
)
from .utils import async_command

logger = logging.getLogger(__name__)


@click.command()
@click.option(
    "--service-private-key",
    envvar="FLOW_SERVICE_PRIVATE_KEY",
    required=True,
    help="Hex private key of the emulator service account",
)
@click.option(
    "--service-sig-algo",
    type=click.Choice([a.value for a in SignatureAlgorithm], case_sensitive=False),
    default=SignatureAlgorithm.ECDSA_P256.value,
    show_default=True,
    help="Signature algorithm of the service key",
)
@click.option(
    "--service-hash-algo",
    type=click.Choice([a.value for a in HashAlgorithm], case_sensitive=False),
    default=HashAlgorithm.SHA3_256.value,
    show_default=True,
    help="Hash algorithm of the service key",
)
@click.option(
    "--path",
    default=LOCAL_CONFIG_PATH,
    show_default=True,
    help="Configuration file to create",
)
@click.option("--reset", is_flag=True, help="Overwrite an existing configuration")
def init(
    service_private_key: str,
    service_sig_algo: str,
    service_hash_algo: str,
    path: str,
    reset: bool,
) -> None:
    """Initialize a project configuration file."""
    try:
        project = Project.init(
            service_private_key,
            path=path,
            sig_algo=SignatureAlgorithm.parse(service_sig_algo),
            hash_algo=HashAlgorithm.parse(service_hash_algo),
            reset=reset,
        )
    except FlowError as e:
        logger.error("Initialization failed", exc_info=e)
        raise click.ClickException(str(e)) from e

    service = project.accounts[0]
    print_status("Configuration", f"initialized at {path}")
    print_address_info(service.name, service.address.hex_with_prefix())


@click.command()
@click.option(
    "-n",
    "--network",
    default="emulator",
    show_default=True,
    help="Network to deploy to",
)
@click.option("--update", is_flag=True, help="Replace contracts already deployed")
@click.option(
    "--seal-timeout",
    type=float,
    default=None,
    help="Seconds to wait for each transaction to seal",
)
@click.pass_obj
@async_command
async def deploy(
    obj: dict, network: str, update: bool, seal_timeout: float | None
) -> None:
    """Deploy the contracts configured for a network."""
    project = load_project(obj.get("config_paths"))

    print_header(f"Deploying to {network}")
    print_progress("Resolving contract imports")

    try:
        async with create_network_gateway(project, network) as gateway:
            tx_manager = TransactionManager(
                gateway, TransactionConfig(seal_timeout=seal_timeout)
            )
            orchestrator = DeploymentOrchestrator(
                project,
                gateway,
                tx_manager,
                status_callback=format_status_update,
            )
            result = await orchestrator.deploy(network, update=update)
    except DeploymentError as e:
        logger.error("Deployment failed", exc_info=e)
        for name, error in e.per_contract:
            print_status(name, str(error), success=False)
        raise click.ClickException(
            f"{len(e.per_contract)} contract(s) failed to deploy"
        ) from e
    except FlowError as e:
        logger.error("Deployment failed", exc_info=e)
        raise click.ClickException(str(e)) from e

    format_deployment_summary(network, result)
