"""CLI commands for sending transactions."""

import logging
from pathlib import Path

import click

from flow_deploy_core.blockchain.transactions import TransactionConfig, TransactionManager
from flow_deploy_core.exceptions import FlowError

from .base import create_network_gateway, load_project, resolve_signer
from .formatting import format_transaction_result, print_progress
from .utils import async_command, parse_cadence_args

logger = logging.getLogger(__name__)


@click.group()
def transactions() -> None:
    """Transaction commands."""


@transactions.command()
@click.argument("filename", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--signer",
    default="emulator-account",
    show_default=True,
    help="Configured account that proposes, pays for and authorizes the transaction",
)
@click.option(
    "--arg",
    "args",
    multiple=True,
    help='JSON-Cadence argument, e.g. \'{"type":"String","value":"hi"}\'',
)
@click.option("-n", "--network", default="emulator", show_default=True)
@click.option("--gas-limit", type=int, default=9999, show_default=True)
@click.pass_obj
@async_command
async def send(
    obj: dict,
    filename: Path,
    signer: str,
    args: tuple[str, ...],
    network: str,
    gas_limit: int,
) -> None:
    """Send a transaction and wait for it to be sealed."""
    project = load_project(obj.get("config_paths"))
    account = resolve_signer(project, signer)
    arguments = parse_cadence_args(args)
    code = filename.read_text(encoding="utf-8")

    try:
        async with create_network_gateway(project, network) as gateway:
            tx_manager = TransactionManager(gateway, TransactionConfig(gas_limit=gas_limit))
            print_progress(f"Sending transaction signed by {account.name}")
            result = await tx_manager.send_transaction(code, arguments, account)
    except FlowError as e:
        logger.error("Transaction failed", exc_info=e)
        raise click.ClickException(str(e)) from e

    format_transaction_result(result)
    if result.failed:
        raise click.ClickException("transaction sealed with an execution error")
