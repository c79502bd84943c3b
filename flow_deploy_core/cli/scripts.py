"""CLI commands for executing scripts."""

import logging
from pathlib import Path

import click

from flow_deploy_core.blockchain.transactions import TransactionManager
from flow_deploy_core.exceptions import FlowError

from .base import create_network_gateway, load_project
from .formatting import print_header, print_value
from .utils import async_command, parse_cadence_args

logger = logging.getLogger(__name__)


@click.group()
def scripts() -> None:
    """Script commands."""


@scripts.command()
@click.argument("filename", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--arg",
    "args",
    multiple=True,
    help='JSON-Cadence argument, e.g. \'{"type":"Int","value":"1"}\'',
)
@click.option("-n", "--network", default="emulator", show_default=True)
@click.pass_obj
@async_command
async def execute(obj: dict, filename: Path, args: tuple[str, ...], network: str) -> None:
    """Execute a read-only script."""
    project = load_project(obj.get("config_paths"))
    arguments = parse_cadence_args(args)
    code = filename.read_text(encoding="utf-8")

    try:
        async with create_network_gateway(project, network) as gateway:
            value = await TransactionManager(gateway).execute_script(code, arguments)
    except FlowError as e:
        logger.error("Script execution failed", exc_info=e)
        raise click.ClickException(str(e)) from e

    print_header("Script Result")
    print_value("Result", value)
