"""CLI commands for account inspection."""

import logging

import click

from flow_deploy_core.exceptions import FlowError

from .base import create_network_gateway, load_project, resolve_address
from .formatting import format_account
from .utils import async_command

logger = logging.getLogger(__name__)


@click.group()
def accounts() -> None:
    """Account commands."""


@accounts.command()
@click.argument("account")
@click.option("-n", "--network", default="emulator", show_default=True)
@click.pass_obj
@async_command
async def get(obj: dict, account: str, network: str) -> None:
    """Show an account by configured name or address."""
    project = load_project(obj.get("config_paths"))
    address = resolve_address(project, account)

    try:
        async with create_network_gateway(project, network) as gateway:
            on_chain = await gateway.get_account(address)
    except FlowError as e:
        logger.error("Account lookup failed", exc_info=e)
        raise click.ClickException(str(e)) from e

    format_account(on_chain)
