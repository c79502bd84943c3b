"""Main CLI entry point for Flow contract deployment tools."""

import click
from dotenv import load_dotenv

from flow_deploy_core.cli.accounts import accounts
from flow_deploy_core.cli.config import config
from flow_deploy_core.cli.project import deploy, init
from flow_deploy_core.cli.scripts import scripts
from flow_deploy_core.cli.transactions import transactions
from flow_deploy_core.cli.utils import setup_logging


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.option(
    "-f",
    "--config-path",
    "config_paths",
    multiple=True,
    help="Configuration file, repeat to merge several (overrides FLOW_DEPLOY_CONFIG)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_paths: tuple[str, ...]) -> None:
    """Flow smart contract deployment tools."""
    setup_logging(verbose)
    load_dotenv()
    ctx.obj = {"config_paths": config_paths}


# Add commands
cli.add_command(init)
cli.add_command(deploy)
cli.add_command(accounts)
cli.add_command(scripts)
cli.add_command(transactions)
cli.add_command(config)


if __name__ == "__main__":
    cli()
