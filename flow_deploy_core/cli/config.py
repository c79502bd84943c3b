"""CLI commands for configuration management."""

import click

from flow_deploy_core.exceptions import FlowError

from .base import load_project
from .formatting import print_status


@click.group()
def config() -> None:
    """Configuration commands."""


@config.command()
@click.pass_obj
def validate(obj: dict) -> None:
    """Load and validate the project configuration."""
    project = load_project(obj.get("config_paths"))
    try:
        project.config.validate()
    except FlowError as e:
        raise click.ClickException(str(e)) from e

    cfg = project.config
    print_status(
        "Configuration",
        f"valid ({len(cfg.accounts)} accounts, {len(cfg.networks)} networks, "
        f"{len(cfg.contracts)} contracts, {len(cfg.deployments)} deployments)",
    )
