"""Base CLI utilities and helper functions."""

import logging
import os

import click

from flow_deploy_core.blockchain.http_gateway import (
    GatewayConfig,
    HttpGateway,
    create_gateway,
)
from flow_deploy_core.blockchain.network import Address, parse_address
from flow_deploy_core.exceptions import FlowError
from flow_deploy_core.project.account import Account
from flow_deploy_core.project.state import Project

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FLOW_DEPLOY_CONFIG"


def config_paths(paths: tuple[str, ...] | list[str] | None) -> list[str] | None:
    """Configuration files from the command line, else from the environment.

    Returns None when neither is set so the default locations are used.
    """
    if paths:
        return list(paths)
    from_env = os.environ.get(CONFIG_ENV_VAR, "")
    return [p.strip() for p in from_env.split(",") if p.strip()] or None


def load_project(paths: tuple[str, ...] | list[str] | None) -> Project:
    """Load the project configuration.

    Raises:
        click.ClickException: If the configuration cannot be loaded
    """
    resolved = config_paths(paths)
    logger.debug("Loading configuration from %s", resolved or "default locations")
    try:
        return Project.load(resolved)
    except FlowError as e:
        raise click.ClickException(str(e)) from e


def create_network_gateway(
    project: Project, network: str, timeout: float | None = None
) -> HttpGateway:
    """Create a gateway for a configured network."""
    try:
        network_config = project.network(network)
    except FlowError as e:
        raise click.ClickException(str(e)) from e

    config = GatewayConfig() if timeout is None else GatewayConfig(timeout=timeout)
    return create_gateway(network_config, config)


def resolve_address(project: Project, value: str) -> Address:
    """Resolve an account name from configuration or a hex address."""
    account = project.account_by_name(value)
    if account is not None:
        return account.address
    try:
        return parse_address(value)
    except ValueError as e:
        raise click.BadParameter(
            f"{value} is neither a configured account nor an address"
        ) from e


def resolve_signer(project: Project, name: str) -> Account:
    account = project.account_by_name(name)
    if account is None:
        raise click.BadParameter(f"account {name} is not configured")
    return account
