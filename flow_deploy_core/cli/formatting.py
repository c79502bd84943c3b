"""CLI output formatting for deployments and chain queries."""

from typing import Any

import click

from flow_deploy_core.blockchain.models import Account, TransactionResult

from ..constants.colors import CliColor
from ..constants.status import ProcessStatus


def print_header(text: str) -> None:
    """Print styled header text."""
    click.echo()
    click.secho(f"=== {text} ===", fg=CliColor.HEADER, bold=True)
    click.echo()


def print_title(text: str) -> None:
    """Print styled title text."""
    click.secho(f"=== {text} ===", fg=CliColor.TITLE, bold=True)


def print_address_info(label: str, address: str) -> None:
    """Print formatted address information."""
    click.echo(
        f"{click.style(label, fg=CliColor.INFO)}: "
        f"{click.style(address, fg=CliColor.ADDRESS)}"
    )


def print_hash_info(label: str, hash_value: str) -> None:
    """Print formatted hash information."""
    click.echo(
        f"{click.style(label, fg=CliColor.INFO)}: "
        f"{click.style(hash_value, fg=CliColor.HASH)}"
    )


def print_value(label: str, value: Any) -> None:
    click.echo(
        f"{click.style(label, fg=CliColor.INFO)}: "
        f"{click.style(str(value), fg=CliColor.VALUE)}"
    )


def print_status(status: str, message: str, success: bool = True) -> None:
    """Print status message with appropriate styling."""
    icon = "✓" if success else "✗"
    color = CliColor.SUCCESS if success else CliColor.ERROR
    click.secho(f"{icon} {status}: {message}", fg=color)


def print_progress(message: str) -> None:
    """Print progress message."""
    click.secho(f"⟳ {message}...", fg=CliColor.PROGRESS)


def format_status_update(status: ProcessStatus, message: str) -> None:
    """Format and display deployment status updates."""
    colors = {
        ProcessStatus.PREPROCESSING: CliColor.PROGRESS,
        ProcessStatus.PENDING: CliColor.INFO,
        ProcessStatus.ASSEMBLING: CliColor.PROGRESS,
        ProcessStatus.SUBMITTED: CliColor.SUBMITTED,
        ProcessStatus.SKIPPED: CliColor.SKIPPED,
        ProcessStatus.SEALED: CliColor.SUCCESS,
        ProcessStatus.COMPLETED: CliColor.SUCCESS,
        ProcessStatus.FAILED: CliColor.ERROR,
    }

    color = colors.get(status, CliColor.INFO)
    click.secho(f"[{status.value}] {message}", fg=color)


def format_deployment_summary(network: str, result: Any) -> None:
    """Format and print deployment summary."""
    print_header(f"Deployment Summary ({network})")

    for contract in result.deployed:
        print_status(contract.name, f"deployed to {contract.target.hex_with_prefix()}")
        tx_id = result.transaction_ids.get(contract.name)
        if tx_id:
            print_hash_info("  Transaction ID", tx_id.hex())

    for contract in result.skipped:
        click.secho(
            f"- {contract.name}: already deployed, use --update to replace it",
            fg=CliColor.WARNING,
        )

    if not result.deployed and not result.skipped:
        click.secho("No contracts configured for this network", fg=CliColor.NEUTRAL)


def format_account(account: Account) -> None:
    """Print an on-chain account with its keys and contracts."""
    print_header("Account")
    print_address_info("Address", account.address.hex_with_prefix())
    print_value("Balance", account.balance)

    print_title(f"Keys ({len(account.keys)})")
    for key in account.keys:
        print_value("Index", key.index)
        print_hash_info("  Public Key", key.public_key.hex())
        print_value("  Algorithms", f"{key.signature_algorithm} / {key.hash_algorithm}")
        print_value("  Weight", key.weight)
        print_value("  Sequence Number", key.sequence_number)
        if key.revoked:
            click.secho("  Revoked", fg=CliColor.ERROR)

    print_title(f"Contracts ({len(account.contracts)})")
    for name in sorted(account.contracts):
        click.echo(f"  {name}")


def format_transaction_result(result: TransactionResult) -> None:
    """Print a sealed transaction result with its events."""
    print_header("Transaction Result")
    print_hash_info("Transaction ID", result.transaction_id.hex())
    print_value("Status", result.status.name)
    if result.error_message:
        print_status("Execution", result.error_message, success=False)
    else:
        print_status("Execution", "succeeded")

    if result.events:
        print_title(f"Events ({len(result.events)})")
        for event in result.events:
            print_value(f"  #{event.event_index}", event.type)
            for key, value in event.payload.items():
                if key != "_type":
                    click.echo(f"      {key}: {value}")
