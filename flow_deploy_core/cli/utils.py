"""CLI utility functions and decorators."""

import asyncio
import json
import logging
from collections.abc import Callable
from functools import wraps
from typing import Any

import click


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def async_command(f: Callable) -> Callable:
    """Decorator to run async click commands."""

    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return asyncio.run(f(*args, **kwargs))

    return wrapper


def parse_cadence_args(values: tuple[str, ...]) -> list[dict[str, Any]]:
    """Parse ``--arg`` options given as JSON-Cadence documents."""
    args = []
    for value in values:
        try:
            arg = json.loads(value)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"invalid JSON argument {value!r}: {e}") from e
        if not isinstance(arg, dict) or "type" not in arg:
            raise click.BadParameter(
                f"argument {value!r} is not a JSON-Cadence value"
            )
        args.append(arg)
    return args
