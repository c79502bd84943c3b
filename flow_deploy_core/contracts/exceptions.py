"""Contract preprocessing exceptions."""

from typing import TYPE_CHECKING

from flow_deploy_core.exceptions import FlowError

if TYPE_CHECKING:
    from .preprocessor import Contract


class PreprocessorError(FlowError):
    """Base exception for contract preprocessing errors."""

    pass


class ParseError(PreprocessorError):
    """Raised when a contract source cannot be loaded or parsed."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"failed to parse contract {path}: {reason}")


class UnresolvedImportError(PreprocessorError):
    """Raised when an import matches neither a peer contract nor an alias."""

    def __init__(self, contract: str, missing: str) -> None:
        self.contract = contract
        self.missing = missing
        super().__init__(
            f"import from {contract} could not be found: {missing}, "
            "make sure import path is correct."
        )


class CyclicImportError(PreprocessorError):
    """Raised when contracts import each other in a cycle."""

    def __init__(self, cycles: list[list["Contract"]]) -> None:
        self.cycles = cycles
        rendered = " ".join(
            "[" + " ".join(contract.name for contract in cycle) + "]"
            for cycle in cycles
        )
        super().__init__(f"contracts: import cycle(s) detected: [{rendered}]")
