"""Contract preprocessing: import resolution, ordering and transpilation.

Contracts are kept in an arena keyed by a stable index assigned on insertion.
Resolved peer imports are stored as indices so the dependency graph never
holds references between contracts.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from flow_deploy_core.blockchain.network import Address

from .exceptions import CyclicImportError, ParseError, UnresolvedImportError
from .graph import DependencyGraph
from .loader import FilesystemLoader, SourceLoader, clean
from .parser import CadenceImportParser, ImportParser, Program

logger = logging.getLogger(__name__)


@dataclass
class Contract:
    """Contract source prepared for deployment."""

    index: int
    name: str
    source: str
    target: Address
    code: bytes
    program: Program
    args: list[dict[str, Any]] = field(default_factory=list)
    account_name: str = ""
    # import literal -> peer contract index
    dependencies: dict[str, int] = field(default_factory=dict)
    # import literal -> resolved address, for peers and aliases alike
    addresses: dict[str, Address] = field(default_factory=dict)

    @property
    def aliases(self) -> dict[str, Address]:
        """Import literals satisfied by an alias rather than a peer contract."""
        return {
            literal: address
            for literal, address in self.addresses.items()
            if literal not in self.dependencies
        }

    def transpiled_code(self) -> str:
        """Code with every resolved string import replaced by its address.

        Only the import declarations are rewritten; the same location
        mentioned elsewhere, in comments or strings, is left as is.
        ``import "Name"`` becomes ``import Name from 0x...``.
        """
        code = self.code.decode("utf-8")
        declarations = sorted(
            (
                d
                for d in self.program.declarations
                if d.is_literal and d.location in self.addresses
            ),
            key=lambda d: d.span,
        )

        parts = []
        position = 0
        for declaration in declarations:
            start, end = declaration.span
            address = self.addresses[declaration.location].hex_with_prefix()
            parts.append(code[position:start])
            if declaration.named:
                parts.append(address)
            else:
                parts.append(f"{declaration.location} from {address}")
            position = end
        parts.append(code[position:])
        return "".join(parts)

    def __repr__(self) -> str:
        return f"Contract(index={self.index}, name={self.name!r}, source={self.source!r})"


class Preprocessor:
    """Builds the ordered list of contracts to deploy."""

    def __init__(
        self,
        loader: SourceLoader | None = None,
        aliases: dict[str, Address] | None = None,
        parser: ImportParser | None = None,
    ) -> None:
        self.loader = loader or FilesystemLoader()
        self.aliases = dict(aliases or {})
        self.parser = parser or CadenceImportParser()
        self._contracts: dict[int, Contract] = {}

    @property
    def contracts(self) -> list[Contract]:
        return [self._contracts[i] for i in sorted(self._contracts)]

    def contract_by_source(self, source: str) -> Contract | None:
        location = clean(source)
        return next(
            (c for c in self.contracts if clean(c.source) == location),
            None,
        )

    def add_contract_source(
        self,
        name: str,
        source: str,
        target: Address,
        args: list[dict[str, Any]] | None = None,
        account_name: str = "",
    ) -> Contract:
        """Load and parse a contract and store it under the next index.

        Raises:
            ParseError: If the source cannot be read or parsed
        """
        try:
            code = self.loader.load(source)
        except OSError as e:
            raise ParseError(source, f"failed to read source: {e}") from e

        program = self.parser.parse(code, source)
        contract = Contract(
            index=len(self._contracts),
            name=name,
            source=source,
            target=target,
            code=code,
            program=program,
            args=list(args or []),
            account_name=account_name,
        )
        self._contracts[contract.index] = contract
        logger.debug(
            "Added contract %s from %s with %d import(s)",
            name,
            source,
            len(program.imports),
        )
        return contract

    def resolve_imports(self) -> None:
        """Resolve every string import to a peer contract or an alias.

        Raises:
            UnresolvedImportError: If an import matches neither
        """
        for contract in self.contracts:
            contract.dependencies = {}
            contract.addresses = {}

            for literal in contract.program.imports:
                location = self.loader.normalize(contract.source, literal)

                peer = self.contract_by_source(location)
                if peer is not None:
                    contract.dependencies[literal] = peer.index
                    contract.addresses[literal] = peer.target
                    continue

                alias = self.aliases.get(location, self.aliases.get(literal))
                if alias is not None:
                    contract.addresses[literal] = alias
                    continue

                raise UnresolvedImportError(contract.name, location)

    def dependency_graph(self) -> DependencyGraph:
        graph = DependencyGraph(self._contracts)
        for contract in self._contracts.values():
            for dependency in contract.dependencies.values():
                graph.add_edge(dependency, contract.index)
        return graph

    def deployment_order(self) -> list[Contract]:
        """Contracts with every dependency before its dependents.

        Ties are broken by insertion order so the result is deterministic.

        Raises:
            CyclicImportError: With every import cycle found
        """
        graph = self.dependency_graph()
        order = graph.topological_order()
        if order is None:
            raise CyclicImportError(
                [[self._contracts[i] for i in cycle] for cycle in graph.cycles()]
            )
        return [self._contracts[i] for i in order]


def preprocess(
    contracts: Iterable[Any],
    aliases: dict[str, Address],
    loader: SourceLoader | None = None,
    parser: ImportParser | None = None,
) -> list[Contract]:
    """Resolve and order deployment contracts.

    Args:
        contracts: Records with ``name``, ``source``, ``target``, ``args``
            and ``account_name``
        aliases: Import location or contract name to on-chain address
        loader: Source loader, reading local files by default
        parser: Import parser, the Cadence one by default

    Returns:
        Contracts in deployment order
    """
    preprocessor = Preprocessor(loader, aliases, parser)
    for contract in contracts:
        preprocessor.add_contract_source(
            contract.name,
            contract.source,
            contract.target,
            contract.args,
            contract.account_name,
        )
    preprocessor.resolve_imports()
    return preprocessor.deployment_order()
