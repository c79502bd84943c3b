"""Test contract import resolution, ordering and transpilation."""

from typing import Any

import pytest

from flow_deploy_core.blockchain.network import Address
from flow_deploy_core.contracts.exceptions import (
    CyclicImportError,
    ParseError,
    UnresolvedImportError,
)
from flow_deploy_core.contracts.graph import DependencyGraph
from flow_deploy_core.contracts.loader import FilesystemLoader, clean
from flow_deploy_core.contracts.parser import CadenceImportParser
from flow_deploy_core.contracts.preprocessor import Preprocessor, preprocess
from flow_deploy_core.project.state import DeploymentContract

from .base import TestBase
from .test_utils import SERVICE_ADDRESS, TARGET_ADDRESS, logger

FUNGIBLE_TOKEN_ADDRESS = Address.from_hex("ee82856bf20e2aa6")


class TestImportParser:
    """Test import extraction from contract code."""

    def setup_method(self) -> None:
        self.parser = CadenceImportParser()

    def test_import_forms(self) -> None:
        code = b"""
import FungibleToken from "./FungibleToken.cdc"
import A, B from "./Pair.cdc"
import Crypto
import NonFungibleToken from 0x1d7e57aa55817448
import "Standalone"

pub contract Token {}
"""
        program = self.parser.parse(code, "Token.cdc")

        assert program.imports == ["./FungibleToken.cdc", "./Pair.cdc", "Standalone"]
        pair = program.declarations[1]
        assert pair.identifiers == ["A", "B"]
        address_import = program.declarations[2]
        assert (address_import.location, address_import.is_literal) == (
            "0x1d7e57aa55817448",
            False,
        )

    def test_commented_imports_are_ignored(self) -> None:
        code = b"""
// import Old from "./Old.cdc"
/* import Older from "./Older.cdc" */
import New from "./New.cdc"
"""
        assert self.parser.parse(code, "x.cdc").imports == ["./New.cdc"]

    def test_declaration_spans_point_into_the_code(self) -> None:
        code = b'/* header */\n// import Old from "./Old.cdc"\nimport A from "./A.cdc"\nimport "B"\n'

        program = self.parser.parse(code, "x.cdc")

        text = code.decode()
        assert [text[slice(*d.span)] for d in program.declarations] == ['"./A.cdc"', '"B"']
        assert [d.named for d in program.declarations] == [True, False]

    def test_duplicate_imports_are_reported_once(self) -> None:
        code = b'import A from "./A.cdc"\nimport AA from "./A.cdc"\n'

        assert self.parser.parse(code, "x.cdc").imports == ["./A.cdc"]

    def test_invalid_encoding(self) -> None:
        with pytest.raises(ParseError):
            self.parser.parse(b"\xff\xfe", "broken.cdc")


class TestDependencyGraph:
    """Test ordering and cycle detection on indices."""

    def test_ties_follow_insertion_order(self) -> None:
        graph = DependencyGraph(range(4))
        graph.add_edge(3, 0)

        assert graph.topological_order() == [1, 2, 3, 0]

    def test_cycle_has_no_order(self) -> None:
        graph = DependencyGraph(range(5))
        graph.add_edge(4, 1)
        graph.add_edge(1, 4)
        graph.add_edge(2, 3)
        graph.add_edge(3, 2)
        graph.add_edge(0, 0)

        assert graph.topological_order() is None
        assert graph.cycles() == [[0], [1, 4], [2, 3]]

    def test_acyclic_graph_has_no_cycles(self) -> None:
        graph = DependencyGraph(range(3))
        graph.add_edge(0, 1)
        graph.add_edge(1, 2)
        graph.add_edge(0, 2)

        assert graph.cycles() == []
        assert graph.successors(0) == [1, 2]


class TestPreprocessor(TestBase):
    """Test preprocessing contracts read from the in-memory filesystem."""

    FILES = {
        "A.cdc": "pub contract A {}",
        "B.cdc": 'import X from "A.cdc"\npub contract B {}',
        "E.cdc": 'import F from "F.cdc"\npub contract E {}',
        "F.cdc": 'import E from "E.cdc"\npub contract F {}',
        "contracts/Token.cdc": (
            'import FungibleToken from "../standards/FungibleToken.cdc"\n'
            'import Utils from "./lib/Utils.cdc"\n'
            "pub contract Token {}"
        ),
        "contracts/lib/Utils.cdc": "pub contract Utils {}",
        "Self.cdc": 'import Self from "./Self.cdc"\npub contract Self {}',
    }

    def setup_method(self, method: Any) -> None:
        super().setup_method(method)
        self.preprocessor = Preprocessor(FilesystemLoader(self.filesystem))
        logger.info("TestPreprocessor setup complete")

    def add(self, name: str, source: str, target: Address = TARGET_ADDRESS) -> None:
        self.preprocessor.add_contract_source(name, source, target)

    def test_dependency_deployed_first(self) -> None:
        """Test an imported peer comes before its importer."""
        self.add("B", "B.cdc")
        self.add("A", "A.cdc")

        self.preprocessor.resolve_imports()
        order = self.preprocessor.deployment_order()

        assert [c.name for c in order] == ["A", "B"]
        b_code = order[1].transpiled_code()
        assert "import X from 0xf8d6e0586b0a20c1" in b_code
        assert '"A.cdc"' not in b_code
        assert order[1].dependencies == {"A.cdc": order[0].index}

    def test_order_is_deterministic(self) -> None:
        self.add("A", "A.cdc")
        self.add("B", "B.cdc")
        self.add("Utils", "contracts/lib/Utils.cdc")
        self.preprocessor.resolve_imports()

        first = [c.name for c in self.preprocessor.deployment_order()]
        second = [c.name for c in self.preprocessor.deployment_order()]

        assert first == second == ["A", "B", "Utils"]

    def test_cycle_is_reported_with_contracts(self) -> None:
        self.add("E", "E.cdc")
        self.add("F", "F.cdc")
        self.preprocessor.resolve_imports()

        with pytest.raises(CyclicImportError) as exc_info:
            self.preprocessor.deployment_order()

        cycles = [[c.name for c in cycle] for cycle in exc_info.value.cycles]
        assert cycles == [["E", "F"]]
        assert "[[E F]]" in str(exc_info.value)

    def test_self_import_is_a_cycle(self) -> None:
        self.add("Self", "Self.cdc")
        self.preprocessor.resolve_imports()

        with pytest.raises(CyclicImportError) as exc_info:
            self.preprocessor.deployment_order()

        assert [[c.name for c in cycle] for cycle in exc_info.value.cycles] == [["Self"]]

    def test_relative_imports_and_aliases(self) -> None:
        """Test nested relative imports resolve to peers or aliases."""
        self.preprocessor.aliases = {"standards/FungibleToken.cdc": FUNGIBLE_TOKEN_ADDRESS}
        self.add("Token", "./contracts/Token.cdc")
        self.add("Utils", "contracts/lib/Utils.cdc", SERVICE_ADDRESS)

        self.preprocessor.resolve_imports()
        token, utils = self.preprocessor.contracts

        assert token.aliases == {"../standards/FungibleToken.cdc": FUNGIBLE_TOKEN_ADDRESS}
        assert token.dependencies == {"./lib/Utils.cdc": utils.index}

        code = token.transpiled_code()
        assert "import FungibleToken from 0xee82856bf20e2aa6" in code
        assert "import Utils from 0xf8d6e0586b0a20c7" in code
        assert [c.name for c in self.preprocessor.deployment_order()] == ["Utils", "Token"]

    def test_only_import_declarations_are_rewritten(self) -> None:
        self.write(
            "Commented.cdc",
            '// uses "A.cdc"\nimport X from "A.cdc"\n'
            'pub contract Commented { pub let path: String\n init() { self.path = "A.cdc" } }',
        )
        self.add("A", "A.cdc")
        self.add("Commented", "Commented.cdc")
        self.preprocessor.resolve_imports()

        code = self.preprocessor.contracts[1].transpiled_code()

        assert code.startswith('// uses "A.cdc"\nimport X from 0xf8d6e0586b0a20c1\n')
        assert 'self.path = "A.cdc"' in code

    def test_repeated_imports_of_one_location_are_all_rewritten(self) -> None:
        self.write(
            "Twice.cdc",
            'import X from "A.cdc"\nimport Y from "./A.cdc"\nimport Z from "A.cdc"\n'
            "pub contract Twice {}",
        )
        self.add("A", "A.cdc")
        self.add("Twice", "Twice.cdc")
        self.preprocessor.resolve_imports()

        code = self.preprocessor.contracts[1].transpiled_code()

        assert '"A.cdc"' not in code
        assert '"./A.cdc"' not in code
        assert code.count("from 0xf8d6e0586b0a20c1") == 3

    def test_alias_by_contract_name(self) -> None:
        self.write("Uses.cdc", 'import "FungibleToken"\npub contract Uses {}')
        self.preprocessor.aliases = {"FungibleToken": FUNGIBLE_TOKEN_ADDRESS}
        self.add("Uses", "Uses.cdc")

        self.preprocessor.resolve_imports()

        code = self.preprocessor.contracts[0].transpiled_code()
        assert code.startswith("import FungibleToken from 0xee82856bf20e2aa6\n")

    def test_unresolved_import(self) -> None:
        self.add("B", "B.cdc")

        with pytest.raises(UnresolvedImportError) as exc_info:
            self.preprocessor.resolve_imports()

        assert exc_info.value.contract == "B"
        assert exc_info.value.missing == "A.cdc"
        assert "make sure import path is correct" in str(exc_info.value)

    def test_missing_source(self) -> None:
        with pytest.raises(ParseError, match="Missing.cdc"):
            self.add("Missing", "Missing.cdc")

    def test_contract_by_source_uses_clean_paths(self) -> None:
        self.add("Utils", "./contracts/lib/../lib/Utils.cdc")

        assert self.preprocessor.contract_by_source("contracts/lib/Utils.cdc").name == "Utils"
        assert self.preprocessor.contract_by_source("Utils.cdc") is None
        assert clean("a\\b\\..\\c.cdc") == "a/c.cdc"

    def test_preprocess_deployment_contracts(self) -> None:
        contracts = [
            DeploymentContract("B", "B.cdc", "emulator-account", TARGET_ADDRESS),
            DeploymentContract(
                "A",
                "A.cdc",
                "emulator-account",
                TARGET_ADDRESS,
                args=[{"type": "String", "value": "hello"}],
            ),
        ]

        ordered = preprocess(contracts, {}, loader=self.source_loader)

        assert [c.name for c in ordered] == ["A", "B"]
        assert ordered[0].args == [{"type": "String", "value": "hello"}]
        assert ordered[0].account_name == "emulator-account"
