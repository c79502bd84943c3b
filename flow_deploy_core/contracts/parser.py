"""Import extraction for contract sources.

The preprocessor only needs the import locations of a program, so the parser
is a small capability that can be swapped for a full Cadence parser.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from .exceptions import ParseError

# import A, B from "./path.cdc" | import A from 0x01 | import "A"
IMPORT_PATTERN = re.compile(
    r"""^[ \t]*import[ \t]+
        (?:(?P<names>[A-Za-z_][\w \t,]*?)[ \t]+from[ \t]+)?
        (?:"(?P<literal>[^"\n]+)"|(?P<address>0x[0-9a-fA-F]+))""",
    re.MULTILINE | re.VERBOSE,
)
LINE_COMMENT_PATTERN = re.compile(r"//[^\n]*")
BLOCK_COMMENT_PATTERN = re.compile(r"/\*.*?\*/", re.DOTALL)


def _blank(match: re.Match) -> str:
    return re.sub(r"[^\n]", " ", match.group(0))


@dataclass
class ImportDeclaration:
    """Single import statement.

    ``span`` is the position of the location in the source code, including
    the quotes of a string location. ``named`` is false for the
    ``import "Name"`` form, where the identifier is the location itself.
    """

    identifiers: list[str]
    location: str
    is_literal: bool
    span: tuple[int, int] = (0, 0)
    named: bool = True


@dataclass
class Program:
    """Parsed view of a contract sufficient for dependency resolution."""

    declarations: list[ImportDeclaration] = field(default_factory=list)

    @property
    def imports(self) -> list[str]:
        """String-literal import locations, without duplicates, in source order."""
        seen: list[str] = []
        for declaration in self.declarations:
            if declaration.is_literal and declaration.location not in seen:
                seen.append(declaration.location)
        return seen


class ImportParser(ABC):
    """Parses contract code into a Program."""

    @abstractmethod
    def parse(self, code: bytes, path: str) -> Program:
        """Parse code loaded from path.

        Raises:
            ParseError: If the code cannot be parsed
        """


class CadenceImportParser(ImportParser):
    """Extracts Cadence import declarations with regular expressions."""

    def parse(self, code: bytes, path: str) -> Program:
        try:
            text = code.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(path, f"source is not valid UTF-8: {e}") from e

        # Blank comments out so declaration spans stay valid in the original code
        text = BLOCK_COMMENT_PATTERN.sub(_blank, text)
        text = LINE_COMMENT_PATTERN.sub(_blank, text)

        declarations = []
        for match in IMPORT_PATTERN.finditer(text):
            names = match.group("names") or ""
            identifiers = [n.strip() for n in names.split(",") if n.strip()]
            literal = match.group("literal")
            if literal is not None:
                start, end = match.span("literal")
                declarations.append(
                    ImportDeclaration(
                        identifiers or [literal],
                        literal,
                        True,
                        span=(start - 1, end + 1),
                        named=bool(identifiers),
                    )
                )
            else:
                declarations.append(
                    ImportDeclaration(
                        identifiers,
                        match.group("address"),
                        False,
                        span=match.span("address"),
                    )
                )
        return Program(declarations)
