"""Configuration format parsers and their registry."""

from abc import ABC, abstractmethod

from .model import Config


class Parser(ABC):
    """Converts a configuration to and from one file format."""

    @abstractmethod
    def serialize(self, config: Config) -> bytes:
        """Encode a configuration."""

    @abstractmethod
    def deserialize(self, raw: bytes) -> Config:
        """Decode a configuration.

        Raises:
            InvalidSyntaxError: If the document is malformed
            InvalidSemanticsError: If values are well formed but unusable
        """

    @abstractmethod
    def supports(self, extension: str) -> bool:
        """Whether the parser handles files with this extension."""


class ParserRegistry:
    """Ordered collection of parsers looked up by file extension."""

    def __init__(self, parsers: list[Parser] | None = None) -> None:
        self._parsers: list[Parser] = list(parsers or [])

    def add(self, parser: Parser) -> None:
        self._parsers.append(parser)

    def find_for_format(self, extension: str) -> Parser | None:
        normalized = extension.lower().lstrip(".")
        for parser in self._parsers:
            if parser.supports(normalized):
                return parser
        return None

    def __len__(self) -> int:
        return len(self._parsers)
