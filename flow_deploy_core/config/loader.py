"""Configuration loading, composition and persistence."""

import logging
import os
from collections.abc import Mapping
from typing import Final

from flow_deploy_core.utils.filesystem import (
    CONFIG_FILE_MODE,
    Filesystem,
    LocalFilesystem,
)

from .exceptions import (
    ConfigError,
    ConfigNotFoundError,
    InvalidSemanticsError,
    InvalidSyntaxError,
    ParserNotFoundError,
)
from .json_parser import JsonParser
from .model import Config
from .parsers import Parser, ParserRegistry
from .processor import process

logger = logging.getLogger(__name__)

GLOBAL_CONFIG_PATH: Final[str] = os.path.join("~", "flow.json")
LOCAL_CONFIG_PATH: Final[str] = "flow.json"
DEFAULT_CONFIG_PATHS: Final[tuple[str, ...]] = (GLOBAL_CONFIG_PATH, LOCAL_CONFIG_PATH)


class Loader:
    """Loads configuration files into a single composed ``Config``.

    Files are read through a filesystem capability, preprocessed (environment
    substitution and ``fromFile`` extraction), decoded by the parser matching
    their extension and merged left to right, later files winning.
    """

    def __init__(
        self,
        filesystem: Filesystem | None = None,
        registry: ParserRegistry | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.filesystem = filesystem or LocalFilesystem()
        self.registry = registry or ParserRegistry([JsonParser()])
        self.environ = environ

    def add_parser(self, parser: Parser) -> None:
        self.registry.add(parser)

    def _parser_for(self, path: str) -> Parser:
        extension = os.path.splitext(path)[1]
        parser = self.registry.find_for_format(extension)
        if parser is None:
            raise ParserNotFoundError(extension)
        return parser

    def _load_file(self, path: str) -> tuple[Config, dict[str, str]]:
        try:
            raw = self.filesystem.read_file(path)
        except FileNotFoundError as e:
            raise ConfigNotFoundError(path) from e
        except OSError as e:
            raise ConfigError(f"failed to read configuration {path}: {e}") from e

        parser = self._parser_for(path)
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidSyntaxError(path, str(e)) from e

        processed, references = process(text, self.environ)
        try:
            config = parser.deserialize(processed.encode("utf-8"))
        except InvalidSyntaxError as e:
            raise InvalidSyntaxError(path, e.reason) from e
        except InvalidSemanticsError as e:
            raise InvalidSemanticsError(f"{path}: {e}") from e

        logger.debug(
            "Loaded configuration %s (%d accounts, %d contracts)",
            path,
            len(config.accounts),
            len(config.contracts),
        )
        return config, references

    def load(self, paths: list[str] | tuple[str, ...]) -> Config:
        """Load and compose configuration files.

        Args:
            paths: Files in increasing order of precedence

        Returns:
            Composed and validated configuration

        Raises:
            ConfigError: If any file is missing, malformed or inconsistent
        """
        if not paths:
            raise ConfigNotFoundError("<no configuration paths>")

        composed = Config()
        references: dict[str, str] = {}
        for path in paths:
            config, file_references = self._load_file(path)
            composed.merge(config)
            references.update(file_references)

        self._postprocess(composed, references)
        composed.validate()
        return composed

    def load_default(self, paths: tuple[str, ...] = DEFAULT_CONFIG_PATHS) -> Config:
        """Load whichever default configuration files exist."""
        existing = [path for path in paths if self.filesystem.exists(path)]
        if not existing:
            raise ConfigNotFoundError(", ".join(paths))
        return self.load(existing)

    def _postprocess(self, config: Config, references: dict[str, str]) -> None:
        for name, path in references.items():
            logger.debug("Loading account %s from %s", name, path)
            referenced, _ = self._load_file(path)
            account = referenced.get_account(name)
            if account is None:
                raise InvalidSemanticsError(
                    f"account {name} is not defined in referenced file {path}"
                )
            config.add_or_update_account(account)

    def save(self, config: Config, path: str) -> None:
        """Serialize a configuration and write it with a single write call."""
        parser = self._parser_for(path)
        data = parser.serialize(config)
        try:
            self.filesystem.write_file(path, data, CONFIG_FILE_MODE)
        except OSError as e:
            raise ConfigError(f"failed to write configuration {path}: {e}") from e
        logger.info("Configuration saved to %s", path)

    def exists(self, path: str) -> bool:
        return self.filesystem.exists(path)


def load_config(
    paths: list[str] | tuple[str, ...], filesystem: Filesystem | None = None
) -> Config:
    """Load configuration files with the default JSON parser."""
    return Loader(filesystem).load(paths)


def save_config(config: Config, path: str, filesystem: Filesystem | None = None) -> None:
    """Save a configuration with the default JSON parser."""
    Loader(filesystem).save(config, path)
