"""Filesystem capability used by the configuration and source loaders."""

import os
import posixpath
from abc import ABC, abstractmethod
from pathlib import Path

CONFIG_FILE_MODE = 0o644


class Filesystem(ABC):
    """Minimal file access needed by the loaders."""

    @abstractmethod
    def read_file(self, path: str) -> bytes:
        """Read a file.

        Raises:
            FileNotFoundError: If the file does not exist
        """

    @abstractmethod
    def write_file(self, path: str, data: bytes, mode: int = CONFIG_FILE_MODE) -> None:
        """Write a file in one call, replacing existing content."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Whether a regular file exists at path."""


class LocalFilesystem(Filesystem):
    """Operating system filesystem."""

    def read_file(self, path: str) -> bytes:
        return Path(path).expanduser().read_bytes()

    def write_file(self, path: str, data: bytes, mode: int = CONFIG_FILE_MODE) -> None:
        target = Path(path).expanduser()
        target.write_bytes(data)
        os.chmod(target, mode)

    def exists(self, path: str) -> bool:
        return Path(path).expanduser().is_file()


class MemoryFilesystem(Filesystem):
    """In-memory filesystem keyed by normalized path."""

    def __init__(self, files: dict[str, bytes | str] | None = None) -> None:
        self._files: dict[str, bytes] = {}
        self.modes: dict[str, int] = {}
        for path, data in (files or {}).items():
            self.write_file(path, data.encode() if isinstance(data, str) else data)

    @staticmethod
    def _key(path: str) -> str:
        return posixpath.normpath(path.replace("\\", "/"))

    def read_file(self, path: str) -> bytes:
        try:
            return self._files[self._key(path)]
        except KeyError as e:
            raise FileNotFoundError(path) from e

    def write_file(self, path: str, data: bytes, mode: int = CONFIG_FILE_MODE) -> None:
        self._files[self._key(path)] = bytes(data)
        self.modes[self._key(path)] = mode

    def exists(self, path: str) -> bool:
        return self._key(path) in self._files
