"""Contract source loading."""

import posixpath
from abc import ABC, abstractmethod

from flow_deploy_core.utils.filesystem import Filesystem, LocalFilesystem


class SourceLoader(ABC):
    """Resolves and reads contract sources."""

    @abstractmethod
    def load(self, source: str) -> bytes:
        """Read the code at a source location."""

    @abstractmethod
    def normalize(self, base: str, relative: str) -> str:
        """Resolve an import location relative to the importing source."""


class FilesystemLoader(SourceLoader):
    """Loads sources from a filesystem, resolving imports as relative paths."""

    def __init__(self, filesystem: Filesystem | None = None) -> None:
        self.filesystem = filesystem or LocalFilesystem()

    def load(self, source: str) -> bytes:
        return self.filesystem.read_file(source)

    def normalize(self, base: str, relative: str) -> str:
        base = base.replace("\\", "/")
        relative = relative.replace("\\", "/")
        return posixpath.normpath(posixpath.join(posixpath.dirname(base), relative))


def clean(source: str) -> str:
    """Canonical form of a source path used to match imports."""
    return posixpath.normpath(source.replace("\\", "/"))
