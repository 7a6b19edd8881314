"""Buildable capability shared by plain files and assets.

Every asset input is a Buildable. The two variants are told apart by their
``kind`` tag rather than by type inspection:

- ``BuildableKind.FILE``: a plain file on disk that can never be built
- ``BuildableKind.ASSET``: a named asset produced by the builder
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from unibuild.types import BuildOptions

# Modification time reported for paths that do not exist
EPOCH = 0.0


class BuildableKind(str, Enum):
    """Variant tag of a Buildable."""

    FILE = "file"
    ASSET = "asset"


class Buildable(ABC):
    """Anything that can appear as an asset input."""

    kind: BuildableKind

    @property
    @abstractmethod
    def path(self) -> str:
        """Path of the backing file."""

    @abstractmethod
    def exists(self) -> bool:
        """Return True if the backing file is present."""

    @abstractmethod
    def modified_time(self) -> float:
        """Return the modification timestamp, or EPOCH if absent."""

    @abstractmethod
    def can_be_built(self) -> bool:
        """Return True if the builder knows how to produce this input."""

    @abstractmethod
    def needs_rebuild(self, cache: dict[str, bool] | None = None) -> bool:
        """Return True if anything in this input's closure is stale.

        ``cache`` maps asset names to results already computed during the
        same call, so shared dependencies are evaluated once.
        """

    @abstractmethod
    def needs_building(self, options: BuildOptions) -> bool:
        """Return True if this input should be rebuilt right now."""

    def newer_than(self, other: Buildable) -> bool:
        """Return True if this input was modified after ``other``."""
        return self.modified_time() > other.modified_time()

    def is_file(self) -> bool:
        """Return True if the backing path is a regular file."""
        return os.path.isfile(self.path)

    def read(self) -> str:
        """Return the text contents of the backing file."""
        return Path(self.path).read_text(encoding="utf-8")

    def __str__(self) -> str:
        return self.path


class File(Buildable):
    """A plain file input.

    Files are never built, so they never need (re)building; their
    modification time is the filesystem mtime.
    """

    kind = BuildableKind.FILE

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = os.fspath(path)

    @property
    def path(self) -> str:
        return self._path

    def exists(self) -> bool:
        return os.path.exists(self._path)

    def modified_time(self) -> float:
        try:
            return os.stat(self._path).st_mtime
        except FileNotFoundError:
            return EPOCH

    def can_be_built(self) -> bool:
        return False

    def needs_rebuild(self, cache: dict[str, bool] | None = None) -> bool:
        return False

    def needs_building(self, options: BuildOptions) -> bool:
        return False

    def write(self, contents: str) -> None:
        """Replace the file contents."""
        Path(self._path).write_text(contents, encoding="utf-8")

    def remove(self) -> None:
        """Delete the file."""
        os.unlink(self._path)

    def __repr__(self) -> str:
        return f"File({self._path!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, File):
            return NotImplemented
        return self._path == other._path

    def __hash__(self) -> int:
        return hash((BuildableKind.FILE, self._path))


__all__ = ["EPOCH", "Buildable", "BuildableKind", "File"]
