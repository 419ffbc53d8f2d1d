"""Filesystem capability consumed by the board engine.

The engine never touches ``os`` or ``pathlib`` directly; it is written
against :class:`FileSystem` so a host can supply its own storage (the test
suite swaps in an in-memory double). Every method signals failure by
raising :class:`OSError`.
"""

from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List, Tuple


class FileType(Enum):
    """Kind of a directory entry."""

    FILE = "file"
    DIRECTORY = "directory"
    UNKNOWN = "unknown"


@dataclass(slots=True, frozen=True)
class FileStat:
    """Creation and modification times as epoch seconds."""

    created_time: float
    modified_time: float


DirectoryEntry = Tuple[str, FileType]


class FileSystem(ABC):
    """Abstract storage primitives used by the board engine."""

    @abstractmethod
    def join_path(self, base: Any, *parts: str) -> Any:
        """Join path segments onto ``base``."""

    @abstractmethod
    def create_directory(self, path: Any) -> None:
        """Create ``path`` and any missing parents; existing is not an error."""

    @abstractmethod
    def read_file(self, path: Any) -> bytes:
        """Return the raw content of ``path``."""

    @abstractmethod
    def write_file(self, path: Any, data: bytes) -> None:
        """Replace the content of ``path`` with ``data``."""

    @abstractmethod
    def read_directory(self, path: Any) -> List[DirectoryEntry]:
        """List ``(name, kind)`` pairs of the entries directly under ``path``."""

    @abstractmethod
    def stat(self, path: Any) -> FileStat:
        """Return timestamps for ``path``."""

    @abstractmethod
    def delete(self, path: Any, *, recursive: bool = False, use_trash: bool = False) -> None:
        """Remove ``path``."""


class LocalFileSystem(FileSystem):
    """:class:`FileSystem` over the local disk using :mod:`pathlib`.

    ``use_trash`` is accepted for interface compatibility; entries are
    always removed permanently.
    """

    def join_path(self, base: Path | str, *parts: str) -> Path:
        return Path(base).joinpath(*parts)

    def create_directory(self, path: Path | str) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def read_file(self, path: Path | str) -> bytes:
        return Path(path).read_bytes()

    def write_file(self, path: Path | str, data: bytes) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    def read_directory(self, path: Path | str) -> List[DirectoryEntry]:
        entries: List[DirectoryEntry] = []
        for entry in sorted(Path(path).iterdir()):
            if entry.is_file():
                kind = FileType.FILE
            elif entry.is_dir():
                kind = FileType.DIRECTORY
            else:
                kind = FileType.UNKNOWN
            entries.append((entry.name, kind))
        return entries

    def stat(self, path: Path | str) -> FileStat:
        result = Path(path).stat()
        created = getattr(result, "st_birthtime", result.st_ctime)
        return FileStat(created_time=created, modified_time=result.st_mtime)

    def delete(self, path: Path | str, *, recursive: bool = False, use_trash: bool = False) -> None:
        target = Path(path)
        if target.is_dir() and not target.is_symlink():
            if recursive:
                shutil.rmtree(target)
            else:
                target.rmdir()
        else:
            target.unlink()
