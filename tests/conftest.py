"""Shared fixtures: an in-memory filesystem and boards built on it."""

import itertools
import posixpath
from typing import Dict, List, Set

import pytest

from filekanban.filesystem import FileStat, FileSystem, FileType
from filekanban.workspace import Board


class MemoryFileSystem(FileSystem):
    """Dict-backed :class:`FileSystem` with POSIX string paths."""

    def __init__(self):
        self.files: Dict[str, bytes] = {}
        self.times: Dict[str, FileStat] = {}
        self.dirs: Set[str] = {"/"}
        self.tick = itertools.count(1_700_000_000)
        self.fail_writes = False

    def _normalize(self, path: str) -> str:
        normalized = posixpath.normpath(str(path))
        return normalized if normalized.startswith("/") else "/" + normalized

    def join_path(self, base, *parts):
        return self._normalize(posixpath.join(str(base), *parts))

    def create_directory(self, path):
        current = "/"
        for part in self._normalize(path).split("/"):
            if part:
                current = posixpath.join(current, part)
                self.dirs.add(current)

    def read_file(self, path):
        target = self._normalize(path)
        if target not in self.files:
            raise FileNotFoundError(target)
        return self.files[target]

    def write_file(self, path, data):
        if self.fail_writes:
            raise PermissionError(path)
        target = self._normalize(path)
        self.create_directory(posixpath.dirname(target))
        now = float(next(self.tick))
        previous = self.times.get(target)
        self.files[target] = bytes(data)
        self.times[target] = FileStat(
            created_time=previous.created_time if previous else now,
            modified_time=now,
        )

    def read_directory(self, path) -> List:
        target = self._normalize(path)
        if target not in self.dirs:
            raise FileNotFoundError(target)
        entries = {}
        for file_path in self.files:
            if posixpath.dirname(file_path) == target:
                entries[posixpath.basename(file_path)] = FileType.FILE
        for dir_path in self.dirs:
            if dir_path != target and posixpath.dirname(dir_path) == target:
                entries[posixpath.basename(dir_path)] = FileType.DIRECTORY
        return list(entries.items())

    def stat(self, path):
        target = self._normalize(path)
        if target not in self.times:
            raise FileNotFoundError(target)
        return self.times[target]

    def delete(self, path, *, recursive=False, use_trash=False):
        target = self._normalize(path)
        if target not in self.files:
            raise FileNotFoundError(target)
        del self.files[target]
        del self.times[target]

    # test helpers

    def put_text(self, path: str, text: str) -> None:
        self.write_file(path, text.encode("utf-8"))

    def text(self, path: str) -> str:
        return self.read_file(path).decode("utf-8")


class FakeClock:
    """Returns strictly increasing ISO timestamps."""

    def __init__(self):
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        return f"2024-01-01T00:00:{self.calls:02d}.000Z"


@pytest.fixture
def memory_fs():
    return MemoryFileSystem()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def board(memory_fs, clock):
    """Board rooted at /workspace on the in-memory filesystem."""
    counter = itertools.count(1)
    return Board(memory_fs, "/workspace", clock=clock, id_factory=lambda: f"card{next(counter):03d}")
