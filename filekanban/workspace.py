"""Board workspace wiring.

This module ties the storage layout under a board root to the index
store, card repository, reconciliation engine and mutation operations,
and exposes them through a single :class:`Board` facade.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Optional

from .cards import CardRepository, generate_card_id
from .filesystem import FileSystem, LocalFileSystem
from .index import IndexStore
from .models import BoardState, utc_now_iso
from .operations import BoardOperations, Payload
from .reconcile import ReconciliationEngine

logger = logging.getLogger("kanban.workspace")

STORAGE_DIR_ENV = "KANBAN_STORAGE_DIR"
PROJECT_ROOT_ENV = "KANBAN_PROJECT_ROOT"
DEFAULT_STORAGE_DIR = ".vscode-kanban"
INDEX_FILENAME = "index.json"
CARDS_DIRNAME = "cards"


def storage_dir_name() -> str:
    """Name of the storage directory under a board root."""
    return os.getenv(STORAGE_DIR_ENV) or DEFAULT_STORAGE_DIR


@dataclass(slots=True, frozen=True)
class StoragePaths:
    """Locations of the board's files, in the filesystem's own path type."""

    base: Any
    cards_dir: Any
    index_file: Any

    @classmethod
    def for_root(cls, fs: FileSystem, root: Any, storage_dir: Optional[str] = None) -> "StoragePaths":
        base = fs.join_path(root, storage_dir or storage_dir_name())
        return cls(
            base=base,
            cards_dir=fs.join_path(base, CARDS_DIRNAME),
            index_file=fs.join_path(base, INDEX_FILENAME),
        )


class Board:
    """One board stored under ``root``.

    Mutations return nothing; follow each one with :meth:`read_state` to
    get the reconciled snapshot.
    """

    def __init__(
        self,
        fs: FileSystem,
        root: Any,
        *,
        storage_dir: Optional[str] = None,
        clock: Callable[[], str] = utc_now_iso,
        id_factory: Callable[[], str] = generate_card_id,
    ):
        self.fs = fs
        self.root = root
        self.paths = StoragePaths.for_root(fs, root, storage_dir)
        self.index_store = IndexStore(fs, self.paths)
        self.cards = CardRepository(fs, self.paths)
        self.engine = ReconciliationEngine(fs, self.paths, self.index_store, self.cards)
        self.operations = BoardOperations(self.index_store, self.cards, clock=clock, id_factory=id_factory)

    def read_state(self) -> BoardState:
        return self.engine.read_state()

    def create_card(self, data: Payload) -> None:
        self.operations.create_card(data)

    def update_card(self, data: Payload) -> None:
        self.operations.update_card(data)

    def delete_card(self, data: Payload) -> None:
        self.operations.delete_card(data)

    def move_card(self, data: Payload) -> None:
        self.operations.move_card(data)

    def reorder_cards(self, data: Payload) -> None:
        self.operations.reorder_cards(data)

    def create_column(self, data: Payload) -> None:
        self.operations.create_column(data)

    def update_column(self, data: Payload) -> None:
        self.operations.update_column(data)

    def reorder_columns(self, data: Payload) -> None:
        self.operations.reorder_columns(data)

    def delete_column(self, data: Payload) -> None:
        self.operations.delete_column(data)


def open_board(root: Path | str, **kwargs: Any) -> Board:
    """Open the board under a local directory."""
    resolved = Path(root).expanduser().resolve()
    logger.debug(f"Opening board at {resolved}")
    return Board(LocalFileSystem(), resolved, **kwargs)


def _candidate_bases(start: Optional[Path] = None) -> List[Path]:
    cwd = (start or Path.cwd()).resolve()
    return [cwd, *cwd.parents]


def locate_board_root(start: Optional[Path] = None) -> Optional[Path]:
    """Nearest directory at or above ``start`` holding a storage directory."""
    marker = storage_dir_name()
    for base in _candidate_bases(start):
        if (base / marker).is_dir():
            return base
    return None


def resolve_root(root: Optional[str] = None) -> Optional[Path]:
    """Pick the board root: explicit argument, then environment, then discovery.

    Raises ValueError if an explicit or configured root does not exist.
    Returns None when nothing could be found.
    """
    if root:
        resolved = Path(root).expanduser().resolve()
        if not resolved.exists():
            raise ValueError(f"Provided root '{root}' does not exist.")
        return resolved

    env_root = os.getenv(PROJECT_ROOT_ENV)
    if env_root:
        env_path = Path(env_root).expanduser().resolve()
        if not env_path.exists():
            raise ValueError(
                f"Environment variable {PROJECT_ROOT_ENV} points to '{env_root}', which does not exist."
            )
        return env_path

    return locate_board_root()
