"""Reconciliation of the index against the card files on disk.

The index is the source of truth for ordering, but card files can appear
or disappear behind its back (hand edits, merges, deleted files). Every
read cross-checks the two and persists any repair so drift is corrected
once rather than recomputed on each call.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Set

from .cards import CardRepository, card_id_from_filename
from .filesystem import FileSystem, FileType
from .index import IndexStore
from .kanban_logging import log_performance, observability_hooks
from .models import BoardState, Card, IndexDocument

if TYPE_CHECKING:
    from .workspace import StoragePaths

logger = logging.getLogger("kanban.reconcile")

FALLBACK_COLUMN_ID = "todo"


class ReconciliationEngine:
    """Build the authoritative :class:`BoardState` from index and card files."""

    def __init__(self, fs: FileSystem, paths: "StoragePaths", index_store: IndexStore, cards: CardRepository):
        self.fs = fs
        self.paths = paths
        self.index_store = index_store
        self.cards = cards

    def discover_card_ids(self) -> Set[str]:
        """Ids of the card files present in the cards directory.

        A directory that cannot be listed counts as empty.
        """
        try:
            entries = self.fs.read_directory(self.paths.cards_dir)
        except OSError as e:
            logger.debug(f"Cards directory {self.paths.cards_dir} not listable: {e}")
            return set()
        found = set()
        for name, kind in entries:
            if kind is not FileType.FILE:
                continue
            card_id = card_id_from_filename(name)
            if card_id:
                found.add(card_id)
        return found

    @log_performance("read_state")
    def read_state(self) -> BoardState:
        """Return the reconciled board, persisting any repair to the index."""
        index = self.index_store.read()
        on_disk = self.discover_card_ids()

        order: Dict[str, List[str]] = {}
        ordered: Set[str] = set()
        dropped = 0
        for column in index.columns:
            listed = index.order.get(column.id, [])
            kept = [card_id for card_id in listed if card_id in on_disk]
            dropped += len(listed) - len(kept)
            ordered.update(kept)
            order[column.id] = kept

        fallback = index.columns[0].id if index.columns else FALLBACK_COLUMN_ID
        unlisted = sorted(on_disk - ordered)
        if unlisted:
            order.setdefault(fallback, []).extend(unlisted)

        if dropped or unlisted:
            logger.info(
                f"Repaired index drift: dropped {dropped} missing, "
                f"adopted {len(unlisted)} unlisted into '{fallback}'"
            )
            self.index_store.write(IndexDocument(columns=index.columns, order=order))
            observability_hooks.log_board_event(
                "index_repaired",
                dropped=dropped,
                adopted=unlisted,
                fallback_column=fallback,
            )

        cards: Dict[str, Card] = {}
        seen: Set[str] = set()
        for column in index.columns:
            for card_id in order.get(column.id, []):
                if card_id in seen:
                    continue
                seen.add(card_id)
                card = self.cards.load(card_id)
                if card is not None:
                    cards[card_id] = card

        return BoardState(columns=index.columns, order=order, cards=cards)
