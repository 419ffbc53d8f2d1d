"""Board mutation operations.

Every operation takes a loosely typed mapping (as sent by a UI or a tool
call), validates it, then writes card files and/or the index. Nothing is
returned: callers read the refreshed board with
:meth:`ReconciliationEngine.read_state` afterwards. Validation happens
before the first write, so a rejected call leaves the board untouched.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Mapping, Optional

from .cards import CardRepository, generate_card_id
from .errors import BoardValidationError
from .index import IndexStore, ensure_unique_column_id, slugify
from .kanban_logging import log_operation, observability_hooks
from .models import Column, utc_now_iso

logger = logging.getLogger("kanban.operations")

Payload = Mapping[str, Any]


def _text(data: Payload, key: str) -> Optional[str]:
    value = data.get(key)
    return value if isinstance(value, str) else None


def _string_list(data: Payload, key: str) -> Optional[List[str]]:
    value = data.get(key)
    if not isinstance(value, (list, tuple)):
        return None
    return [item for item in value if isinstance(item, str)]


def _due(data: Payload) -> Optional[str]:
    due = _text(data, "due")
    return due if due and due.strip() else None


class BoardOperations:
    """The nine editing operations on a board."""

    def __init__(
        self,
        index_store: IndexStore,
        cards: CardRepository,
        clock: Callable[[], str] = utc_now_iso,
        id_factory: Callable[[], str] = generate_card_id,
    ):
        self.index_store = index_store
        self.cards = cards
        self.clock = clock
        self.id_factory = id_factory

    # ------------------------------------------------------------------
    # Cards
    # ------------------------------------------------------------------

    def create_card(self, data: Payload) -> None:
        column_id = _text(data, "columnId") or "todo"
        title = _text(data, "title") or ""
        detail = _text(data, "detail") or ""
        if not title.strip():
            raise BoardValidationError("Title is empty.")

        with log_operation("create_card", column_id=column_id):
            index = self.index_store.read()
            column = index.find_column(column_id)
            if column is None:
                column = index.columns[0] if index.columns else Column(id="todo", title="TODO")
            card_id = self.id_factory()
            now = self.clock()
            meta = {
                "id": card_id,
                "title": title.strip(),
                "due": _due(data),
                "createdAt": now,
                "updatedAt": now,
            }
            self.cards.write(card_id, meta, detail)
            index.order.setdefault(column.id, []).append(card_id)
            self.index_store.write(index)

        observability_hooks.log_board_event("card_created", card_id=card_id, column_id=column.id)

    def update_card(self, data: Payload) -> None:
        card_id = _text(data, "cardId")
        if not card_id:
            raise BoardValidationError("Missing card ID.")
        title = _text(data, "title") or ""
        detail = _text(data, "detail") or ""
        if not title.strip():
            raise BoardValidationError("Title is empty.")

        try:
            meta, _ = self.cards.read_metadata(card_id)
        except (OSError, ValueError) as e:
            logger.debug(f"Update of {card_id} rejected: {e}")
            raise BoardValidationError("Card not found.") from e

        with log_operation("update_card", card_id=card_id):
            now = self.clock()
            meta = dict(meta)
            meta["id"] = card_id
            meta["title"] = title.strip()
            meta["due"] = _due(data)
            meta["createdAt"] = meta.get("createdAt") or now
            meta["updatedAt"] = now
            self.cards.write(card_id, meta, detail)

        observability_hooks.log_board_event("card_updated", card_id=card_id)

    def delete_card(self, data: Payload) -> None:
        card_id = _text(data, "cardId")
        if not card_id:
            raise BoardValidationError("Missing card ID.")

        with log_operation("delete_card", card_id=card_id):
            index = self.index_store.read()
            for column in index.columns:
                index.order[column.id] = [item for item in index.order.get(column.id, []) if item != card_id]
            self.index_store.write(index)
            self.cards.delete_files([card_id])

        observability_hooks.log_board_event("card_deleted", card_id=card_id)

    def move_card(self, data: Payload) -> None:
        card_id = _text(data, "cardId")
        from_column_id = _text(data, "fromColumnId")
        to_column_id = _text(data, "toColumnId")
        to_index = data.get("toIndex")
        if isinstance(to_index, bool) or not isinstance(to_index, int):
            to_index = None
        if not card_id or not from_column_id or not to_column_id or to_index is None:
            raise BoardValidationError("Missing move information.")

        with log_operation("move_card", card_id=card_id, to_column_id=to_column_id):
            index = self.index_store.read()
            index.order[from_column_id] = [item for item in index.order.get(from_column_id, []) if item != card_id]
            destination = index.order.get(to_column_id, [])
            position = max(0, min(to_index, len(destination)))
            destination.insert(position, card_id)
            index.order[to_column_id] = destination
            self.index_store.write(index)

        observability_hooks.log_board_event(
            "card_moved",
            card_id=card_id,
            from_column_id=from_column_id,
            to_column_id=to_column_id,
            position=position,
        )

    def reorder_cards(self, data: Payload) -> None:
        column_id = _text(data, "columnId")
        ordered_ids = _string_list(data, "orderedIds")
        if not column_id or ordered_ids is None:
            raise BoardValidationError("Missing reorder information.")

        # Ids are stored as given; the next read_state drops any without a file.
        with log_operation("reorder_cards", column_id=column_id):
            index = self.index_store.read()
            index.order[column_id] = ordered_ids
            self.index_store.write(index)

        observability_hooks.log_board_event("cards_reordered", column_id=column_id, count=len(ordered_ids))

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def create_column(self, data: Payload) -> None:
        title = (_text(data, "title") or "").strip()
        if not title:
            raise BoardValidationError("Column name is empty.")

        with log_operation("create_column"):
            index = self.index_store.read()
            column_id = ensure_unique_column_id(index.columns, slugify(title))
            index.columns.append(Column(id=column_id, title=title))
            index.order[column_id] = []
            self.index_store.write(index)

        observability_hooks.log_board_event("column_created", column_id=column_id)

    def update_column(self, data: Payload) -> None:
        column_id = _text(data, "columnId")
        title = (_text(data, "title") or "").strip()
        if not column_id or not title:
            raise BoardValidationError("Missing column information.")

        index = self.index_store.read()
        column = index.find_column(column_id)
        if column is None:
            raise BoardValidationError("Column not found.")

        with log_operation("update_column", column_id=column_id):
            column.title = title
            self.index_store.write(index)

        observability_hooks.log_board_event("column_updated", column_id=column_id)

    def reorder_columns(self, data: Payload) -> None:
        ordered_ids = _string_list(data, "orderedIds")
        if ordered_ids is None:
            raise BoardValidationError("Missing column order information.")

        with log_operation("reorder_columns"):
            index = self.index_store.read()
            remaining = {column.id: column for column in index.columns}
            columns: List[Column] = []
            for column_id in ordered_ids:
                column = remaining.pop(column_id, None)
                if column is not None:
                    columns.append(column)
            # dicts keep insertion order, so unlisted columns keep their relative order
            columns.extend(remaining.values())
            index.columns = columns
            self.index_store.write(index)

        observability_hooks.log_board_event("columns_reordered", column_ids=index.column_ids())

    def delete_column(self, data: Payload) -> None:
        column_id = _text(data, "columnId")
        if not column_id:
            raise BoardValidationError("Missing column ID.")

        index = self.index_store.read()
        if len(index.columns) <= 1:
            raise BoardValidationError("Cannot delete the last column.")
        column = index.find_column(column_id)
        if column is None:
            raise BoardValidationError("Column not found.")

        with log_operation("delete_column", column_id=column_id):
            removed_cards = index.order.pop(column_id, [])
            index.columns.remove(column)
            self.index_store.write(index)
            self.cards.delete_files(removed_cards)

        observability_hooks.log_board_event("column_deleted", column_id=column_id, removed_cards=len(removed_cards))
