"""Data models for the file-backed Kanban board.

This module contains the core data structures used throughout the board
engine: columns, cards, the persisted index document and the reconciled
board state handed back to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    return to_iso(datetime.now(timezone.utc))


def timestamp_to_iso(seconds: float) -> str:
    """Convert an epoch timestamp in seconds to the board's ISO-8601 form."""
    return to_iso(datetime.fromtimestamp(seconds, tz=timezone.utc))


def to_iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(slots=True)
class Column:
    """A board column; ``id`` is a URL-safe slug unique within the board."""

    id: str
    title: str

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary representation."""
        return {"id": self.id, "title": self.title}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Column":
        """Create from dictionary representation."""
        return cls(id=data["id"], title=data["title"])


@dataclass(slots=True)
class Card:
    """A single card backed by one markdown file.

    ``detail`` is the free-text body of the file. Timestamps are ISO-8601
    strings; ``due`` is free text or None.
    """

    id: str
    title: str
    detail: str = ""
    due: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire representation (camelCase timestamps)."""
        return {
            "id": self.id,
            "title": self.title,
            "detail": self.detail,
            "due": self.due,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Card":
        """Create from the wire representation."""
        return cls(
            id=data["id"],
            title=data["title"],
            detail=data.get("detail", ""),
            due=data.get("due"),
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt", ""),
        )


@dataclass(slots=True)
class IndexDocument:
    """Persisted column definitions plus per-column card ordering.

    ``columns`` is the display order. ``order`` holds one list per column.
    """

    columns: List[Column] = field(default_factory=list)
    order: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape stored in the index file."""
        return {
            "columns": [column.to_dict() for column in self.columns],
            "order": {column_id: list(ids) for column_id, ids in self.order.items()},
        }

    def find_column(self, column_id: str) -> Optional[Column]:
        """Return the column with ``column_id``, if any."""
        for column in self.columns:
            if column.id == column_id:
                return column
        return None

    def column_ids(self) -> List[str]:
        return [column.id for column in self.columns]


@dataclass(slots=True)
class BoardState:
    """Reconciled, read-consistent snapshot of the board. Never persisted."""

    columns: List[Column] = field(default_factory=list)
    order: Dict[str, List[str]] = field(default_factory=dict)
    cards: Dict[str, Card] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "columns": [column.to_dict() for column in self.columns],
            "order": {column_id: list(ids) for column_id, ids in self.order.items()},
            "cards": {card_id: card.to_dict() for card_id, card in self.cards.items()},
        }

    def cards_in(self, column_id: str) -> List[Card]:
        """Cards of a column in display order, skipping ids without content."""
        return [self.cards[card_id] for card_id in self.order.get(column_id, []) if card_id in self.cards]

    def column_of(self, card_id: str) -> Optional[str]:
        """Return the id of the column whose order list holds ``card_id``."""
        for column in self.columns:
            if card_id in self.order.get(column.id, []):
                return column.id
        return None
