"""Card file repository.

Each card lives in ``<cards_dir>/<card_id>.md``. Loading is forgiving:
a card file without front matter still yields a card, with the title taken
from the body and timestamps taken from the file itself.
"""

from __future__ import annotations

import logging
import secrets
import time
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Tuple

from .errors import BoardStorageError
from .filesystem import FileSystem
from .frontmatter import Metadata, first_non_empty_line, parse_front_matter, serialize_front_matter
from .models import Card, timestamp_to_iso

if TYPE_CHECKING:
    from .workspace import StoragePaths

logger = logging.getLogger("kanban.cards")

CARD_SUFFIX = ".md"
UNTITLED = "Untitled"

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_card_id() -> str:
    """Generate a time-sortable card id.

    Milliseconds since the epoch in base 36, followed by four random base-36
    characters.
    """
    stamp = _to_base36(time.time_ns() // 1_000_000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"{stamp}{suffix}"


def card_id_from_filename(name: str) -> Optional[str]:
    """Return the card id for a card file name, or None for other files."""
    if not name.endswith(CARD_SUFFIX):
        return None
    return name[: -len(CARD_SUFFIX)]


class CardRepository:
    """Load, write and delete card files through a :class:`FileSystem`."""

    def __init__(self, fs: FileSystem, paths: "StoragePaths"):
        self.fs = fs
        self.paths = paths

    def card_path(self, card_id: str) -> Any:
        """Path of the file backing ``card_id``."""
        return self.fs.join_path(self.paths.cards_dir, f"{card_id}{CARD_SUFFIX}")

    def load(self, card_id: str) -> Optional[Card]:
        """Load a card, or None if its file cannot be read.

        Invalid UTF-8 is decoded with replacement characters so a stray byte
        does not hide the card.
        """
        path = self.card_path(card_id)
        try:
            text = self.fs.read_file(path).decode("utf-8", errors="replace")
            stat = self.fs.stat(path)
        except (OSError, ValueError) as e:
            logger.debug(f"Card {card_id} has no readable file: {e}")
            return None

        meta, detail = parse_front_matter(text)
        title = meta.get("title")
        if not (isinstance(title, str) and title.strip()):
            title = first_non_empty_line(detail) or UNTITLED
        created_at = meta.get("createdAt") or timestamp_to_iso(stat.created_time)
        updated_at = meta.get("updatedAt") or timestamp_to_iso(stat.modified_time)
        due = meta.get("due")
        return Card(
            id=card_id,
            title=title,
            detail=detail,
            due=due if isinstance(due, str) else None,
            created_at=created_at,
            updated_at=updated_at,
        )

    def read_metadata(self, card_id: str) -> Tuple[Metadata, str]:
        """Return the raw front matter and body of a card file.

        Raises OSError if the file cannot be read. Bytes that are not valid
        UTF-8 are replaced rather than rejected.
        """
        content = self.fs.read_file(self.card_path(card_id))
        return parse_front_matter(content.decode("utf-8", errors="replace"))

    def write(self, card_id: str, meta: Mapping[str, Optional[str]], body: str) -> None:
        """Serialize and write a card file."""
        path = self.card_path(card_id)
        content = serialize_front_matter(meta, body)
        try:
            self.fs.write_file(path, content.encode("utf-8"))
        except OSError as e:
            raise BoardStorageError(f"Could not write card {card_id}: {e}", path) from e

    def delete_files(self, card_ids: Iterable[str]) -> None:
        """Delete card files, ignoring ones that are already gone."""
        for card_id in card_ids:
            path = self.card_path(card_id)
            try:
                self.fs.delete(path, recursive=False, use_trash=False)
            except OSError as e:
                logger.debug(f"Skipping delete of {path}: {e}")
