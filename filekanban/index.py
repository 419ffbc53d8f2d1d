"""Index document normalization and persistence.

The index file holds the column definitions and the per-column card
ordering. It may be missing, truncated by a bad merge or edited by hand,
so reading never fails: whatever is on disk is coerced into a well-formed
:class:`IndexDocument`, falling back to :data:`DEFAULT_COLUMNS`.
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any, Iterable, List, Mapping, Sequence, Tuple

from .errors import BoardStorageError
from .filesystem import FileSystem
from .models import Column, IndexDocument

if TYPE_CHECKING:
    from .workspace import StoragePaths

logger = logging.getLogger("kanban.index")

# Columns used when the index is missing or has no usable column.
DEFAULT_COLUMNS: Tuple[Tuple[str, str], ...] = (
    ("todo", "TODO"),
    ("doing", "Doing"),
    ("done", "Done"),
)


def default_columns(defaults: Iterable[Tuple[str, str]] = DEFAULT_COLUMNS) -> List[Column]:
    """Fresh :class:`Column` objects for the default column set."""
    return [Column(id=column_id, title=title) for column_id, title in defaults]


def normalize_index(raw: Any, defaults: Sequence[Tuple[str, str]] = DEFAULT_COLUMNS) -> IndexDocument:
    """Coerce arbitrary decoded JSON into a well-formed index document.

    Malformed column entries are dropped; if none survive the default
    columns are used. Each column gets an order list of the string entries
    found under its id, or an empty list. Order entries for unknown columns
    are discarded. Never raises.
    """
    if not isinstance(raw, Mapping):
        raw = {}

    columns = default_columns(defaults)
    raw_columns = raw.get("columns")
    if isinstance(raw_columns, list) and raw_columns:
        parsed = [
            Column(id=item["id"], title=item["title"])
            for item in raw_columns
            if isinstance(item, Mapping)
            and isinstance(item.get("id"), str)
            and isinstance(item.get("title"), str)
        ]
        if parsed:
            columns = parsed

    raw_order = raw.get("order")
    if not isinstance(raw_order, Mapping):
        raw_order = {}

    order = {}
    for column in columns:
        entries = raw_order.get(column.id)
        if isinstance(entries, list):
            order[column.id] = [entry for entry in entries if isinstance(entry, str)]
        else:
            order[column.id] = []

    return IndexDocument(columns=columns, order=order)


def slugify(value: str) -> str:
    """Convert a column title to a URL-safe id."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower().strip()).strip("-")
    return slug or "column"


def ensure_unique_column_id(columns: Iterable[Column], base_id: str) -> str:
    """Return ``base_id``, suffixed with ``-1``, ``-2``... until unused."""
    existing = {column.id for column in columns}
    candidate = base_id
    counter = 1
    while candidate in existing:
        candidate = f"{base_id}-{counter}"
        counter += 1
    return candidate


class IndexStore:
    """Read and write the index file through a :class:`FileSystem`."""

    def __init__(self, fs: FileSystem, paths: "StoragePaths"):
        self.fs = fs
        self.paths = paths

    def ensure_storage(self) -> None:
        """Create the storage and card directories if they are missing."""
        for directory in (self.paths.base, self.paths.cards_dir):
            try:
                self.fs.create_directory(directory)
            except OSError as e:
                logger.warning(f"Could not create storage directory {directory}: {e}")

    def read(self) -> IndexDocument:
        """Return the normalized index, rebuilding it if it cannot be read."""
        self.ensure_storage()
        try:
            content = self.fs.read_file(self.paths.index_file)
            parsed = json.loads(content.decode("utf-8", errors="replace"))
        except (OSError, ValueError, RecursionError) as e:
            logger.info(f"Index at {self.paths.index_file} unreadable ({e}); writing a fresh one")
            index = normalize_index({})
            self.write(index)
            return index
        return normalize_index(parsed)

    def write(self, index: IndexDocument) -> None:
        """Overwrite the index file with ``index``, pretty-printed."""
        data = json.dumps(index.to_dict(), indent=2).encode("utf-8")
        try:
            self.fs.write_file(self.paths.index_file, data)
        except OSError as e:
            raise BoardStorageError(f"Could not write index: {e}", self.paths.index_file) from e
        logger.debug(f"Index written to {self.paths.index_file}")
