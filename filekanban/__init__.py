"""File Kanban - a Kanban board stored as markdown card files plus a JSON index."""

from .errors import BoardError, BoardStorageError, BoardValidationError
from .filesystem import FileStat, FileSystem, FileType, LocalFileSystem
from .models import BoardState, Card, Column, IndexDocument
from .workspace import Board, open_board

__all__ = [
    "Board",
    "BoardError",
    "BoardState",
    "BoardStorageError",
    "BoardValidationError",
    "Card",
    "Column",
    "FileStat",
    "FileSystem",
    "FileType",
    "IndexDocument",
    "LocalFileSystem",
    "open_board",
]
