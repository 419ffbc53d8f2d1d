"""MCP server exposing a file-backed Kanban board as tools."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from filekanban.dispatcher import MessageDispatcher
from filekanban.kanban_logging import setup_logging
from filekanban.workspace import Board, open_board, resolve_root

mcp = FastMCP("file-kanban")


def _board(root: Optional[str]) -> Board:
    resolved = resolve_root(root)
    if resolved is None:
        raise ValueError(
            "Unable to determine board root automatically. Provide the 'root' argument when calling the tool "
            "or set the KANBAN_PROJECT_ROOT environment variable."
        )
    return open_board(resolved)


def _board_optional(root: Optional[str]) -> Optional[Board]:
    try:
        return _board(root)
    except ValueError:
        return None


def _refreshed(board: Board) -> Dict[str, Any]:
    return board.read_state().to_dict()


@mcp.tool()
def read_board(root: Optional[str] = None) -> Dict[str, Any]:
    """Return the reconciled board: columns, per-column card order and cards.
    Card files added or removed outside this server are picked up here."""

    return _refreshed(_board(root))


@mcp.tool()
def create_card(
    title: str,
    column_id: Optional[str] = None,
    detail: str = "",
    due: Optional[str] = None,
    root: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a card at the end of a column (the first column when column_id is unknown)."""

    board = _board(root)
    board.create_card({"title": title, "columnId": column_id, "detail": detail, "due": due})
    return _refreshed(board)


@mcp.tool()
def update_card(
    card_id: str,
    title: str,
    detail: str = "",
    due: Optional[str] = None,
    root: Optional[str] = None,
) -> Dict[str, Any]:
    """Rewrite a card's title, detail and due date, keeping its creation time."""

    board = _board(root)
    board.update_card({"cardId": card_id, "title": title, "detail": detail, "due": due})
    return _refreshed(board)


@mcp.tool()
def delete_card(card_id: str, root: Optional[str] = None) -> Dict[str, Any]:
    """Delete a card and its file."""

    board = _board(root)
    board.delete_card({"cardId": card_id})
    return _refreshed(board)


@mcp.tool()
def move_card(
    card_id: str,
    from_column_id: str,
    to_column_id: str,
    to_index: int,
    root: Optional[str] = None,
) -> Dict[str, Any]:
    """Move a card to a position in another (or the same) column. Out of range positions are clamped."""

    board = _board(root)
    board.move_card({
        "cardId": card_id,
        "fromColumnId": from_column_id,
        "toColumnId": to_column_id,
        "toIndex": to_index,
    })
    return _refreshed(board)


@mcp.tool()
def reorder_cards(column_id: str, ordered_ids: List[str], root: Optional[str] = None) -> Dict[str, Any]:
    """Replace a column's card order."""

    board = _board(root)
    board.reorder_cards({"columnId": column_id, "orderedIds": ordered_ids})
    return _refreshed(board)


@mcp.tool()
def create_column(title: str, root: Optional[str] = None) -> Dict[str, Any]:
    """Append a column; its id is derived from the title."""

    board = _board(root)
    board.create_column({"title": title})
    return _refreshed(board)


@mcp.tool()
def update_column(column_id: str, title: str, root: Optional[str] = None) -> Dict[str, Any]:
    """Rename a column."""

    board = _board(root)
    board.update_column({"columnId": column_id, "title": title})
    return _refreshed(board)


@mcp.tool()
def reorder_columns(ordered_ids: List[str], root: Optional[str] = None) -> Dict[str, Any]:
    """Reorder columns. Columns not listed keep their relative order after the listed ones."""

    board = _board(root)
    board.reorder_columns({"orderedIds": ordered_ids})
    return _refreshed(board)


@mcp.tool()
def delete_column(column_id: str, root: Optional[str] = None) -> Dict[str, Any]:
    """Delete a column together with all of its cards. The last column cannot be deleted."""

    board = _board(root)
    board.delete_column({"columnId": column_id})
    return _refreshed(board)


@mcp.tool()
def dispatch_message(
    message_type: str,
    data: Optional[Dict[str, Any]] = None,
    root: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """Handle a raw front-end message such as 'kanban:card:move'.
    Answers with a 'kanban:state' or 'kanban:error' message, or nothing for unknown types."""

    dispatcher = MessageDispatcher(lambda: _board_optional(root))
    return dispatcher.handle_message({"type": message_type, "data": data or {}})


@mcp.resource("kanban://board")
def resource_board():
    """Resource view rendering the board as text."""

    board = _board_optional(None)
    if not board:
        return "No board root detected. Launch tools with a 'root' argument or set KANBAN_PROJECT_ROOT."

    state = board.read_state()
    lines = ["Kanban Board"]
    for column in state.columns:
        lines.append("")
        lines.append(f"## {column.title} ({column.id})")
        cards = state.cards_in(column.id)
        if not cards:
            lines.append("  (empty)")
        for card in cards:
            due = f" (due {card.due})" if card.due else ""
            lines.append(f"- {card.title}{due} [{card.id}]")

    return "\n".join(lines)


if __name__ == "__main__":
    log_file = os.getenv("KANBAN_LOG_FILE")
    setup_logging(
        log_level=os.getenv("KANBAN_LOG_LEVEL", "INFO").upper(),
        log_file=Path(log_file) if log_file else None,
    )
    mcp.run(transport="stdio")
