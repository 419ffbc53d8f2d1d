"""Message dispatch for board front ends.

A front end sends ``{"type": ..., "data": {...}}`` messages. Each message
runs at most one mutation and is always answered with a freshly reconciled
board (``kanban:state``) or a described failure (``kanban:error``).
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from .errors import BoardError
from .kanban_logging import log_error_with_context
from .workspace import Board

logger = logging.getLogger("kanban.dispatcher")

STATE_MESSAGE = "kanban:state"
ERROR_MESSAGE = "kanban:error"
INIT_MESSAGE = "kanban:init"

NO_WORKSPACE = "No workspace is open."

MUTATIONS: Dict[str, str] = {
    "kanban:card:create": "create_card",
    "kanban:card:update": "update_card",
    "kanban:card:delete": "delete_card",
    "kanban:card:move": "move_card",
    "kanban:card:reorder": "reorder_cards",
    "kanban:column:create": "create_column",
    "kanban:column:update": "update_column",
    "kanban:column:reorder": "reorder_columns",
    "kanban:column:delete": "delete_column",
}


def state_message(board: Board) -> Dict[str, Any]:
    return {"type": STATE_MESSAGE, "data": board.read_state().to_dict()}


def error_message(text: str) -> Dict[str, Any]:
    return {"type": ERROR_MESSAGE, "data": {"message": text}}


class MessageDispatcher:
    """Route front-end messages to a board.

    ``board_provider`` returns the board to act on, or None when no board
    root is available.
    """

    def __init__(self, board_provider: Callable[[], Optional[Board]]):
        self.board_provider = board_provider

    def handle_message(self, message: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """Run one message; None for message types this dispatcher ignores."""
        message_type = message.get("type")
        if message_type != INIT_MESSAGE and message_type not in MUTATIONS:
            logger.debug(f"Ignoring message type {message_type!r}")
            return None

        data = message.get("data")
        if not isinstance(data, Mapping):
            data = {}

        try:
            board = self.board_provider()
            if board is None:
                return error_message(NO_WORKSPACE)
            if message_type in MUTATIONS:
                getattr(board, MUTATIONS[message_type])(data)
            return state_message(board)
        except BoardError as e:
            logger.info(f"{message_type} rejected: {e}")
            return error_message(str(e))
        except Exception as e:
            log_error_with_context(e, {"operation": "handle_message", "message_type": message_type})
            raise
