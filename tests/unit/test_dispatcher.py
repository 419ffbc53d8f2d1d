"""Unit tests for front-end message dispatch."""

from unittest.mock import MagicMock

import pytest

from filekanban.dispatcher import MessageDispatcher


@pytest.fixture
def dispatcher(board):
    return MessageDispatcher(lambda: board)


class TestMessageDispatcher:
    """Test cases for MessageDispatcher.handle_message."""

    def test_init_returns_state(self, dispatcher):
        reply = dispatcher.handle_message({"type": "kanban:init"})

        assert reply["type"] == "kanban:state"
        assert [c["id"] for c in reply["data"]["columns"]] == ["todo", "doing", "done"]
        assert reply["data"]["cards"] == {}

    def test_mutation_then_state(self, dispatcher):
        reply = dispatcher.handle_message({"type": "kanban:card:create", "data": {"title": "Via message"}})

        assert reply["type"] == "kanban:state"
        assert reply["data"]["order"]["todo"] == ["card001"]
        assert reply["data"]["cards"]["card001"]["title"] == "Via message"
        assert set(reply["data"]["cards"]["card001"]) == {"id", "title", "detail", "due", "createdAt", "updatedAt"}

    def test_every_mutation_type_is_routed(self, board):
        fake = MagicMock(wraps=board)
        dispatcher = MessageDispatcher(lambda: fake)
        routes = {
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

        for message_type, method in routes.items():
            dispatcher.handle_message({"type": message_type, "data": {}})
            assert getattr(fake, method).called, method

    def test_validation_failure_becomes_error_message(self, dispatcher):
        reply = dispatcher.handle_message({"type": "kanban:column:create", "data": {"title": ""}})

        assert reply == {"type": "kanban:error", "data": {"message": "Column name is empty."}}

    def test_missing_data_treated_as_empty(self, dispatcher):
        reply = dispatcher.handle_message({"type": "kanban:card:delete", "data": None})

        assert reply == {"type": "kanban:error", "data": {"message": "Missing card ID."}}

    def test_unknown_type_ignored(self, dispatcher):
        assert dispatcher.handle_message({"type": "kanban:column:create:request"}) is None
        assert dispatcher.handle_message({}) is None

    def test_no_workspace(self):
        dispatcher = MessageDispatcher(lambda: None)

        reply = dispatcher.handle_message({"type": "kanban:init"})

        assert reply == {"type": "kanban:error", "data": {"message": "No workspace is open."}}

    def test_unexpected_errors_propagate(self):
        broken = MagicMock()
        broken.read_state.side_effect = RuntimeError("disk on fire")
        dispatcher = MessageDispatcher(lambda: broken)

        with pytest.raises(RuntimeError, match="disk on fire"):
            dispatcher.handle_message({"type": "kanban:init"})
