# Board client: typed records, HTTP transport, reorder engine, optimistic session.

from kanban_board.client.api import ApiClient, ApiError  # noqa: F401
from kanban_board.client.records import (  # noqa: F401
    Column,
    ReorderColumnEntry,
    ReorderTaskEntry,
    Task,
)
from kanban_board.client.reorder import BOARD, DragEvent, ItemKind, apply_drag  # noqa: F401
from kanban_board.client.session import BoardSession  # noqa: F401
