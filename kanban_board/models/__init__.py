# Models package: import all models here so Alembic can discover them.

from kanban_board.models.board import BoardColumn, BoardTask  # noqa: F401
