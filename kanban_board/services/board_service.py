"""Board service: the ordering store for columns and tasks.

Columns carry a board-wide ``ord`` (1..N, left to right); tasks carry an
``ord`` scoped to their column (1..N, top to bottom). Every mutation here
leaves both sequences dense. Titles are sanitized with bleach.clean() to
strip HTML tags. Column titles must not collide with another column's slug.

Functions flush but do NOT commit; the caller commits. A reorder batch is
therefore one transaction: the route commits it whole or rolls it back.
"""

import logging

import bleach
from flask import current_app

from kanban_board.extensions import db
from kanban_board.models.board import BoardColumn, BoardTask
from kanban_board.slugs import DEFAULT_COLUMNS, slugify

logger = logging.getLogger(__name__)

MAX_COLOR_LENGTH = 32


def _sanitize(text):
    """Strip all HTML tags from user input."""
    if text is None:
        return text
    return bleach.clean(text, tags=[], strip=True).strip()


def _clean_title(title):
    if title is not None and not isinstance(title, str):
        raise ValueError("Title must be a string.")
    title = _sanitize(title)
    if not title:
        raise ValueError("Title required.")
    return title


def _clean_color(color):
    if color is None or color == "":
        return current_app.config.get("KANBAN_DEFAULT_COLOR", "#eef2f7")
    if not isinstance(color, str) or len(color) > MAX_COLOR_LENGTH:
        raise ValueError("Color must be a short string such as '#eef2f7'.")
    return _sanitize(color)


def _require_int(value, field):
    # bool is an int subclass; JSON true/false is never a valid id
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{field}' must be an integer.")
    return value


def _check_column_slug(slug, exclude_id=None):
    """Reject a title whose slug matches any other column's slug or title."""
    if not slug:
        raise ValueError("Title must contain letters or digits.")
    for col in BoardColumn.query.all():
        if col.id == exclude_id:
            continue
        if col.slug == slug or slugify(col.title) == slug:
            raise ValueError("Column title already exists.")


def _next_column_ord():
    return (db.session.query(db.func.max(BoardColumn.ord)).scalar() or 0) + 1


def _next_task_ord(column_id):
    max_ord = (
        db.session.query(db.func.max(BoardTask.ord))
        .filter(BoardTask.column_id == column_id)
        .scalar()
    )
    return (max_ord or 0) + 1


def _resequence_columns():
    for i, col in enumerate(list_columns(), start=1):
        if col.ord != i:
            col.ord = i
    db.session.flush()


def _resequence_tasks(column_id):
    tasks = (
        BoardTask.query
        .filter_by(column_id=column_id)
        .order_by(BoardTask.ord, BoardTask.id)
        .all()
    )
    for i, task in enumerate(tasks, start=1):
        if task.ord != i:
            task.ord = i
    db.session.flush()


def _resolve_column(column_id):
    """Return the target column for a task, defaulting to 'todo' then the first column."""
    if column_id is None:
        column = (
            BoardColumn.query.filter_by(slug="todo").first()
            or BoardColumn.query.order_by(BoardColumn.ord).first()
        )
        if column is None:
            raise ValueError("No column to add the task to.")
        return column

    column = db.session.get(BoardColumn, _require_int(column_id, "column_id"))
    if column is None:
        raise ValueError(f"Column {column_id} not found.")
    return column


# ──────────────────────────────────────────────
# Queries
# ──────────────────────────────────────────────

def list_columns():
    """All columns, left to right."""
    return BoardColumn.query.order_by(BoardColumn.ord, BoardColumn.id).all()


def list_tasks():
    """All tasks ordered by (column ord, task ord)."""
    return (
        BoardTask.query
        .join(BoardColumn, BoardTask.column_id == BoardColumn.id)
        .order_by(BoardColumn.ord, BoardTask.ord, BoardTask.id)
        .all()
    )


# ──────────────────────────────────────────────
# Columns
# ──────────────────────────────────────────────

def create_column(title, color=None):
    """Append a new column to the right end of the board.

    Raises:
        ValueError: If the title is missing, collides with an existing
            column, or the board is already at KANBAN_MAX_COLUMNS.
    """
    title = _clean_title(title)
    slug = slugify(title)
    _check_column_slug(slug)

    limit = current_app.config.get("KANBAN_MAX_COLUMNS")
    if limit and BoardColumn.query.count() >= limit:
        raise ValueError(f"A board holds at most {limit} columns.")

    column = BoardColumn(
        title=title,
        slug=slug,
        color=_clean_color(color),
        ord=_next_column_ord(),
    )
    db.session.add(column)
    db.session.flush()
    logger.info(f"Created column '{slug}' (id: {column.id}, ord: {column.ord})")
    return column


def update_column(column, title=None, color=None):
    """Rename and/or recolor a column. The slug never changes."""
    if title is not None:
        title = _clean_title(title)
        _check_column_slug(slugify(title), exclude_id=column.id)
        column.title = title
    if color is not None:
        column.color = _clean_color(color)
    db.session.flush()
    return column


def reorder_columns(column_ids):
    """Assign ord = position + 1 following ``column_ids``.

    Unknown or repeated ids are skipped. Columns missing from the list
    keep their relative order after the listed ones.

    Raises:
        ValueError: If an id is not an integer.
    """
    columns = list_columns()
    remaining = {col.id: col for col in columns}
    ordered = []
    for column_id in column_ids:
        col = remaining.pop(_require_int(column_id, "id"), None)
        if col is None:
            logger.warning(f"Column reorder skipped unknown id {column_id!r}")
            continue
        ordered.append(col)
    ordered.extend(col for col in columns if col.id in remaining)

    for i, col in enumerate(ordered, start=1):
        col.ord = i
    db.session.flush()
    logger.info(f"Reordered {len(ordered)} columns")
    return ordered


def delete_column(column):
    """Delete a column and (via cascade) its tasks.

    Raises:
        ValueError: If the column is one of the protected defaults.
    """
    if column.is_protected:
        raise ValueError("Default columns cannot be deleted.")
    slug = column.slug
    db.session.delete(column)
    db.session.flush()
    _resequence_columns()
    logger.info(f"Deleted column '{slug}'")


def ensure_default_columns():
    """Create any missing default column. Returns the columns created."""
    created = []
    for default in DEFAULT_COLUMNS:
        if BoardColumn.query.filter_by(slug=default["slug"]).first():
            continue
        column = BoardColumn(
            title=default["title"],
            slug=default["slug"],
            color=default["color"],
            ord=_next_column_ord(),
        )
        db.session.add(column)
        db.session.flush()
        created.append(column)
    return created


# ──────────────────────────────────────────────
# Tasks
# ──────────────────────────────────────────────

def create_task(title, column_id=None):
    """Append a new task to the bottom of a column.

    Args:
        title: Task title (will be sanitized).
        column_id: Target column id, or None for the 'todo' column.

    Raises:
        ValueError: If the title is missing or the column does not exist.
    """
    title = _clean_title(title)
    column = _resolve_column(column_id)
    task = BoardTask(
        title=title,
        column=column,
        ord=_next_task_ord(column.id),
    )
    db.session.add(task)
    db.session.flush()
    return task


def update_task(task, title=None, column_id=None):
    """Rename a task and/or move it to the bottom of another column."""
    if title is not None:
        task.title = _clean_title(title)
    if column_id is not None and column_id != task.column_id:
        destination = _resolve_column(column_id)
        source_id = task.column_id
        task.ord = _next_task_ord(destination.id)
        task.column = destination
        db.session.flush()
        _resequence_tasks(source_id)
    db.session.flush()
    return task


def reorder_tasks(entries):
    """Apply a batch of ``{id, column_id, ord}`` placements.

    Cross-column moves are allowed. ``title`` may be present and is
    ignored. Unknown task ids are skipped; every column touched by the
    batch is re-sequenced densely by (ord, id) afterwards.

    Raises:
        ValueError: On malformed entries, unsaved (negative) ids or
            unknown columns. The caller rolls back the whole batch.
    """
    columns = {col.id: col for col in list_columns()}
    touched = set()

    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError("Each reorder entry must be an object.")
        task_id = _require_int(entry.get("id"), "id")
        if task_id <= 0:
            raise ValueError("Unsaved tasks cannot be reordered.")
        column_id = _require_int(entry.get("column_id"), "column_id")
        ord_ = _require_int(entry.get("ord"), "ord")
        if ord_ < 1:
            raise ValueError("'ord' must be a positive integer.")
        if column_id not in columns:
            raise ValueError(f"Column {column_id} not found.")

        task = db.session.get(BoardTask, task_id)
        if task is None:
            logger.warning(f"Task reorder skipped unknown id {task_id}")
            continue
        touched.add(task.column_id)
        touched.add(column_id)
        task.column = columns[column_id]
        task.ord = ord_

    db.session.flush()
    for column_id in touched:
        _resequence_tasks(column_id)
    logger.info(f"Reordered tasks across {len(touched)} column(s)")
    return list_tasks()


def delete_task(task):
    column_id = task.column_id
    db.session.delete(task)
    db.session.flush()
    _resequence_tasks(column_id)
