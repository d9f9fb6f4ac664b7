"""Board session: optimistic local state synced to the board API.

A BoardSession owns the columns, tasks and error banner for one mounted
board view. Every mutating action updates local state immediately and then
hands its persistence call to a dispatcher: a daemon thread by default, so
the local update is never gated on the network, or inline when
``background=False``.

Failure policy: a failed call sets ``error`` (last failure wins) and leaves
the optimistic state in place. Nothing is retried or rolled back; load()
is the recovery path and re-derives everything from the server.

Placeholders: locally created tasks and columns get negative ids (-1, -2,
...) until the create call returns. They are never sent to endpoints that
expect server ids, and are removed locally without a network call.

Usage:
    session = BoardSession.open(ApiClient())
    task = session.add_task(column_id)
    session.edit_task_title(task.id, "Buy milk")
    session.commit_task(task.id)          # Enter / blur
    session.drag_end(DragEvent(ItemKind.TASK, 1, 0, 2, 0))
    session.close()
"""

import logging
import threading
from dataclasses import replace
from functools import partial

from kanban_board.client.api import ApiError
from kanban_board.client.records import Column, ReorderColumnEntry, ReorderTaskEntry, Task
from kanban_board.client.reorder import ItemKind, apply_drag, resequence
from kanban_board.slugs import is_protected, slugify

logger = logging.getLogger(__name__)

MAX_COLUMNS = 6
DEFAULT_COLOR = "#eef2f7"
CONNECT_ERROR = "Could not connect to the server."


class BoardSession:
    """Client-side board state with optimistic persistence."""

    def __init__(self, api, background=True, max_columns=MAX_COLUMNS):
        self.api = api
        self.background = background
        self.max_columns = max_columns
        self.columns = []
        self.tasks = []
        self.error = None
        self.closed = False
        self._next_placeholder = -1
        self._snapshots = {}  # (kind, id) -> record as it was before editing
        self._creating = set()  # placeholder task ids with a create in flight
        self._pending = []
        self._lock = threading.RLock()

    @classmethod
    def open(cls, api, **kwargs):
        """Create a session for a freshly mounted view and load the board."""
        session = cls(api, **kwargs)
        session.load()
        return session

    def close(self):
        """Discard the session when the view unmounts."""
        self.wait()
        with self._lock:
            self.columns = []
            self.tasks = []
            self._snapshots.clear()
            self._creating.clear()
            self.error = None
            self.closed = True

    # ─── Queries ─────────────────────────────────────────────

    def column(self, column_id):
        return next((c for c in self.columns if c.id == column_id), None)

    def task(self, task_id):
        return next((t for t in self.tasks if t.id == task_id), None)

    def tasks_in(self, column_id):
        return sorted(
            (t for t in self.tasks if t.column_id == column_id), key=lambda t: t.ord
        )

    def board(self):
        """(column, tasks) pairs in display order, for rendering."""
        return [(col, self.tasks_in(col.id)) for col in self.columns]

    @property
    def can_add_column(self):
        return len(self.columns) < self.max_columns

    # ─── Loading ─────────────────────────────────────────────

    def load(self):
        """Replace local state with server truth. Returns True on success."""
        try:
            columns = self.api.list_columns()
            tasks = self.api.list_tasks()
        except ApiError as e:
            self._fail("load board", e, CONNECT_ERROR)
            return False
        with self._lock:
            self.columns = sorted(columns, key=lambda c: c.ord)
            self.tasks = list(tasks)
            self._snapshots.clear()
            self.error = None
        return True

    def clear_error(self):
        with self._lock:
            self.error = None

    # ─── Tasks ───────────────────────────────────────────────

    def add_task(self, column_id, title=""):
        """Insert an unsaved placeholder task at the bottom of a column."""
        with self._lock:
            column = self.column(column_id)
            if column is None:
                self.error = "Column not found."
                return None
            if not column.is_saved:
                self.error = "Save the column before adding tasks."
                return None
            lane = self.tasks_in(column_id)
            task = Task(
                id=self._placeholder_id(),
                title=title,
                column_id=column_id,
                ord=max((t.ord for t in lane), default=0) + 1,
                color=column.color,
                column_slug=column.slug,
                column_title=column.title,
            )
            self.tasks.append(task)
            return task

    def edit_task_title(self, task_id, title):
        """Local keystroke edit. Nothing is sent until commit_task()."""
        with self._lock:
            task = self.task(task_id)
            if task is None:
                return None
            self._snapshots.setdefault(("task", task_id), task)
            return self._put_task(replace(task, title=title))

    def commit_task(self, task_id):
        """Persist a task edit (blur / Enter). Returns True if a call was issued.

        An unsaved task is created once, or discarded when its title is
        empty. Committing it again while its create is in flight only keeps
        the title locally; the change is sent when the create returns.
        A saved task sends only a changed title; an empty title reverts.
        """
        with self._lock:
            task = self.task(task_id)
            original = self._snapshots.pop(("task", task_id), None)
            if task is None:
                return False
            title = task.title.strip()

            if not task.is_saved:
                if not title:
                    self._remove_task(task_id)
                    return False
                task = self._put_task(replace(task, title=title))
                if task_id in self._creating:
                    return False
                self._creating.add(task_id)
                column_id = task.column_id
            else:
                if original is None or not title or title == original.title:
                    if original is not None:
                        self._put_task(replace(task, title=original.title))
                    return False
                self._put_task(replace(task, title=title))

        if not task.is_saved:
            self._dispatch(
                lambda: self.api.create_task(title, column_id),
                on_success=lambda created: self._adopt_task(task_id, created, title),
                on_failure=lambda: self._creating.discard(task_id),
                action="create task",
            )
        else:
            self._dispatch(
                lambda: self.api.update_task(task_id, title=title),
                action="update task",
            )
        return True

    def cancel_task_edit(self, task_id):
        """Escape: drop an unsaved task, or restore a saved one's title."""
        with self._lock:
            task = self.task(task_id)
            original = self._snapshots.pop(("task", task_id), None)
            if task is None:
                return
            if not task.is_saved:
                self._remove_task(task_id)
            elif original is not None:
                self._put_task(replace(task, title=original.title))

    def delete_task(self, task_id):
        with self._lock:
            task = self.task(task_id)
            if task is None:
                return False
            self._snapshots.pop(("task", task_id), None)
            self._remove_task(task_id)

        if task.is_saved:
            self._dispatch(lambda: self.api.delete_task(task_id), action="delete task")
        return True

    # ─── Columns ─────────────────────────────────────────────

    def add_column(self, title, color=None):
        """Validate locally, append a placeholder column and create it."""
        with self._lock:
            title = (title or "").strip()
            slug = slugify(title)
            if not title:
                self.error = "Column title required."
                return None
            if not slug:
                self.error = "Column title must contain letters or digits."
                return None
            if not self.can_add_column:
                self.error = f"A board holds at most {self.max_columns} columns."
                return None
            if self._slug_taken(slug):
                self.error = "Column title already exists."
                return None
            column = Column(
                id=self._placeholder_id(),
                title=title,
                slug=slug,
                color=color or DEFAULT_COLOR,
                ord=len(self.columns) + 1,
            )
            self.columns.append(column)

        self._dispatch(
            lambda: self.api.create_column(title, color),
            on_success=lambda created: self._adopt_column(column.id, created, column),
            action="create column",
        )
        return column

    def edit_column_title(self, column_id, title):
        with self._lock:
            column = self.column(column_id)
            if column is None:
                return None
            self._snapshots.setdefault(("column", column_id), column)
            return self._put_column(replace(column, title=title))

    def edit_column_color(self, column_id, color):
        """Recolor a column and its tasks locally. Persisted by commit_column()."""
        with self._lock:
            column = self.column(column_id)
            if column is None:
                return None
            self._snapshots.setdefault(("column", column_id), column)
            self._recolor_tasks(column_id, color)
            return self._put_column(replace(column, color=color))

    def commit_column(self, column_id):
        """Persist changed column fields. Returns True if a call was issued.

        Unsaved columns are only kept locally (or discarded when the title
        is empty); their create call is already in flight and the edit is
        sent once it returns.
        """
        with self._lock:
            column = self.column(column_id)
            original = self._snapshots.pop(("column", column_id), None)
            if column is None or original is None:
                return False
            title = column.title.strip()

            if not column.is_saved:
                if not title:
                    self._remove_column(column_id)
                elif title != original.title and (
                    not slugify(title) or self._slug_taken(slugify(title), exclude_id=column_id)
                ):
                    self.error = "Column title already exists."
                    self._put_column(replace(column, title=original.title))
                else:
                    self._put_column(replace(column, title=title))
                return False

            changes = {}
            if title != original.title:
                if not title:
                    title = original.title
                elif not slugify(title) or self._slug_taken(slugify(title), exclude_id=column_id):
                    self.error = "Column title already exists."
                    title = original.title
                else:
                    changes["title"] = title
            if column.color != original.color:
                changes["color"] = column.color
            self._put_column(replace(column, title=title))
            if not changes:
                return False

        self._dispatch(
            lambda: self.api.update_column(column_id, **changes),
            action="update column",
        )
        return True

    def cancel_column_edit(self, column_id):
        with self._lock:
            column = self.column(column_id)
            original = self._snapshots.pop(("column", column_id), None)
            if original is None or column is None:
                return
            self._recolor_tasks(column_id, original.color)
            self._put_column(replace(column, title=original.title, color=original.color))

    def delete_column(self, column_id):
        """Delete a column and its tasks. Default columns are refused locally."""
        with self._lock:
            column = self.column(column_id)
            if column is None:
                return False
            if is_protected(column.slug):
                self.error = "Default columns cannot be deleted."
                return False
            self._snapshots.pop(("column", column_id), None)
            self._remove_column(column_id)

        if column.is_saved:
            self._dispatch(lambda: self.api.delete_column(column_id), action="delete column")
        return True

    # ─── Drag and drop ───────────────────────────────────────

    def drag_end(self, event):
        """Apply a drag-end event and persist it in one bulk call.

        Returns False for a no-op drop (nothing changes, nothing is sent).
        """
        with self._lock:
            result = apply_drag(self.columns, self.tasks, event)
            if not result.changed:
                return False
            self.columns = result.columns
            self.tasks = result.tasks

            if event.item_kind == ItemKind.COLUMN:
                entries = [ReorderColumnEntry.from_column(c) for c in self.columns if c.is_saved]
                call = partial(self.api.reorder_columns, entries)
                action = "reorder columns"
            else:
                # the backend can resolve neither placeholder tasks nor placeholder columns
                entries = [
                    ReorderTaskEntry.from_task(t)
                    for t in self.tasks
                    if t.is_saved and t.column_id > 0
                ]
                call = partial(self.api.reorder_tasks, entries)
                action = "reorder tasks"

        if entries:
            self._dispatch(call, action=action)
        return True

    # ─── Persistence ─────────────────────────────────────────

    def wait(self, timeout=None):
        """Join in-flight persistence calls, including the ones they dispatch.

        With a timeout, returns after the first pass that leaves a call running.
        """
        while True:
            with self._lock:
                self._pending = [t for t in self._pending if t.is_alive()]
                pending = list(self._pending)
            if not pending:
                return
            for thread in pending:
                thread.join(timeout)
            if timeout is not None and any(t.is_alive() for t in pending):
                return

    def _dispatch(self, call, on_success=None, on_failure=None, action="sync"):
        def run():
            try:
                result = call()
            except ApiError as e:
                self._fail(action, e)
                if on_failure is not None:
                    with self._lock:
                        on_failure()
                return
            if on_success is not None:
                with self._lock:
                    on_success(result)

        if not self.background:
            run()
            return
        thread = threading.Thread(target=run, name=f"board-{action}", daemon=True)
        # started under the lock so wait() never prunes it before it runs
        with self._lock:
            self._pending = [t for t in self._pending if t.is_alive()]
            self._pending.append(thread)
            thread.start()

    def _fail(self, action, exc, message=None):
        logger.warning(f"Board {action} failed: {exc.message} (status: {exc.status})")
        with self._lock:
            self.error = message or exc.message

    def _adopt_task(self, placeholder_id, created, sent_title):
        """Swap a placeholder for the task the server created.

        A title committed while the create was in flight is sent as an
        update; one still being edited carries over to the saved id.
        """
        self._creating.discard(placeholder_id)
        local = self.task(placeholder_id)
        if local is None:
            # deleted while the create was in flight
            logger.info(f"Task {created.id} was discarded before its create returned")
            self._dispatch(lambda: self.api.delete_task(created.id), action="delete task")
            return

        renamed = local.title != sent_title
        title = local.title if renamed else created.title
        if (created.column_id, created.ord) != (local.column_id, local.ord):
            # moved while in flight; keep the visible placement
            adopted = replace(local, id=created.id, title=title)
        else:
            adopted = replace(created, title=title)
        self._put_task(adopted, replacing=placeholder_id)

        editing = self._snapshots.pop(("task", placeholder_id), None)
        if editing is not None:
            self._snapshots[("task", created.id)] = replace(adopted, title=created.title)
        elif renamed:
            self._dispatch(
                lambda: self.api.update_task(created.id, title=title),
                action="update task",
            )

    def _adopt_column(self, placeholder_id, created, sent):
        local = self.column(placeholder_id)
        if local is None:
            logger.info(f"Column {created.id} was discarded before its create returned")
            self._dispatch(lambda: self.api.delete_column(created.id), action="delete column")
            return

        changes = {}
        if local.title != sent.title:
            changes["title"] = local.title
        if local.color != sent.color:
            changes["color"] = local.color
        adopted = replace(
            created,
            ord=local.ord,
            title=changes.get("title", created.title),
            color=changes.get("color", created.color),
        )
        self._put_column(adopted, replacing=placeholder_id)

        editing = self._snapshots.pop(("column", placeholder_id), None)
        if editing is not None:
            self._snapshots[("column", created.id)] = replace(created, ord=local.ord)
        elif changes:
            self._dispatch(
                lambda: self.api.update_column(created.id, **changes),
                action="update column",
            )

    # ─── Local state helpers ─────────────────────────────────

    def _placeholder_id(self):
        placeholder = self._next_placeholder
        self._next_placeholder -= 1
        return placeholder

    def _put_task(self, task, replacing=None):
        target = task.id if replacing is None else replacing
        self.tasks = [task if t.id == target else t for t in self.tasks]
        return task

    def _put_column(self, column, replacing=None):
        target = column.id if replacing is None else replacing
        self.columns = [column if c.id == target else c for c in self.columns]
        return column

    def _remove_task(self, task_id):
        task = self.task(task_id)
        self.tasks = [t for t in self.tasks if t.id != task_id]
        if task is not None:
            renumbered = {t.id: t for t in resequence(self.tasks_in(task.column_id))}
            self.tasks = [renumbered.get(t.id, t) for t in self.tasks]

    def _remove_column(self, column_id):
        self.columns = resequence([c for c in self.columns if c.id != column_id])
        self.tasks = [t for t in self.tasks if t.column_id != column_id]

    def _recolor_tasks(self, column_id, color):
        self.tasks = [
            replace(t, color=color) if t.column_id == column_id else t
            for t in self.tasks
        ]

    def _slug_taken(self, slug, exclude_id=None):
        return any(
            c.id != exclude_id and (c.slug == slug or slugify(c.title) == slug)
            for c in self.columns
        )
