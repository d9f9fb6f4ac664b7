"""Tests for the task endpoints of the board API.

Covers:
- Listing tasks with column metadata, ordered by (column ord, ord)
- Task creation (default column, ord assignment, validation)
- Task update (rename, move to another column)
- Task deletion (idempotent, column re-densified)
- Bulk reorder / cross-column move, including whole-batch rollback
"""

from kanban_board.extensions import db
from kanban_board.models.board import BoardTask


def _lane(client, column_id):
    """(title, ord) pairs for one column, as the API reports them."""
    return [
        (t["title"], t["ord"])
        for t in client.get("/api/tasks").get_json()
        if t["column_id"] == column_id
    ]


def _add(client, title, column_id):
    return client.post("/api/tasks", json={"title": title, "column_id": column_id}).get_json()


# ─── List ──────────────────────────────────────────────────

class TestListTasks:

    def test_tasks_carry_column_fields(self, client, seed_board):
        tasks = client.get("/api/tasks").get_json()
        assert len(tasks) == 3
        first = tasks[0]
        assert set(first) == {
            "id", "title", "column_id", "ord", "column_slug", "column_title", "color",
        }
        assert first["title"] == "Set up project"
        assert first["column_slug"] == "todo"
        assert first["column_title"] == "To Do"
        assert first["color"] == "#e6f4ff"

    def test_ordered_by_column_then_ord(self, client, seed_board):
        _add(client, "Second todo", seed_board["todo_id"])
        titles = [t["title"] for t in client.get("/api/tasks").get_json()]
        assert titles == ["Set up project", "Second todo", "Build components", "Test the app"]


# ─── Create ────────────────────────────────────────────────

class TestCreateTask:

    def test_create_in_column(self, client, seed_board):
        resp = client.post("/api/tasks", json={"title": "Buy milk", "column_id": seed_board["doing_id"]})
        assert resp.status_code == 201
        data = resp.get_json()
        assert data["id"] > 0
        assert data["title"] == "Buy milk"
        assert data["column_id"] == seed_board["doing_id"]
        assert data["ord"] == 2
        assert data["color"] == "#fff8e6"

    def test_defaults_to_todo_column(self, client, seed_board):
        data = client.post("/api/tasks", json={"title": "Inbox item"}).get_json()
        assert data["column_id"] == seed_board["todo_id"]
        assert data["column_slug"] == "todo"

    def test_defaults_to_first_column_without_todo(self, client):
        col = client.post("/api/columns", json={"title": "Inbox"}).get_json()
        data = client.post("/api/tasks", json={"title": "Something"}).get_json()
        assert data["column_id"] == col["id"]
        assert data["ord"] == 1

    def test_no_columns(self, client):
        resp = client.post("/api/tasks", json={"title": "Orphan"})
        assert resp.status_code == 400

    def test_missing_title_rejected(self, client, seed_board):
        resp = client.post("/api/tasks", json={"column_id": seed_board["todo_id"]})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Title required."

    def test_unknown_column_rejected(self, client, seed_board):
        resp = client.post("/api/tasks", json={"title": "Lost", "column_id": 999})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Column 999 not found."

    def test_non_integer_column_rejected(self, client, seed_board):
        resp = client.post("/api/tasks", json={"title": "Lost", "column_id": "todo"})
        assert resp.status_code == 400


# ─── Update ────────────────────────────────────────────────

class TestUpdateTask:

    def test_rename(self, client, seed_board):
        resp = client.put(f"/api/tasks/{seed_board['setup_id']}", json={"title": "Project set up"})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["title"] == "Project set up"
        assert data["ord"] == 1

    def test_blank_rename_rejected(self, client, seed_board):
        resp = client.put(f"/api/tasks/{seed_board['setup_id']}", json={"title": ""})
        assert resp.status_code == 400
        assert db.session.get(BoardTask, seed_board["setup_id"]).title == "Set up project"

    def test_move_appends_and_resequences_source(self, client, seed_board):
        todo = seed_board["todo_id"]
        _add(client, "Second todo", todo)

        resp = client.put(
            f"/api/tasks/{seed_board['setup_id']}", json={"column_id": seed_board["done_id"]}
        )
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["column_id"] == seed_board["done_id"]
        assert data["column_slug"] == "done"
        assert data["color"] == "#e6ffe6"
        assert data["ord"] == 2
        assert _lane(client, todo) == [("Second todo", 1)]

    def test_update_missing_task(self, client):
        resp = client.put("/api/tasks/999", json={"title": "Ghost"})
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "Task not found"}


# ─── Delete ────────────────────────────────────────────────

class TestDeleteTask:

    def test_delete_resequences_column(self, client, seed_board):
        todo = seed_board["todo_id"]
        _add(client, "Second todo", todo)
        _add(client, "Third todo", todo)

        resp = client.delete(f"/api/tasks/{seed_board['setup_id']}")
        assert resp.status_code == 204
        assert _lane(client, todo) == [("Second todo", 1), ("Third todo", 2)]

    def test_delete_is_idempotent(self, client, seed_board):
        assert client.delete("/api/tasks/999").status_code == 204
        assert BoardTask.query.count() == 3


# ─── Reorder / move ────────────────────────────────────────

class TestReorderTasks:

    def test_reorder_within_column(self, client, seed_board):
        todo = seed_board["todo_id"]
        second = _add(client, "Second todo", todo)

        resp = client.put("/api/reorderTasks", json=[
            {"id": second["id"], "column_id": todo, "title": "Second todo", "ord": 1},
            {"id": seed_board["setup_id"], "column_id": todo, "title": "Set up project", "ord": 2},
        ])
        assert resp.status_code == 200
        assert _lane(client, todo) == [("Second todo", 1), ("Set up project", 2)]

    def test_cross_column_move(self, client, seed_board):
        todo, doing = seed_board["todo_id"], seed_board["doing_id"]
        resp = client.put("/api/reorderTasks", json=[
            {"id": seed_board["setup_id"], "column_id": doing, "title": "Set up project", "ord": 1},
            {"id": seed_board["build_id"], "column_id": doing, "title": "Build components", "ord": 2},
            {"id": seed_board["ship_id"], "column_id": seed_board["done_id"], "title": "Test the app", "ord": 1},
        ])
        assert resp.status_code == 200

        data = resp.get_json()
        moved = next(t for t in data if t["id"] == seed_board["setup_id"])
        assert moved["column_id"] == doing
        assert moved["column_slug"] == "doing"
        assert moved["color"] == "#fff8e6"
        assert _lane(client, todo) == []
        assert _lane(client, doing) == [("Set up project", 1), ("Build components", 2)]

    def test_partial_payload_is_redensified(self, client, seed_board):
        todo = seed_board["todo_id"]
        _add(client, "Second todo", todo)
        client.put("/api/reorderTasks", json=[
            {"id": seed_board["setup_id"], "column_id": todo, "ord": 7},
        ])
        assert _lane(client, todo) == [("Second todo", 1), ("Set up project", 2)]

    def test_unknown_task_skipped(self, client, seed_board):
        resp = client.put("/api/reorderTasks", json=[
            {"id": 999, "column_id": seed_board["todo_id"], "ord": 1},
            {"id": seed_board["ship_id"], "column_id": seed_board["todo_id"], "ord": 1},
        ])
        assert resp.status_code == 200
        assert _lane(client, seed_board["done_id"]) == []
        assert len(_lane(client, seed_board["todo_id"])) == 2

    def test_unsaved_ids_rejected(self, client, seed_board):
        resp = client.put("/api/reorderTasks", json=[
            {"id": -1, "column_id": seed_board["todo_id"], "ord": 1},
        ])
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Unsaved tasks cannot be reordered."

    def test_failed_batch_rolls_back(self, client, seed_board):
        resp = client.put("/api/reorderTasks", json=[
            {"id": seed_board["setup_id"], "column_id": seed_board["doing_id"], "ord": 1},
            {"id": seed_board["build_id"], "column_id": 999, "ord": 1},
        ])
        assert resp.status_code == 400
        assert _lane(client, seed_board["todo_id"]) == [("Set up project", 1)]
        assert _lane(client, seed_board["doing_id"]) == [("Build components", 1)]

    def test_invalid_ord_rejected(self, client, seed_board):
        resp = client.put("/api/reorderTasks", json=[
            {"id": seed_board["setup_id"], "column_id": seed_board["todo_id"], "ord": 0},
        ])
        assert resp.status_code == 400

    def test_body_must_be_array(self, client, seed_board):
        resp = client.put("/api/reorderTasks", json={"tasks": []})
        assert resp.status_code == 400
