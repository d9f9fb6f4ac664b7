"""Board API blueprint: /api/*

JSON API backing the board client. The service layer validates and
flushes; routes commit, or roll back and answer 400 on ValueError.

Route Map:
  GET    /api/                    Health check
  GET    /api/columns             List columns (by ord)
  POST   /api/columns             Create column
  PUT    /api/columns/<id>        Update column
  DELETE /api/columns/<id>        Delete column (cascades to tasks)
  PUT    /api/reorderColumns      Reorder columns
  GET    /api/tasks               List tasks (by column ord, ord)
  POST   /api/tasks               Create task
  PUT    /api/tasks/<id>          Update task
  DELETE /api/tasks/<id>          Delete task
  PUT    /api/reorderTasks        Reorder / move tasks
"""

import logging

from flask import Blueprint, jsonify, request

from kanban_board.extensions import db
from kanban_board.models.board import BoardColumn, BoardTask
from kanban_board.services import board_service

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api")


def _json_body(expected=dict):
    """Parse the request body, returning (data, error_response)."""
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, expected):
        kind = "an array" if expected is list else "an object"
        return None, (jsonify({"error": f"Request body must be {kind}."}), 400)
    return data, None


def _bad_request(exc):
    db.session.rollback()
    return jsonify({"error": str(exc)}), 400


# ─── Health ──────────────────────────────────────────────────────

@api_bp.route("/")
def health():
    return jsonify({"status": "ok"})


# ─── Column API ──────────────────────────────────────────────────

@api_bp.route("/columns")
def list_columns():
    return jsonify([col.to_dict() for col in board_service.list_columns()])


@api_bp.route("/columns", methods=["POST"])
def create_column():
    data, error = _json_body()
    if error:
        return error
    try:
        col = board_service.create_column(data.get("title"), data.get("color"))
    except ValueError as e:
        return _bad_request(e)
    db.session.commit()
    return jsonify(col.to_dict()), 201


@api_bp.route("/columns/<int:col_id>", methods=["PUT"])
def update_column(col_id):
    col = db.session.get(BoardColumn, col_id)
    if not col:
        return jsonify({"error": "Column not found"}), 404
    data, error = _json_body()
    if error:
        return error
    try:
        board_service.update_column(col, title=data.get("title"), color=data.get("color"))
    except ValueError as e:
        return _bad_request(e)
    db.session.commit()
    return jsonify(col.to_dict())


@api_bp.route("/columns/<int:col_id>", methods=["DELETE"])
def delete_column(col_id):
    col = db.session.get(BoardColumn, col_id)
    if not col:
        return jsonify({"error": "Column not found"}), 404
    try:
        board_service.delete_column(col)
    except ValueError as e:
        return _bad_request(e)
    db.session.commit()
    return "", 204


@api_bp.route("/reorderColumns", methods=["PUT"])
def reorder_columns():
    data, error = _json_body(list)
    if error:
        return error
    try:
        column_ids = []
        for item in data:
            if not isinstance(item, dict):
                raise ValueError("Each reorder entry must be an object.")
            column_ids.append(item.get("id"))
        columns = board_service.reorder_columns(column_ids)
    except ValueError as e:
        return _bad_request(e)
    db.session.commit()
    return jsonify([col.to_dict() for col in columns])


# ─── Task API ────────────────────────────────────────────────────

@api_bp.route("/tasks")
def list_tasks():
    return jsonify([task.to_dict() for task in board_service.list_tasks()])


@api_bp.route("/tasks", methods=["POST"])
def create_task():
    data, error = _json_body()
    if error:
        return error
    try:
        task = board_service.create_task(data.get("title"), data.get("column_id"))
    except ValueError as e:
        return _bad_request(e)
    db.session.commit()
    return jsonify(task.to_dict()), 201


@api_bp.route("/tasks/<int:task_id>", methods=["PUT"])
def update_task(task_id):
    task = db.session.get(BoardTask, task_id)
    if not task:
        return jsonify({"error": "Task not found"}), 404
    data, error = _json_body()
    if error:
        return error
    try:
        board_service.update_task(
            task, title=data.get("title"), column_id=data.get("column_id")
        )
    except ValueError as e:
        return _bad_request(e)
    db.session.commit()
    return jsonify(task.to_dict())


@api_bp.route("/tasks/<int:task_id>", methods=["DELETE"])
def delete_task(task_id):
    task = db.session.get(BoardTask, task_id)
    if task:
        board_service.delete_task(task)
        db.session.commit()
    return "", 204


@api_bp.route("/reorderTasks", methods=["PUT"])
def reorder_tasks():
    data, error = _json_body(list)
    if error:
        return error
    try:
        tasks = board_service.reorder_tasks(data)
    except ValueError as e:
        return _bad_request(e)
    db.session.commit()
    return jsonify([task.to_dict() for task in tasks])
