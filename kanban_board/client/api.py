"""Board API client: thin JSON-over-HTTP wrapper around requests.

Every method returns typed records (see records.py) and raises ApiError
for HTTP errors, network failures and malformed payloads alike.

Usage:
    from kanban_board.client.api import ApiClient

    api = ApiClient("http://localhost:3000")
    columns = api.list_columns()
"""

import logging
import os

import requests

from kanban_board.client.records import Column, RecordError, Task, parse_list

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_TIMEOUT = 10


class ApiError(Exception):
    """A board API call failed. ``status`` is None for network errors."""

    def __init__(self, message, status=None):
        super().__init__(message)
        self.message = message
        self.status = status

    @property
    def is_network_error(self):
        return self.status is None


class ApiClient:
    """Sends and receives JSON for the board endpoints."""

    def __init__(self, base_url=None, timeout=None, session=None):
        base_url = base_url or os.environ.get("KANBAN_API_URL") or DEFAULT_BASE_URL
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or float(os.environ.get("KANBAN_API_TIMEOUT", DEFAULT_TIMEOUT))
        self.session = session or requests.Session()

    def fetch(self, path, method="GET", payload=None):
        """Issue one request and return the decoded JSON body (None for 204)."""
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise ApiError("Could not connect to the server.") from e

        if resp.status_code == 204:
            return None
        if not resp.ok:
            raise ApiError(_error_message(resp), status=resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(f"Invalid JSON from {method} {path}.", status=resp.status_code) from e

    def _records(self, record_cls, data, many=False):
        try:
            if many:
                return parse_list(record_cls, data)
            return record_cls.from_json(data)
        except RecordError as e:
            raise ApiError(f"Unexpected response from server: {e}") from e

    # ─── Columns ─────────────────────────────────────────────

    def list_columns(self):
        return self._records(Column, self.fetch("/api/columns"), many=True)

    def create_column(self, title, color=None):
        payload = {"title": title}
        if color is not None:
            payload["color"] = color
        return self._records(Column, self.fetch("/api/columns", "POST", payload))

    def update_column(self, column_id, **fields):
        data = self.fetch(f"/api/columns/{column_id}", "PUT", fields)
        return self._records(Column, data)

    def reorder_columns(self, entries):
        payload = [entry.to_json() for entry in entries]
        return self._records(Column, self.fetch("/api/reorderColumns", "PUT", payload), many=True)

    def delete_column(self, column_id):
        self.fetch(f"/api/columns/{column_id}", "DELETE")

    # ─── Tasks ───────────────────────────────────────────────

    def list_tasks(self):
        return self._records(Task, self.fetch("/api/tasks"), many=True)

    def create_task(self, title, column_id):
        payload = {"title": title, "column_id": column_id}
        return self._records(Task, self.fetch("/api/tasks", "POST", payload))

    def update_task(self, task_id, **fields):
        return self._records(Task, self.fetch(f"/api/tasks/{task_id}", "PUT", fields))

    def reorder_tasks(self, entries):
        payload = [entry.to_json() for entry in entries]
        return self._records(Task, self.fetch("/api/reorderTasks", "PUT", payload), many=True)

    def delete_task(self, task_id):
        self.fetch(f"/api/tasks/{task_id}", "DELETE")


def _error_message(resp):
    """Pull the server's {"error": ...} message, falling back to the status line."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"Request failed ({resp.status_code})."
