"""Typed records exchanged with the board API.

Every payload crossing the transport boundary is parsed into one of these
dataclasses; ``from_json`` raises RecordError on anything malformed so the
rest of the client never handles raw dicts.
"""

from dataclasses import dataclass
from typing import Optional


class RecordError(ValueError):
    """A JSON payload did not match the expected record shape."""


def _field(data, name, kind, optional=False):
    value = data.get(name)
    if value is None and optional:
        return None
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, kind):
        raise RecordError(f"Field '{name}' must be {kind.__name__}, got {value!r}")
    return value


def _mapping(data, record):
    if not isinstance(data, dict):
        raise RecordError(f"{record} payload must be an object, got {type(data).__name__}")
    return data


@dataclass(frozen=True)
class Column:
    id: int
    title: str
    slug: str
    color: str
    ord: int

    @property
    def is_saved(self):
        return self.id > 0

    @classmethod
    def from_json(cls, data):
        data = _mapping(data, "Column")
        return cls(
            id=_field(data, "id", int),
            title=_field(data, "title", str),
            slug=_field(data, "slug", str),
            color=_field(data, "color", str),
            ord=_field(data, "ord", int),
        )


@dataclass(frozen=True)
class Task:
    id: int
    title: str
    column_id: int
    ord: int
    color: Optional[str] = None
    column_slug: Optional[str] = None
    column_title: Optional[str] = None

    @property
    def is_saved(self):
        """Placeholders carry negative ids until the server assigns one."""
        return self.id > 0

    @classmethod
    def from_json(cls, data):
        data = _mapping(data, "Task")
        return cls(
            id=_field(data, "id", int),
            title=_field(data, "title", str),
            column_id=_field(data, "column_id", int),
            ord=_field(data, "ord", int),
            color=_field(data, "color", str, optional=True),
            column_slug=_field(data, "column_slug", str, optional=True),
            column_title=_field(data, "column_title", str, optional=True),
        )


@dataclass(frozen=True)
class ReorderColumnEntry:
    id: int
    ord: int

    @classmethod
    def from_column(cls, column):
        return cls(id=column.id, ord=column.ord)

    def to_json(self):
        return {"id": self.id, "ord": self.ord}


@dataclass(frozen=True)
class ReorderTaskEntry:
    id: int
    column_id: int
    title: str
    ord: int

    @classmethod
    def from_task(cls, task):
        return cls(id=task.id, column_id=task.column_id, title=task.title, ord=task.ord)

    def to_json(self):
        return {
            "id": self.id,
            "column_id": self.column_id,
            "title": self.title,
            "ord": self.ord,
        }


def parse_list(record_cls, data):
    if not isinstance(data, list):
        raise RecordError(f"Expected a list of {record_cls.__name__}, got {type(data).__name__}")
    return [record_cls.from_json(item) for item in data]
