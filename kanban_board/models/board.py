"""Kanban board models.

Provides columns (lanes) and the tasks they hold. Both carry an ``ord``
sequence number: columns are ordered left-to-right across the board,
tasks top-to-bottom within their column. Services keep both dense from 1.
"""

from kanban_board.extensions import db
from kanban_board.slugs import is_protected


class BoardColumn(db.Model):
    __tablename__ = "board_columns"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, unique=True, index=True)
    color = db.Column(db.String(32), nullable=False, default="#eef2f7")
    ord = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    tasks = db.relationship(
        "BoardTask",
        backref="column",
        lazy="dynamic",
        cascade="all, delete-orphan",
        order_by="BoardTask.ord",
    )

    @property
    def is_protected(self):
        return is_protected(self.slug)

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "color": self.color,
            "ord": self.ord,
        }

    def __repr__(self):
        return f"<BoardColumn {self.slug} ord={self.ord}>"


class BoardTask(db.Model):
    __tablename__ = "board_tasks"

    id = db.Column(db.Integer, primary_key=True)
    column_id = db.Column(
        db.Integer,
        db.ForeignKey("board_columns.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = db.Column(db.String(500), nullable=False)
    ord = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self):
        """Serialize with the owning column's metadata (tasks inherit its color)."""
        column = self.column
        return {
            "id": self.id,
            "title": self.title,
            "column_id": self.column_id,
            "ord": self.ord,
            "column_slug": column.slug if column else None,
            "column_title": column.title if column else None,
            "color": column.color if column else None,
        }

    def __repr__(self):
        return f"<BoardTask {self.title[:40]} col={self.column_id} ord={self.ord}>"
