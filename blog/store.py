"""
blog/store.py -- SQLAlchemy Core persistence layer for posts.

Pattern: Repository + Data Mapper (same as auth/store.py).

Ownership is NOT checked here. Every mutating call is made by a route whose
guard chain ends in require_own; keeping policy out of the store means the
store stays a plain CRUD layer.

created_at is an ISO 8601 UTC string always written with microseconds
(timespec="microseconds"). All values share one width, so ORDER BY
created_at sorts chronologically.
"""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Integer, String, Table, Text, select
from sqlalchemy.engine import Engine

from auth.store import users
from blog.models import Post, PostSummary
from core.db import metadata

# SQLite INTEGER is a signed 64-bit value; larger ids cannot name a row.
_MAX_ROW_ID = 2**63 - 1

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

posts = Table(
    "posts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    # No ON DELETE rule: users are never deleted.
    Column("author_id", Integer, ForeignKey(users.c.id), nullable=False),
    Column("title", Text, nullable=False),
    Column("content", Text, nullable=False),
    Column("created_at", String(32), nullable=False, index=True),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PostStore:
    """Repository for Post entities.

    Usage:
        store = PostStore(engine)
        post_id = store.create(author_id, "Hi", "Hello", created_at)
        store.get_by_id(post_id)
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        metadata.create_all(self.engine)

    def create(self, author_id: int, title: str, content: str, created_at: str) -> int:
        """Insert a post and return its ID.

        Raises sqlalchemy.exc.IntegrityError if author_id does not reference
        an existing user.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                posts.insert().values(
                    author_id=author_id,
                    title=title,
                    content=content,
                    created_at=created_at,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def list_summaries(self) -> list[PostSummary]:
        """Return every post's id/title/created_at, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                select(posts.c.id, posts.c.title, posts.c.created_at)
                .order_by(posts.c.created_at.desc(), posts.c.id.desc())
            ).fetchall()
        return [PostSummary(id=r.id, title=r.title, created_at=r.created_at) for r in rows]

    def get_by_id(self, post_id: int) -> Post | None:
        """Look up a post by primary key. Returns None if not found.

        Ids outside the INTEGER range are never stored, so they return None
        without a query (sqlite3 would raise OverflowError binding them).
        """
        if not 0 <= post_id <= _MAX_ROW_ID:
            return None
        with self.engine.connect() as conn:
            row = conn.execute(posts.select().where(posts.c.id == post_id)).fetchone()
        return _row_to_post(row) if row is not None else None

    def update(self, post_id: int, title: str, content: str) -> bool:
        """Replace title and content. author_id and created_at are never touched.

        Returns True if a row was updated, False if post_id was not found.
        """
        with self.engine.connect() as conn:
            result = conn.execute(posts.update().where(posts.c.id == post_id).values(title=title, content=content))
            conn.commit()
        return result.rowcount > 0

    def delete_by_id(self, post_id: int) -> bool:
        """Permanently delete a post. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(posts.delete().where(posts.c.id == post_id))
            conn.commit()
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_post(row) -> Post:
    return Post(
        id=row.id,
        author_id=row.author_id,
        title=row.title,
        content=row.content,
        created_at=row.created_at,
    )
