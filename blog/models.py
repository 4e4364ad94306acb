"""
blog/models.py -- Domain dataclasses for posts.

Pure data containers with zero logic. All persistence lives in blog/store.py.
"""

from dataclasses import dataclass


@dataclass
class Post:
    """A markdown post owned by exactly one user.

    author_id is fixed at creation and never updated. content is the raw
    markdown as typed by the author; it is only ever shown to browsers after
    core.markdown.render_markdown() has sanitized it.

    id is None before the record is written to the database.
    """

    author_id: int
    title: str
    content: str
    created_at: str  # ISO 8601, UTC
    id: int | None = None


@dataclass
class PostSummary:
    """Listing projection used by the index page."""

    id: int
    title: str
    created_at: str
