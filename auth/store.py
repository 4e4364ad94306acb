"""
auth/store.py -- SQLAlchemy Core persistence layer for user credentials.

Pattern: Repository + Data Mapper (same as blog/store.py).
UserStore is the repository; _row_to_user is the mapper.
Route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(username) is enforced by the database. Routes pre-check with
  get_by_username(), but two concurrent signups can both pass the pre-check;
  the loser's INSERT hits the constraint and create_user() raises
  UsernameTakenError, which routes handle exactly like the pre-check.

Layer rule: no imports from web/ or blog/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, LargeBinary, String, Table
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import User
from core.db import metadata

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),  # case-sensitive
    Column("password_hash", LargeBinary(64), nullable=False),
    Column("salt", LargeBinary(16), nullable=False),
    Column("created_at", String(32), nullable=False),
)


class UsernameTakenError(Exception):
    """Raised by create_user() when the username already exists."""

    def __init__(self, username: str) -> None:
        super().__init__(f"username {username!r} is already taken")
        self.username = username


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore(engine)
        salt = generate_salt()
        uid = store.create_user("alice", hash_password("pw1", salt), salt)
        user = store.get_by_username("alice")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        metadata.create_all(self.engine)

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(users.select().where(users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(users.select().where(users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def create_user(self, username: str, password_hash: bytes, salt: bytes) -> int:
        """Insert a new user and return its assigned database ID.

        Raises UsernameTakenError if the UNIQUE constraint rejects the row.
        Any other database error propagates unchanged.
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    users.insert().values(
                        username=username,
                        password_hash=password_hash,
                        salt=salt,
                        created_at=_now_iso(),
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise UsernameTakenError(username) from exc
        return result.inserted_primary_key[0]


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        password_hash=bytes(row.password_hash),
        salt=bytes(row.salt),
        created_at=row.created_at,
    )
