"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work.

Layer rule: no imports from web/ or blog/.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class User:
    """A registered author.

    password_hash is the raw 64-byte PBKDF2 output and salt the 16 random
    bytes it was derived with (see auth/passwords.py). Both are excluded from
    repr so a stray log line never prints them.

    Users are created at signup and never updated or deleted.
    """

    username: str
    password_hash: bytes = field(repr=False)
    salt: bytes = field(repr=False)
    id: int | None = None
    created_at: str | None = None
