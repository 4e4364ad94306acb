"""
auth/session.py -- Session-bound identity on top of the signed session cookie.

The session bag itself is owned by Starlette's SessionMiddleware: it is
serialized into a cookie signed with SECRET_KEY (itsdangerous) and only
reaches request.session after the signature has been verified. This module
never sees the cookie, only the verified mapping.

There is no server-side session table. A copied cookie stays valid until it
expires or the same browser logs out.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any

_USER_ID_KEY = "user_id"


class SessionIdentity:
    """Per-request view of who the session belongs to.

    Usage:
        identity = SessionIdentity(request.session)
        identity.log_in(user.id)
        identity.user_id   # -> user.id
        identity.log_out()
    """

    def __init__(self, bag: MutableMapping[str, Any]) -> None:
        self._bag = bag

    @property
    def user_id(self) -> int | None:
        value = self._bag.get(_USER_ID_KEY)
        # Anything that is not a plain int (e.g. a bool or string smuggled in
        # by an older cookie format) is treated as anonymous.
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def log_in(self, user_id: int) -> None:
        """Bind the session to user_id. The only way a session becomes authenticated."""
        self._bag[_USER_ID_KEY] = user_id

    def log_out(self) -> None:
        """Drop the user binding. The only logout mechanism."""
        self._bag.pop(_USER_ID_KEY, None)
