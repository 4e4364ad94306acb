"""Unit tests for auth/store.py and blog/store.py against an in-memory SQLite DB.

Covers:
- UserStore: create/get by id and username, case-sensitive lookup, UNIQUE username
- PostStore: create/get, newest-first summaries, update leaves ownership alone,
  delete, missing ids, foreign key to users enforced
"""

import pytest
from sqlalchemy.exc import IntegrityError

from auth.passwords import generate_salt, hash_password
from auth.store import UserStore, UsernameTakenError
from blog.store import PostStore
from core.db import create_db_engine

# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine():
    e = create_db_engine("sqlite:///:memory:")
    yield e
    e.dispose()


@pytest.fixture
def user_store(engine) -> UserStore:
    return UserStore(engine)


@pytest.fixture
def post_store(engine, user_store) -> PostStore:
    return PostStore(engine)


def _add_user(store: UserStore, username: str, password: str = "pw") -> int:
    salt = generate_salt()
    return store.create_user(username, hash_password(password, salt), salt)


# ---------------------------------------------------------------------------
# UserStore
# ---------------------------------------------------------------------------


class TestUserStore:
    def test_create_and_get_by_id(self, user_store: UserStore) -> None:
        salt = generate_salt()
        password_hash = hash_password("pw1", salt)
        uid = user_store.create_user("alice", password_hash, salt)

        user = user_store.get_by_id(uid)
        assert user is not None
        assert user.id == uid
        assert user.username == "alice"
        assert user.password_hash == password_hash
        assert user.salt == salt
        assert user.created_at

    def test_get_by_username(self, user_store: UserStore) -> None:
        uid = _add_user(user_store, "alice")
        user = user_store.get_by_username("alice")
        assert user is not None and user.id == uid

    def test_username_lookup_is_case_sensitive(self, user_store: UserStore) -> None:
        _add_user(user_store, "alice")
        assert user_store.get_by_username("Alice") is None

    def test_missing_user(self, user_store: UserStore) -> None:
        assert user_store.get_by_id(999) is None
        assert user_store.get_by_username("nobody") is None

    def test_duplicate_username_raises_username_taken(self, user_store: UserStore) -> None:
        _add_user(user_store, "alice")
        with pytest.raises(UsernameTakenError) as exc_info:
            _add_user(user_store, "alice", "other")
        assert exc_info.value.username == "alice"

    def test_ids_are_distinct(self, user_store: UserStore) -> None:
        assert _add_user(user_store, "alice") != _add_user(user_store, "bob")

    def test_repr_hides_secrets(self, user_store: UserStore) -> None:
        uid = _add_user(user_store, "alice")
        text = repr(user_store.get_by_id(uid))
        assert "password_hash" not in text
        assert "salt" not in text


# ---------------------------------------------------------------------------
# PostStore
# ---------------------------------------------------------------------------


class TestPostStore:
    def test_create_and_get(self, user_store: UserStore, post_store: PostStore) -> None:
        uid = _add_user(user_store, "alice")
        pid = post_store.create(uid, "Hi", "Hello", "2026-01-01T00:00:00+00:00")

        post = post_store.get_by_id(pid)
        assert post is not None
        assert post.id == pid
        assert post.author_id == uid
        assert post.title == "Hi"
        assert post.content == "Hello"
        assert post.created_at == "2026-01-01T00:00:00+00:00"

    def test_first_post_id_is_one(self, user_store: UserStore, post_store: PostStore) -> None:
        uid = _add_user(user_store, "alice")
        assert post_store.create(uid, "Hi", "Hello", "2026-01-01T00:00:00+00:00") == 1

    def test_missing_post(self, post_store: PostStore) -> None:
        assert post_store.get_by_id(42) is None

    @pytest.mark.parametrize("post_id", [2**63 - 1, 2**63, 10**22])
    def test_huge_ids_are_missing(self, post_store: PostStore, post_id: int) -> None:
        assert post_store.get_by_id(post_id) is None

    def test_author_must_exist(self, post_store: PostStore) -> None:
        with pytest.raises(IntegrityError):
            post_store.create(999, "Orphan", "No author", "2026-01-01T00:00:00+00:00")

    def test_list_summaries_newest_first(self, user_store: UserStore, post_store: PostStore) -> None:
        uid = _add_user(user_store, "alice")
        old = post_store.create(uid, "Old", "a", "2026-01-01T00:00:00+00:00")
        new = post_store.create(uid, "New", "b", "2026-03-01T00:00:00+00:00")
        mid = post_store.create(uid, "Mid", "c", "2026-02-01T00:00:00+00:00")

        summaries = post_store.list_summaries()
        assert [s.id for s in summaries] == [new, mid, old]
        assert [s.title for s in summaries] == ["New", "Mid", "Old"]
        assert summaries[0].created_at == "2026-03-01T00:00:00+00:00"

    def test_list_summaries_ties_broken_by_id(self, user_store: UserStore, post_store: PostStore) -> None:
        uid = _add_user(user_store, "alice")
        first = post_store.create(uid, "A", "a", "2026-01-01T00:00:00+00:00")
        second = post_store.create(uid, "B", "b", "2026-01-01T00:00:00+00:00")
        assert [s.id for s in post_store.list_summaries()] == [second, first]

    def test_list_summaries_empty(self, post_store: PostStore) -> None:
        assert post_store.list_summaries() == []

    def test_update_keeps_author_and_date(self, user_store: UserStore, post_store: PostStore) -> None:
        uid = _add_user(user_store, "alice")
        pid = post_store.create(uid, "Hi", "Hello", "2026-01-01T00:00:00+00:00")

        assert post_store.update(pid, "Hi again", "Edited") is True
        post = post_store.get_by_id(pid)
        assert (post.title, post.content) == ("Hi again", "Edited")
        assert post.author_id == uid
        assert post.created_at == "2026-01-01T00:00:00+00:00"

    def test_update_missing_post(self, post_store: PostStore) -> None:
        assert post_store.update(42, "t", "c") is False

    def test_delete(self, user_store: UserStore, post_store: PostStore) -> None:
        uid = _add_user(user_store, "alice")
        pid = post_store.create(uid, "Hi", "Hello", "2026-01-01T00:00:00+00:00")

        assert post_store.delete_by_id(pid) is True
        assert post_store.get_by_id(pid) is None
        assert post_store.delete_by_id(pid) is False
