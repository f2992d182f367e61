"""Tests for the guest session identity"""

import os
import re

from storefront.core.errors import IdentityUnavailable
from storefront.core.session import (
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
    SessionIdentity,
    generate_session_token,
)

TOKEN_PATTERN = re.compile(r"^cart_\d{13,}_[0-9a-z]{13}$")


class BrokenStore(KeyValueStore):
    """Store that behaves like disabled local storage"""

    def get(self, key):
        raise IdentityUnavailable("storage disabled")

    def set(self, key, value):
        raise IdentityUnavailable("storage disabled")

    def delete(self, key):
        raise IdentityUnavailable("storage disabled")


def test_token_format():
    assert TOKEN_PATTERN.match(generate_session_token())


def test_tokens_do_not_collide():
    tokens = {generate_session_token() for _ in range(500)}
    assert len(tokens) == 500


def test_get_or_create_is_stable():
    session = SessionIdentity(MemoryStore())

    first = session.get_or_create()

    assert session.get_or_create() == first
    assert not session.degraded


def test_token_is_persisted_under_session_key():
    store = MemoryStore()
    token = SessionIdentity(store, key="cartSessionId").get_or_create()

    assert store.values == {"cartSessionId": token}


def test_token_survives_restart(tmp_path):
    path = str(tmp_path / "session.json")

    token = SessionIdentity(JsonFileStore(path)).get_or_create()
    reloaded = SessionIdentity(JsonFileStore(path)).get_or_create()

    assert reloaded == token


def test_file_store_creates_missing_directories(tmp_path):
    path = str(tmp_path / "nested" / "dir" / "session.json")

    token = SessionIdentity(JsonFileStore(path)).get_or_create()

    assert JsonFileStore(path).get("cartSessionId") == token


def test_unavailable_store_falls_back_to_process_token():
    session = SessionIdentity(BrokenStore())

    token = session.get_or_create()

    assert TOKEN_PATTERN.match(token)
    assert session.degraded
    assert session.get_or_create() == token


def test_corrupt_file_degrades_instead_of_failing(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json")

    session = SessionIdentity(JsonFileStore(str(path)))
    token = session.get_or_create()

    assert session.degraded
    assert session.get_or_create() == token


def test_no_store_is_degraded():
    session = SessionIdentity(None)

    token = session.get_or_create()

    assert session.degraded
    assert session.get_or_create() == token


def test_rotate_issues_and_persists_new_token():
    store = MemoryStore()
    session = SessionIdentity(store)
    old = session.get_or_create()

    new = session.rotate()

    assert new != old
    assert session.get_or_create() == new
    assert store.values["cartSessionId"] == new


def test_rotate_with_broken_store_still_changes_token():
    session = SessionIdentity(BrokenStore())
    old = session.get_or_create()

    new = session.rotate()

    assert new != old
    assert session.get_or_create() == new


def test_clear_forgets_token():
    store = MemoryStore()
    session = SessionIdentity(store)
    old = session.get_or_create()

    session.clear()

    assert "cartSessionId" not in store.values
    assert session.get_or_create() != old


def test_failed_write_leaves_no_temp_file(tmp_path, monkeypatch):
    def refuse(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", refuse)
    session = SessionIdentity(JsonFileStore(str(tmp_path / "session.json")))

    token = session.get_or_create()

    assert TOKEN_PATTERN.match(token)
    assert session.degraded
    assert list(tmp_path.iterdir()) == []
