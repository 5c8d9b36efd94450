"""Tests for SessionRegistry."""

from uuid import UUID

from roo_bridge.session import SessionRegistry


def test_resolve_creates_uuid_session():
    registry = SessionRegistry()

    session_id = registry.resolve("user-1")

    assert UUID(session_id)
    assert "user-1" in registry
    assert len(registry) == 1


def test_resolve_is_idempotent():
    registry = SessionRegistry()

    first = registry.resolve("user-1")
    second = registry.resolve("user-1")

    assert first == second
    assert len(registry) == 1


def test_distinct_users_get_distinct_sessions():
    registry = SessionRegistry()

    ids = {registry.resolve(f"user-{i}") for i in range(50)}

    assert len(ids) == 50


def test_get_does_not_create():
    registry = SessionRegistry()

    assert registry.get("nobody") is None
    assert "nobody" not in registry
    assert len(registry) == 0


def test_unbounded_by_default():
    registry = SessionRegistry()

    for i in range(500):
        registry.resolve(f"user-{i}")

    assert len(registry) == 500


def test_capacity_evicts_least_recently_resolved():
    registry = SessionRegistry(max_users=2)

    a = registry.resolve("a")
    registry.resolve("b")
    # touching "a" makes "b" the oldest
    assert registry.resolve("a") == a
    registry.resolve("c")

    assert len(registry) == 2
    assert "a" in registry
    assert "b" not in registry
    assert "c" in registry


def test_evicted_user_gets_new_session():
    registry = SessionRegistry(max_users=1)

    old = registry.resolve("a")
    registry.resolve("b")
    new = registry.resolve("a")

    assert new != old
