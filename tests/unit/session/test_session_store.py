"""Tests for the Redis session store."""

from datetime import UTC, datetime

import pytest

from aiprofessor.core.modules.session.models import Session
from aiprofessor.core.modules.session.store import SessionStore


def make_session(token, user_id=1, ip_address="10.0.0.1", mac_address="device-a", minute=0):
    return Session(
        user_id=user_id,
        token=token,
        ip_address=ip_address,
        mac_address=mac_address,
        created_at=datetime(2025, 1, 1, 12, minute, tzinfo=UTC),
    )


@pytest.fixture
def store(redis):
    return SessionStore(redis, ttl_seconds=3600)


class TestSessionStore:
    """Tests for SessionStore operations."""

    async def test_save_and_find_by_token(self, store):
        """Test that a saved session can be read back by token."""
        session = make_session("t1")
        await store.save(session)
        assert await store.find_by_token("t1") == session

    async def test_keys_carry_ttl(self, store, redis):
        """Test that both the session key and the user index expire."""
        await store.save(make_session("t1"))
        assert 0 < await redis.ttl("session:t1") <= 3600
        assert 0 < await redis.ttl("user:sessions:1") <= 3600

    async def test_find_by_user_id(self, store):
        """Test that all sessions of a user are returned."""
        await store.save(make_session("t1"))
        await store.save(make_session("t2", mac_address="device-b"))
        await store.save(make_session("t3", user_id=2))
        tokens = {s.token for s in await store.find_by_user_id(1)}
        assert tokens == {"t1", "t2"}

    async def test_stale_index_entry_treated_as_absent(self, store, redis):
        """Test that an index entry whose session expired is ignored and pruned."""
        await store.save(make_session("t1"))
        await store.save(make_session("t2"))
        await redis.delete("session:t1")

        sessions = await store.find_by_user_id(1)
        assert [s.token for s in sessions] == ["t2"]
        assert await redis.smembers("user:sessions:1") == {"t2"}

    async def test_unreadable_payload_treated_as_absent(self, store, redis):
        """Test that a corrupted session payload is treated as missing."""
        await redis.set("session:bad", "not json")
        assert await store.find_by_token("bad") is None

    async def test_delete_by_token(self, store, redis):
        """Test that deleting removes the session and its index entry."""
        await store.save(make_session("t1"))
        await store.delete_by_token("t1")
        assert await store.find_by_token("t1") is None
        assert await redis.smembers("user:sessions:1") == set()

    async def test_delete_missing_token_is_noop(self, store):
        """Test that deleting an unknown token does not raise."""
        await store.delete_by_token("missing")

    async def test_counts_by_ip_and_device(self, store):
        """Test counting live sessions per IP and per device."""
        await store.save(make_session("t1", ip_address="10.0.0.1", mac_address="device-a"))
        await store.save(make_session("t2", ip_address="10.0.0.1", mac_address="device-b"))
        assert await store.count_by_user_and_ip(1, "10.0.0.1") == 2
        assert await store.count_by_user_and_ip(1, "10.0.0.9") == 0
        assert await store.count_by_user_and_device(1, "device-b") == 1
        assert await store.count_by_user_and_device(2, "device-a") == 0

    async def test_delete_oldest_for_user(self, store):
        """Test that the session with the earliest creation time is deleted."""
        await store.save(make_session("newer", minute=30))
        await store.save(make_session("oldest", minute=5))
        await store.save(make_session("middle", minute=10))

        evicted = await store.delete_oldest_for_user(1)
        assert evicted is not None
        assert evicted.token == "oldest"
        assert {s.token for s in await store.find_by_user_id(1)} == {"newer", "middle"}

    async def test_delete_oldest_without_sessions(self, store):
        """Test that deleting the oldest session of a user with none returns None."""
        assert await store.delete_oldest_for_user(1) is None
