"""Redis-backed session store with a per-user token index."""

import pydantic
import structlog
from redis.asyncio import Redis

from aiprofessor.core.modules.session.models import Session

logger = structlog.get_logger(__name__)

SESSION_PREFIX = "session:"
USER_SESSIONS_PREFIX = "user:sessions:"


class SessionStore:
    """TTL-bound mapping token -> Session plus a derived set of tokens per user.

    Both keys carry the same TTL but expire independently, so an index entry may
    outlive its session. Every read path treats such a stale entry as absent.
    """

    def __init__(self, redis: Redis, ttl_seconds: int) -> None:
        self._redis = redis
        self._ttl = ttl_seconds

    @staticmethod
    def _session_key(token: str) -> str:
        return f"{SESSION_PREFIX}{token}"

    @staticmethod
    def _user_key(user_id: int) -> str:
        return f"{USER_SESSIONS_PREFIX}{user_id}"

    async def save(self, session: Session) -> None:
        user_key = self._user_key(session.user_id)
        async with self._redis.pipeline(transaction=False) as pipe:
            pipe.set(self._session_key(session.token), session.model_dump_json(), ex=self._ttl)
            pipe.sadd(user_key, session.token)
            pipe.expire(user_key, self._ttl)
            await pipe.execute()

    async def find_by_token(self, token: str) -> Session | None:
        raw = await self._redis.get(self._session_key(token))
        if raw is None:
            return None
        return self._parse(token, raw)

    async def find_by_user_id(self, user_id: int) -> list[Session]:
        """All live sessions of a user. Stale index entries are pruned."""
        user_key = self._user_key(user_id)
        tokens = sorted(await self._redis.smembers(user_key))
        if not tokens:
            return []

        raw_sessions = await self._redis.mget([self._session_key(token) for token in tokens])
        sessions: list[Session] = []
        stale: list[str] = []
        for token, raw in zip(tokens, raw_sessions, strict=True):
            session = self._parse(token, raw) if raw is not None else None
            if session is None:
                stale.append(token)
            else:
                sessions.append(session)

        if stale:
            await self._redis.srem(user_key, *stale)
            logger.debug("stale_session_index_pruned", user_id=user_id, count=len(stale))
        return sessions

    async def delete_by_token(self, token: str) -> None:
        """Delete a session and its index entry. Deleting a missing session is a no-op."""
        session = await self.find_by_token(token)
        await self._redis.delete(self._session_key(token))
        if session is not None:
            await self._redis.srem(self._user_key(session.user_id), token)

    async def count_by_user_and_ip(self, user_id: int, ip_address: str) -> int:
        sessions = await self.find_by_user_id(user_id)
        return sum(1 for s in sessions if s.ip_address == ip_address)

    async def count_by_user_and_device(self, user_id: int, mac_address: str) -> int:
        sessions = await self.find_by_user_id(user_id)
        return sum(1 for s in sessions if s.mac_address == mac_address)

    async def delete_oldest_for_user(self, user_id: int) -> Session | None:
        """Delete the user's oldest session and return it, or None if the user has none."""
        sessions = await self.find_by_user_id(user_id)
        if not sessions:
            return None
        oldest = min(sessions, key=lambda s: s.created_at)
        await self.delete_by_token(oldest.token)
        return oldest

    @staticmethod
    def _parse(token: str, raw: str) -> Session | None:
        try:
            return Session.model_validate_json(raw)
        except pydantic.ValidationError:
            logger.warning("session_payload_unreadable", token_suffix=token[-8:])
            return None
