"""Redis cache of each user's newest history rows."""

import pydantic
import structlog
from redis.asyncio import Redis

from aiprofessor.core.modules.history.models import CachedHistory, DocumentHistory

logger = structlog.get_logger(__name__)

CACHE_KEY_PREFIX = "document:history:"


class HistoryCache:
    """Holds at most max_items newest rows per user under document:history:{user_id}.

    The entry is a snapshot; callers invalidate it after every insert for the user.
    """

    def __init__(self, redis: Redis, ttl_seconds: int, max_items: int) -> None:
        self._redis = redis
        self._ttl = ttl_seconds
        self.max_items = max_items

    @staticmethod
    def _key(user_id: int) -> str:
        return f"{CACHE_KEY_PREFIX}{user_id}"

    async def get(self, user_id: int) -> CachedHistory | None:
        """Return the cached entry, or None on a miss or an unreadable entry."""
        raw = await self._redis.get(self._key(user_id))
        if raw is None:
            return None
        try:
            return CachedHistory.model_validate_json(raw)
        except pydantic.ValidationError:
            logger.warning("history_cache_unreadable", user_id=user_id)
            return None

    async def put(self, user_id: int, total: int, items: list[DocumentHistory]) -> None:
        entry = CachedHistory(total=total, items=items[: self.max_items])
        await self._redis.set(self._key(user_id), entry.model_dump_json(), ex=self._ttl)

    async def invalidate(self, user_id: int) -> None:
        await self._redis.delete(self._key(user_id))
        logger.debug("history_cache_invalidated", user_id=user_id)
