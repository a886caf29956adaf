from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase
from redis.asyncio import Redis

from aiprofessor.config import Config
from aiprofessor.core.core import Service
from aiprofessor.core.modules.counter.models import CounterType
from aiprofessor.core.modules.history.cache import HistoryCache
from aiprofessor.core.modules.history.models import DocumentHistory, HistoryQuery, ProcessingType
from aiprofessor.core.modules.history.repository import HistoryRepository
from aiprofessor.core.pagination import PageResult

logger = structlog.get_logger(__name__)


class HistoryService(Service):
    """Processing history with a cache-aside layer for each user's first unfiltered page."""

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]], redis: Redis) -> None:
        super().__init__(config, database, redis)
        self.repository = HistoryRepository(database.get_collection("document_history"))
        self.cache = HistoryCache(redis, config.history_cache_ttl_seconds, config.history_cache_max_items)

    async def on_start(self) -> None:
        """Create indexes for per-user newest-first listing."""
        await self.repository.create_indexes()

    def is_cacheable(self, query: HistoryQuery) -> bool:
        """Only the first unfiltered page that fits in a cache entry is served from cache."""
        return query.page == 0 and query.processing_type is None and query.size <= self.cache.max_items

    async def get_history(
        self, user_id: int, processing_type: ProcessingType | None = None, page: int = 0, size: int = 20
    ) -> PageResult[DocumentHistory]:
        """Get a page of the user's history, newest first."""
        query = HistoryQuery(user_id=user_id, processing_type=processing_type, page=page, size=size)
        if not self.is_cacheable(query):
            return await self.repository.find(user_id, processing_type, page, size)

        cached = await self.cache.get(user_id)
        if cached is not None:
            logger.debug("history_cache_hit", user_id=user_id)
            return PageResult(items=cached.items[:size], total=cached.total, page=0, size=size)

        logger.debug("history_cache_miss", user_id=user_id)
        first_rows = await self.repository.find(user_id, page=0, size=self.cache.max_items)
        if first_rows.items:
            await self.cache.put(user_id, first_rows.total, first_rows.items)
        return PageResult(items=first_rows.items[:size], total=first_rows.total, page=0, size=size)

    async def record(
        self,
        user_id: int,
        processing_type: ProcessingType,
        user_prompt: str | None,
        input_file_path: str,
        output_file_path: str,
    ) -> DocumentHistory:
        """Persist a history row, then drop the user's cache entry so the next read sees it."""
        history = DocumentHistory(
            id=await self.core.services.counter.get_next_sequence(CounterType.DOCUMENT_HISTORY),
            user_id=user_id,
            processing_type=processing_type,
            user_prompt=user_prompt,
            input_file_path=input_file_path,
            output_file_path=output_file_path,
        )
        await self.repository.save(history)
        await self.cache.invalidate(user_id)
        return history
