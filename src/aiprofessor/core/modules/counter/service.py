from typing import Any

from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from redis.asyncio import Redis

from aiprofessor.config import Config
from aiprofessor.core.core import Service
from aiprofessor.core.modules.counter.models import CounterType


class CounterService(Service):
    """Allocates sequential integer ids, one counter document per counter type."""

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]], redis: Redis) -> None:
        super().__init__(config, database, redis)
        self._collection = database.get_collection("counters")

    async def get_next_sequence(self, counter_type: CounterType) -> int:
        """Atomically increment and return the next id for a counter type."""
        result = await self._collection.find_one_and_update(
            {"_id": counter_type.value},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

        # An upserted counter starts at 1
        return int(result["seq"])
