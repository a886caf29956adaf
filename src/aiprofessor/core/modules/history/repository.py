from typing import Any

from pymongo.asynchronous.collection import AsyncCollection

from aiprofessor.core.modules.history.models import DocumentHistory, ProcessingType
from aiprofessor.core.pagination import PageResult


class HistoryRepository:
    """Durable store of DocumentHistory rows in the document_history collection."""

    def __init__(self, collection: AsyncCollection[dict[str, Any]]) -> None:
        self._collection = collection

    async def create_indexes(self) -> None:
        await self._collection.create_index([("user_id", 1), ("processing_type", 1), ("created_at", -1)])
        await self._collection.create_index([("user_id", 1), ("created_at", -1)])

    async def save(self, history: DocumentHistory) -> DocumentHistory:
        await self._collection.insert_one(history.to_mongo())
        return history

    async def find(
        self, user_id: int, processing_type: ProcessingType | None = None, page: int = 0, size: int = 20
    ) -> PageResult[DocumentHistory]:
        """Get one page of a user's history, newest first, optionally filtered by processing type."""
        query: dict[str, Any] = {"user_id": user_id}
        if processing_type is not None:
            query["processing_type"] = processing_type

        total = await self._collection.count_documents(query)

        # _id breaks ties between rows created within the same millisecond
        cursor = self._collection.find(query).sort([("created_at", -1), ("_id", -1)]).skip(page * size).limit(size)
        items = await DocumentHistory.list_cursor(cursor)

        return PageResult(items=items, total=total, page=page, size=size)
