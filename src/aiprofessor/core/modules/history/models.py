from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from aiprofessor.core.db import MongoModel
from aiprofessor.utils import now


class ProcessingType(StrEnum):
    """Kind of document processing a user requested."""

    SUMMARY = "SUMMARY"
    EXAM_QUESTIONS = "EXAM_QUESTIONS"


class DocumentHistory(MongoModel):
    """Record of one successful processing run. Created once, never mutated."""

    user_id: int
    processing_type: ProcessingType
    user_prompt: str | None = None
    input_file_path: str  # Storage key, resolved to a URL only when presented
    output_file_path: str
    created_at: datetime = Field(default_factory=now)


class HistoryQuery(BaseModel):
    """Parameters of a paginated, newest-first history read."""

    user_id: int
    processing_type: ProcessingType | None = None
    page: int = Field(default=0, ge=0)
    size: int = Field(default=20, ge=1)


class CachedHistory(BaseModel):
    """Cache entry: the user's newest items plus their total row count."""

    total: int
    items: list[DocumentHistory]
