import math
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PageResult(BaseModel, Generic[T]):
    """One page of a newest-first listing."""

    items: list[T] = Field(..., description="List of items in current page")
    total: int = Field(..., description="Total number of items across all pages", ge=0)
    page: int = Field(..., description="Zero-based page number", ge=0)
    size: int = Field(..., description="Maximum items per page", ge=1)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.size)

    @property
    def is_last(self) -> bool:
        """Whether no items exist beyond the current page."""
        return (self.page + 1) * self.size >= self.total
