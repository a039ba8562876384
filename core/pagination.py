"""
core/pagination.py -- Page request parsing and page envelopes.

PageRequest is a pydantic model so FastAPI can bind it straight from query
parameters (Depends()) and reject out-of-range values before a handler runs.
Page is the generic envelope every list endpoint returns.
"""

from __future__ import annotations

import math
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 10
MAX_PER_PAGE = 100


class PageRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int = Field(default=DEFAULT_PAGE, ge=1)
    per_page: int = Field(default=DEFAULT_PER_PAGE, ge=1, le=MAX_PER_PAGE)
    sort: Optional[str] = None
    filter: Optional[str] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


class Page(BaseModel, Generic[T]):
    """One page of results plus the metadata a client needs to navigate."""

    items: list[T]
    total: int
    page: int
    per_page: int
    total_pages: int

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


def create_page(items: list[T], total: int, page_request: PageRequest) -> Page[T]:
    """Wrap a slice of items with metadata. total_pages is 0 when total is 0."""
    total_pages = math.ceil(total / page_request.per_page) if total > 0 else 0
    return Page(
        items=items,
        total=total,
        page=page_request.page,
        per_page=page_request.per_page,
        total_pages=total_pages,
    )
