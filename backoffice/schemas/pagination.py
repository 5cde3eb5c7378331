from typing import Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated response schema."""

    items: list[T]
    total: int
    page: int
    page_size: int


class OffsetPaginatedResponse(BaseModel, Generic[T]):
    """Paginated response for limit/offset listings."""

    items: list[T]
    total: int
    limit: int
    offset: int
