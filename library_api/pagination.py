"""Page/limit query parsing and the pagination block of list responses."""

import math
from dataclasses import dataclass

from fastapi import Query


DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass
class PageParams:
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def pagination_params(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(
        DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Items per page"
    ),
) -> PageParams:
    """Dependency that validates ``page`` and ``limit`` query parameters."""
    return PageParams(page=page, limit=limit)


def build_pagination(params: PageParams, total: int) -> dict:
    total_pages = math.ceil(total / params.limit) if total else 0
    return {
        "page": params.page,
        "limit": params.limit,
        "total": total,
        "total_pages": total_pages,
        "has_next": params.page < total_pages,
        "has_prev": params.page > 1,
    }
