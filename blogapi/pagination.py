import math
from dataclasses import dataclass
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query

from blogapi.config import settings
from blogapi.exceptions import ValidationFailedError
from blogapi.schemas import Page, SortInfo


@dataclass
class PageRequest:
    page: int = 0
    size: int = settings.DEFAULT_PAGE_SIZE
    sort: Optional[str] = None
    direction: str = "desc"

    def __post_init__(self):
        self.page = max(0, self.page)
        self.size = min(max(1, self.size), settings.MAX_PAGE_SIZE)
        self.direction = (self.direction or "desc").lower()
        if self.direction not in ("asc", "desc"):
            raise ValidationFailedError(
                f"Invalid sort direction: {self.direction}",
                details={"field": "direction", "allowed": ["asc", "desc"]},
            )

    @property
    def offset(self) -> int:
        return self.page * self.size


class PageResult(NamedTuple):
    items: List
    total: int
    request: PageRequest


def paginate(query: Query, page_request: PageRequest,
             sort_columns: Optional[Dict] = None, default_order: Sequence = ()) -> PageResult:
    """Apply ordering, offset and limit to ``query`` and count the full result."""
    total = query.order_by(None).count()
    if page_request.sort:
        column = (sort_columns or {}).get(page_request.sort)
        if column is None:
            raise ValidationFailedError(
                f"Cannot sort by '{page_request.sort}'",
                details={"field": "sort", "allowed": sorted(sort_columns or {})},
            )
        order = asc(column) if page_request.direction == "asc" else desc(column)
        query = query.order_by(None).order_by(order)
    elif default_order:
        query = query.order_by(*default_order)
    items = query.offset(page_request.offset).limit(page_request.size).all()
    return PageResult(items, total, page_request)


def empty_result(page_request: PageRequest) -> PageResult:
    return PageResult([], 0, page_request)


def to_page(result: PageResult, convert: Callable) -> Page:
    page_request = result.request
    total_pages = math.ceil(result.total / page_request.size) if result.total else 0
    sort = []
    if page_request.sort:
        sort.append(SortInfo(property=page_request.sort, direction=page_request.direction.upper()))
    return Page(
        content=[convert(item) for item in result.items],
        page=page_request.page,
        size=page_request.size,
        total_elements=result.total,
        total_pages=total_pages,
        first=page_request.page == 0,
        last=page_request.page >= total_pages - 1,
        empty=not result.items,
        sort=sort,
    )
