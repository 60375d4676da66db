import math
from dataclasses import dataclass, field
from typing import Generic, List, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from cricbook.config import settings

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of results plus the numbers a client needs to navigate"""
    items: List[T]
    page: int
    limit: int
    total: int
    extra: dict = field(default_factory=dict)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return (self.page - 1) * self.limit + len(self.items) < self.total

    @property
    def has_prev(self) -> bool:
        return self.page > 1


def clamp_page(page: int, limit: int) -> tuple:
    page = max(page or 1, 1)
    limit = min(max(limit or settings.PAGE_SIZE_DEFAULT, 1), settings.PAGE_SIZE_MAX)
    return page, limit


def paginate(session: Session, stmt: Select, page: int = 1, limit: int = 20) -> Page:
    """Run `stmt` for one page and count the full result set"""
    page, limit = clamp_page(page, limit)
    total = session.scalar(select(func.count()).select_from(stmt.order_by(None).subquery()))
    items = list(session.scalars(stmt.offset((page - 1) * limit).limit(limit)).unique())
    return Page(items=items, page=page, limit=limit, total=total or 0)
