"""Offset pagination for list queries."""

import math
from dataclasses import dataclass
from typing import Generic, List, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of results plus the totals needed to render pagination."""
    items: List[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total / self.page_size)


def paginate(db: Session, stmt: Select, page: int = 1, page_size: int = 50) -> Page:
    """
    Run ``stmt`` for a single page.

    The count is taken over the filtered statement without ordering or
    eager-load options; items keep the statement's ORDER BY.
    """
    page = max(page, 1)
    page_size = max(page_size, 1)

    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = db.execute(count_stmt).scalar_one()

    items = (
        db.execute(stmt.offset((page - 1) * page_size).limit(page_size))
        .unique()
        .scalars()
        .all()
    )

    return Page(items=list(items), total=total, page=page, page_size=page_size)
