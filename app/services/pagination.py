from __future__ import annotations

import math
from dataclasses import dataclass

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session


@dataclass(frozen=True)
class Page:
    items: list
    total_count: int
    page_number: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0

    def meta(self) -> dict:
        return {
            'totalCount': self.total_count,
            'currentPage': self.page_number,
            'totalPages': self.total_pages,
        }


def paginate(db: Session, stmt: Select, *, page_size: int, page_number: int) -> Page:
    total_count = db.execute(select(func.count()).select_from(stmt.order_by(None).subquery())).scalar_one()
    items = db.execute(stmt.limit(page_size).offset((page_number - 1) * page_size)).scalars().all()
    return Page(items=list(items), total_count=total_count, page_number=page_number, page_size=page_size)
