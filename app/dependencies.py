from dataclasses import dataclass

from fastapi import Query

from app.config import settings


@dataclass(frozen=True)
class PageParams:
    page_size: int
    page_number: int


def get_page_params(
    page_size: int = Query(default=settings.default_page_size, alias='pageSize', gt=0),
    page_number: int = Query(default=1, alias='pageNumber', gt=0),
) -> PageParams:
    return PageParams(page_size=page_size, page_number=page_number)
