from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.errors import BadRequestError
from app.models import Payment
from app.services.pagination import Page, paginate
from app.services.venue_service import get_venue


def list_payments(
    db: Session,
    *,
    venue_id: str,
    page_size: int,
    page_number: int,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
) -> Page:
    get_venue(db, venue_id)
    if from_date and to_date and from_date > to_date:
        raise BadRequestError('fromDate must be before toDate')

    stmt = select(Payment).where(Payment.venue_id == venue_id)
    if from_date:
        stmt = stmt.where(Payment.created_at >= from_date)
    if to_date:
        stmt = stmt.where(Payment.created_at <= to_date)
    stmt = stmt.order_by(Payment.created_at.desc(), Payment.id.asc())
    return paginate(db, stmt, page_size=page_size, page_number=page_number)
