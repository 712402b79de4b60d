from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.errors import NotFoundError
from app.models import Order, OrderStatus
from app.services.pagination import Page, paginate
from app.services.venue_service import get_venue


def list_orders(
    db: Session,
    *,
    venue_id: str,
    page_size: int,
    page_number: int,
    status: OrderStatus | None = None,
) -> Page:
    get_venue(db, venue_id)
    stmt = select(Order).where(Order.venue_id == venue_id)
    if status is not None:
        stmt = stmt.where(Order.status == status)
    stmt = stmt.order_by(Order.created_at.desc(), Order.id.asc())
    return paginate(db, stmt, page_size=page_size, page_number=page_number)


def get_order(db: Session, *, venue_id: str, order_id: str) -> Order:
    order = db.execute(
        select(Order).where(Order.id == order_id, Order.venue_id == venue_id)
    ).scalar_one_or_none()
    if not order:
        raise NotFoundError(f'Order {order_id} not found in venue {venue_id}')
    return order
