from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from app.errors import BadRequestError
from app.models import Order, Payment, Shift, ShiftStatus, TransactionStatus
from app.services.pagination import Page, paginate
from app.services.venue_service import get_venue


@dataclass(frozen=True)
class ShiftFilters:
    waiter_id: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None


def _apply_filters(stmt: Select, filters: ShiftFilters) -> Select:
    if filters.start_time and filters.end_time and filters.start_time > filters.end_time:
        raise BadRequestError('startTime must be before endTime')
    if filters.waiter_id:
        stmt = stmt.where(Shift.staff_id == filters.waiter_id)
    if filters.start_time:
        stmt = stmt.where(Shift.start_time >= filters.start_time)
    if filters.end_time:
        stmt = stmt.where(Shift.start_time <= filters.end_time)
    return stmt


def get_current_shift(db: Session, *, venue_id: str, pos_name: str | None = None) -> Shift | None:
    get_venue(db, venue_id)
    stmt = select(Shift).where(Shift.venue_id == venue_id, Shift.status == ShiftStatus.OPEN)
    if pos_name:
        stmt = stmt.where(Shift.pos_name == pos_name)
    return db.execute(stmt.order_by(Shift.start_time.desc()).limit(1)).scalar_one_or_none()


def list_shifts(
    db: Session,
    *,
    venue_id: str,
    page_size: int,
    page_number: int,
    filters: ShiftFilters,
) -> Page:
    get_venue(db, venue_id)
    stmt = _apply_filters(select(Shift).where(Shift.venue_id == venue_id), filters)
    stmt = stmt.order_by(Shift.start_time.desc(), Shift.id.asc())
    return paginate(db, stmt, page_size=page_size, page_number=page_number)


def shifts_summary(db: Session, *, venue_id: str, filters: ShiftFilters) -> dict:
    get_venue(db, venue_id)
    shift_ids = _apply_filters(select(Shift.id).where(Shift.venue_id == venue_id), filters).scalar_subquery()

    total_shifts = db.execute(
        _apply_filters(select(func.count(Shift.id)).where(Shift.venue_id == venue_id), filters)
    ).scalar_one()
    total_orders = db.execute(
        select(func.count(Order.id)).where(Order.venue_id == venue_id, Order.shift_id.in_(shift_ids))
    ).scalar_one()
    total_sales, total_tips = db.execute(
        select(func.coalesce(func.sum(Payment.amount), 0), func.coalesce(func.sum(Payment.tip_amount), 0)).where(
            Payment.venue_id == venue_id,
            Payment.shift_id.in_(shift_ids),
            Payment.status == TransactionStatus.COMPLETED,
        )
    ).one()

    return {
        'totalShifts': total_shifts,
        'totalOrders': total_orders,
        'totalSales': Decimal(str(total_sales)),
        'totalTips': Decimal(str(total_tips)),
    }
