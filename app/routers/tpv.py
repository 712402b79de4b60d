from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.dependencies import PageParams, get_page_params
from app.errors import UnauthorizedError
from app.models import OrderStatus
from app.schemas import StaffSignInPayload
from app.serializers import serialize_order, serialize_payment, serialize_shift, serialize_staff, serialize_venue
from app.services.order_service import get_order, list_orders
from app.services.payment_service import list_payments
from app.services.shift_service import ShiftFilters, get_current_shift, list_shifts, shifts_summary
from app.services.staff_auth_service import sign_in_with_pin
from app.services.venue_service import get_venue, get_venue_id_by_serial, list_venue_staff

router = APIRouter(prefix='/tpv', tags=['tpv'])


def get_shift_filters(
    waiter_id: str | None = Query(default=None, alias='waiterId'),
    start_time: datetime | None = Query(default=None, alias='startTime'),
    end_time: datetime | None = Query(default=None, alias='endTime'),
) -> ShiftFilters:
    return ShiftFilters(waiter_id=waiter_id, start_time=start_time, end_time=end_time)


@router.get('/venues/{venue_id}')
def venue_detail(venue_id: str, db: Session = Depends(get_db)):
    venue = get_venue(db, venue_id)
    return {'success': True, 'data': serialize_venue(venue, list_venue_staff(db, venue_id))}


@router.get('/serial-number/{serial_number}')
def venue_for_terminal(serial_number: str, db: Session = Depends(get_db)):
    return {'venueId': get_venue_id_by_serial(db, serial_number.strip())}


@router.get('/venues/{venue_id}/orders')
def venue_orders(
    venue_id: str,
    status: OrderStatus | None = None,
    page: PageParams = Depends(get_page_params),
    db: Session = Depends(get_db),
):
    result = list_orders(
        db,
        venue_id=venue_id,
        page_size=page.page_size,
        page_number=page.page_number,
        status=status,
    )
    return {'success': True, 'data': [serialize_order(order) for order in result.items], 'meta': result.meta()}


@router.get('/venues/{venue_id}/orders/{order_id}')
def venue_order(venue_id: str, order_id: str, db: Session = Depends(get_db)):
    order = get_order(db, venue_id=venue_id, order_id=order_id)
    return {'success': True, 'data': serialize_order(order)}


@router.get('/venues/{venue_id}/payments')
def venue_payments(
    venue_id: str,
    from_date: datetime | None = Query(default=None, alias='fromDate'),
    to_date: datetime | None = Query(default=None, alias='toDate'),
    page: PageParams = Depends(get_page_params),
    db: Session = Depends(get_db),
):
    result = list_payments(
        db,
        venue_id=venue_id,
        page_size=page.page_size,
        page_number=page.page_number,
        from_date=from_date,
        to_date=to_date,
    )
    return {'success': True, 'data': [serialize_payment(payment) for payment in result.items], 'meta': result.meta()}


@router.get('/venues/{venue_id}/shift')
def current_shift(
    venue_id: str,
    pos_name: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    shift = get_current_shift(db, venue_id=venue_id, pos_name=pos_name)
    if not shift:
        return {'shift': None}
    return serialize_shift(shift)


@router.get('/venues/{venue_id}/shifts')
def venue_shifts(
    venue_id: str,
    filters: ShiftFilters = Depends(get_shift_filters),
    page: PageParams = Depends(get_page_params),
    db: Session = Depends(get_db),
):
    result = list_shifts(
        db,
        venue_id=venue_id,
        page_size=page.page_size,
        page_number=page.page_number,
        filters=filters,
    )
    return {'success': True, 'data': [serialize_shift(shift) for shift in result.items], 'meta': result.meta()}


@router.get('/venues/{venue_id}/shifts-summary')
def venue_shifts_summary(
    venue_id: str,
    filters: ShiftFilters = Depends(get_shift_filters),
    db: Session = Depends(get_db),
):
    return {'success': True, 'data': shifts_summary(db, venue_id=venue_id, filters=filters)}


@router.post('/venues/{venue_id}/auth')
def staff_sign_in(venue_id: str, payload: StaffSignInPayload, db: Session = Depends(get_db)):
    match = sign_in_with_pin(db, venue_id=venue_id, pin=payload.pin)
    db.commit()
    if match is None:
        raise UnauthorizedError('Invalid PIN')
    assignment, staff = match
    return {'success': True, 'data': serialize_staff(assignment, staff)}
