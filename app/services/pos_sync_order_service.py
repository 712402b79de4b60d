"""Reconciles order events pushed by the POS into canonical Order rows.

An event resolves its staff, table and shift identities and then upserts the
order keyed by (venue_id, external_id). Both steps share one transaction, so a
failed upsert never leaves freshly created identity rows behind. When the
transaction fails, the keyed order row (if it already exists) is flagged
``FAILED`` in a separate transaction and the original error is re-raised for
the ingestion caller to retry.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.db import upsert_insert
from app.models import (
    KitchenStatus,
    Order,
    OrderSource,
    OrderType,
    OriginSystem,
    SyncStatus,
    new_id,
)
from app.schemas import PosOrderData, PosOrderPayload
from app.services.pos_sync_shift_service import resolve_or_create_shift
from app.services.pos_sync_staff_service import resolve_or_create_staff
from app.services.pos_sync_table_service import resolve_or_create_table
from app.services.venue_service import get_venue

logger = logging.getLogger(__name__)

UPSERT_KEY = ('venue_id', 'external_id')


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _money(value: Decimal | None) -> Decimal:
    return value if value is not None else Decimal('0')


def _upsert_order(
    db: Session,
    *,
    venue_id: str,
    order_data: PosOrderData,
    staff_id: str | None,
    table_id: str | None,
    shift_id: str | None,
) -> str:
    now = _now()
    synced_fields = {
        'source': OrderSource.POS,
        'status': order_data.status,
        'payment_status': order_data.payment_status,
        'subtotal': _money(order_data.subtotal),
        'tax_amount': _money(order_data.tax_amount),
        'discount_amount': _money(order_data.discount_amount),
        'tip_amount': _money(order_data.tip_amount),
        'total': _money(order_data.total),
        'completed_at': order_data.completed_at,
        'pos_raw_data': order_data.pos_raw_data,
        'synced_at': now,
        'updated_at': now,
        'sync_status': SyncStatus.SYNCED,
    }
    insert_stmt = upsert_insert(db, Order).values(
        id=new_id(),
        venue_id=venue_id,
        external_id=order_data.external_id,
        order_number=order_data.order_number,
        origin_system=OriginSystem.POS_SOFTRESTAURANT,
        type=OrderType.DINE_IN,
        kitchen_status=KitchenStatus.PENDING,
        served_by_id=staff_id,
        created_by_id=staff_id,
        table_id=table_id,
        shift_id=shift_id,
        created_at=order_data.created_at,
        **synced_fields,
    )
    stmt = insert_stmt.on_conflict_do_update(
        index_elements=list(UPSERT_KEY),
        set_={column: insert_stmt.excluded[column] for column in synced_fields},
    ).returning(Order.id)
    return db.execute(stmt).scalar_one()


def _mark_sync_failed(db: Session, *, venue_id: str, external_id: str) -> int:
    result = db.execute(
        update(Order)
        .where(Order.venue_id == venue_id, Order.external_id == external_id)
        .values(sync_status=SyncStatus.FAILED)
    )
    return result.rowcount


def _record_sync_failure(db: Session, *, venue_id: str, external_id: str) -> None:
    try:
        flagged = _mark_sync_failed(db, venue_id=venue_id, external_id=external_id)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception('Could not flag POS order %s at venue %s as FAILED', external_id, venue_id)
        return
    if not flagged:
        logger.warning('POS order %s at venue %s failed before it was ever stored', external_id, venue_id)


def process_order_event(db: Session, payload: PosOrderPayload) -> Order:
    order_data = payload.order_data
    logger.info('Processing POS order %s for venue %s', order_data.external_id, payload.venue_id)

    venue = get_venue(db, payload.venue_id)
    venue_id = venue.id

    try:
        staff_id = resolve_or_create_staff(db, payload.staff_data, venue_id, venue.organization_id)
        table_id = resolve_or_create_table(db, payload.table_data, venue_id)
        shift_id = resolve_or_create_shift(db, payload.shift_data, venue_id, staff_id)
        order_id = _upsert_order(
            db,
            venue_id=venue_id,
            order_data=order_data,
            staff_id=staff_id,
            table_id=table_id,
            shift_id=shift_id,
        )
        db.commit()
    except Exception:
        db.rollback()
        logger.exception('Failed to sync POS order %s for venue %s', order_data.external_id, venue_id)
        _record_sync_failure(db, venue_id=venue_id, external_id=order_data.external_id)
        raise

    order = db.execute(
        select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
    ).scalar_one()
    logger.info('Order %s (external %s) synced for venue %s', order.id, order.external_id, venue_id)
    return order
