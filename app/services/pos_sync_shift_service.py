from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.models import Shift, ShiftStatus
from app.schemas import PosShiftData
from app.services.pos_identity_service import insert_or_conflict, lookup_id

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def resolve_or_create_shift(
    db: Session,
    shift_data: PosShiftData | None,
    venue_id: str,
    staff_id: str | None,
) -> str | None:
    if shift_data is None:
        return None

    keys = {'venue_id': venue_id, 'external_id': shift_data.external_id.strip()}
    existing = lookup_id(db, Shift, keys)
    if existing:
        return existing

    if staff_id is None:
        logger.warning(
            'Skipping POS shift %s at venue %s: no staff member to attach it to',
            shift_data.external_id,
            venue_id,
        )
        return None

    status = shift_data.status
    if status is None:
        status = ShiftStatus.CLOSED if shift_data.end_time else ShiftStatus.OPEN

    result = insert_or_conflict(
        db,
        Shift,
        keys=keys,
        values={
            'staff_id': staff_id,
            'pos_name': shift_data.pos_name,
            'start_time': shift_data.start_time or _now(),
            'end_time': shift_data.end_time,
            'status': status,
        },
    )
    return result.id
