from __future__ import annotations

import logging

from sqlalchemy import delete, insert, select
from sqlalchemy.orm import Session

from app.models import Staff, StaffRole, StaffVenue, new_id
from app.schemas import PosStaffData
from app.security.passwords import hash_pin
from app.services.pos_identity_service import insert_or_conflict

logger = logging.getLogger(__name__)


def _split_name(name: str | None, pos_staff_id: str) -> tuple[str, str]:
    parts = (name or '').split()
    if not parts:
        return f'POS {pos_staff_id}', ''
    return parts[0], ' '.join(parts[1:])


def _staff_id_for_pos_staff(db: Session, *, venue_id: str, pos_staff_id: str) -> str | None:
    return db.execute(
        select(StaffVenue.staff_id).where(
            StaffVenue.venue_id == venue_id,
            StaffVenue.pos_staff_id == pos_staff_id,
        )
    ).scalar_one_or_none()


def resolve_or_create_staff(
    db: Session,
    staff_data: PosStaffData | None,
    venue_id: str,
    organization_id: str,
) -> str | None:
    if staff_data is None:
        return None

    pos_staff_id = staff_data.pos_staff_id.strip()
    existing = _staff_id_for_pos_staff(db, venue_id=venue_id, pos_staff_id=pos_staff_id)
    if existing:
        return existing

    first_name, last_name = _split_name(staff_data.name, pos_staff_id)
    staff_id = new_id()
    db.execute(
        insert(Staff).values(
            id=staff_id,
            organization_id=organization_id,
            first_name=first_name,
            last_name=last_name,
            active=True,
        )
    )

    result = insert_or_conflict(
        db,
        StaffVenue,
        keys={'venue_id': venue_id, 'pos_staff_id': pos_staff_id},
        values={
            'staff_id': staff_id,
            'role': StaffRole.WAITER,
            'pin_hash': hash_pin(staff_data.pin) if staff_data.pin else None,
            'active': True,
        },
    )
    if result.created:
        logger.info('Created staff %s for POS staff %s at venue %s', staff_id, pos_staff_id, venue_id)
        return staff_id

    # Another event registered this POS staff first; drop our orphaned identity.
    db.execute(delete(Staff).where(Staff.id == staff_id))
    winner = _staff_id_for_pos_staff(db, venue_id=venue_id, pos_staff_id=pos_staff_id)
    if winner is None:
        raise RuntimeError(f'POS staff {pos_staff_id} conflicted but could not be found at venue {venue_id}')
    return winner
