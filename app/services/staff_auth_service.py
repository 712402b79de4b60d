from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.models import Staff, StaffVenue
from app.security.passwords import verify_pin
from app.services.audit_service import log_audit
from app.services.venue_service import get_venue, list_venue_staff

logger = logging.getLogger(__name__)


def sign_in_with_pin(db: Session, *, venue_id: str, pin: str) -> tuple[StaffVenue, Staff] | None:
    """Match a PIN against the active staff of a venue. Every attempt is audited."""
    get_venue(db, venue_id)
    for assignment, staff in list_venue_staff(db, venue_id):
        if assignment.pin_hash and verify_pin(pin, assignment.pin_hash):
            log_audit(
                db,
                action='STAFF_PIN_LOGIN',
                venue_id=venue_id,
                metadata={'staff_id': staff.id, 'role': assignment.role.value},
            )
            return assignment, staff

    logger.info('Rejected PIN sign-in at venue %s', venue_id)
    log_audit(db, action='STAFF_PIN_LOGIN_FAILED', venue_id=venue_id, metadata={})
    return None
