from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.errors import NotFoundError
from app.models import Staff, StaffVenue, Terminal, Venue


def get_venue(db: Session, venue_id: str) -> Venue:
    venue = db.execute(select(Venue).where(Venue.id == venue_id)).scalar_one_or_none()
    if not venue:
        raise NotFoundError(f'Venue {venue_id} not found')
    return venue


def list_venue_staff(db: Session, venue_id: str) -> list[tuple[StaffVenue, Staff]]:
    return db.execute(
        select(StaffVenue, Staff)
        .join(Staff, Staff.id == StaffVenue.staff_id)
        .where(
            StaffVenue.venue_id == venue_id,
            StaffVenue.active.is_(True),
            Staff.active.is_(True),
        )
        .order_by(Staff.first_name.asc(), Staff.last_name.asc())
    ).all()


def get_venue_id_by_serial(db: Session, serial_number: str) -> str:
    """Resolve the venue a TPV terminal is installed at from its serial number."""
    terminal = db.execute(select(Terminal).where(Terminal.serial_number == serial_number)).scalar_one_or_none()
    if not terminal:
        raise NotFoundError('Terminal not found')
    if not terminal.venue_id:
        raise NotFoundError('VenueId not found')
    return terminal.venue_id
