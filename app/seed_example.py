from sqlalchemy import select

from app.db import SessionLocal, engine
from app.models import Base, Organization, Staff, StaffRole, StaffVenue, Table, Terminal, Venue, VenueType
from app.security.passwords import hash_pin


def seed() -> None:
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        organization = db.execute(select(Organization).where(Organization.name == 'Demo Group')).scalar_one_or_none()
        if not organization:
            organization = Organization(name='Demo Group')
            db.add(organization)
            db.flush()

        venue = db.execute(select(Venue).where(Venue.slug == 'downtown')).scalar_one_or_none()
        if not venue:
            venue = Venue(
                organization_id=organization.id,
                name='Downtown',
                slug='downtown',
                type=VenueType.RESTAURANT,
                city='Mexico City',
                active=True,
            )
            db.add(venue)
            db.flush()

        manager = db.execute(
            select(Staff).where(Staff.organization_id == organization.id, Staff.email == 'manager@example.com')
        ).scalar_one_or_none()
        if not manager:
            manager = Staff(organization_id=organization.id, first_name='Demo', last_name='Manager', email='manager@example.com')
            db.add(manager)
            db.flush()

        assignment = db.execute(
            select(StaffVenue).where(StaffVenue.staff_id == manager.id, StaffVenue.venue_id == venue.id)
        ).scalar_one_or_none()
        if not assignment:
            db.add(StaffVenue(staff_id=manager.id, venue_id=venue.id, role=StaffRole.MANAGER, pin_hash=hash_pin('1234')))

        existing_tables = set(db.execute(select(Table.number).where(Table.venue_id == venue.id)).scalars().all())
        for number in ('1', '2', '3', '4'):
            if number not in existing_tables:
                db.add(Table(venue_id=venue.id, number=number, capacity=4))

        terminal = db.execute(select(Terminal).where(Terminal.serial_number == 'DEMO-TPV-0001')).scalar_one_or_none()
        if not terminal:
            db.add(Terminal(venue_id=venue.id, serial_number='DEMO-TPV-0001', name='Main counter'))

        db.commit()


if __name__ == '__main__':
    seed()
    print('Seed data inserted/verified.')
