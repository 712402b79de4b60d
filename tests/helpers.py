from __future__ import annotations

from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base, Organization, Venue


def make_session_factory() -> sessionmaker:
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def seed_venue(db: Session, *, venue_id: str = 'v1', organization_id: str = 'org1') -> Venue:
    if db.get(Organization, organization_id) is None:
        db.add(Organization(id=organization_id, name='Demo Group'))
    venue = Venue(id=venue_id, organization_id=organization_id, name=f'Venue {venue_id}', slug=venue_id)
    db.add(venue)
    db.commit()
    return venue


def count_rows(db: Session, model) -> int:
    return db.execute(select(func.count()).select_from(model)).scalar_one()
