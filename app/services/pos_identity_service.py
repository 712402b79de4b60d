"""Find-or-create primitives shared by the POS identity resolvers.

Rows synced from the POS are matched on a composite key scoped to a venue.
Races between two events creating the same external entity are settled by the
storage layer's unique constraints: the insert uses ``ON CONFLICT DO NOTHING``
and the loser falls back to a lookup instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db import upsert_insert
from app.models import new_id


class ResolveOutcome(str, Enum):
    CREATED = 'CREATED'
    FOUND = 'FOUND'
    CONFLICT = 'CONFLICT'


@dataclass(frozen=True)
class ResolveResult:
    outcome: ResolveOutcome
    # None only when a CONFLICT was raised by a different unique key than ``keys``.
    id: str | None

    @property
    def created(self) -> bool:
        return self.outcome is ResolveOutcome.CREATED


def lookup_id(db: Session, model, keys: dict) -> str | None:
    stmt = select(model.id).where(*[getattr(model, column) == value for column, value in keys.items()])
    return db.execute(stmt).scalar_one_or_none()


def insert_or_conflict(db: Session, model, *, keys: dict, values: dict | None = None) -> ResolveResult:
    stmt = (
        upsert_insert(db, model)
        .values(id=new_id(), **keys, **(values or {}))
        .on_conflict_do_nothing()
        .returning(model.id)
    )
    created_id = db.execute(stmt).scalar_one_or_none()
    if created_id is not None:
        return ResolveResult(ResolveOutcome.CREATED, created_id)
    return ResolveResult(ResolveOutcome.CONFLICT, lookup_id(db, model, keys))


def find_or_create(db: Session, model, *, keys: dict, values: dict | None = None) -> ResolveResult:
    existing_id = lookup_id(db, model, keys)
    if existing_id is not None:
        return ResolveResult(ResolveOutcome.FOUND, existing_id)
    return insert_or_conflict(db, model, keys=keys, values=values)
