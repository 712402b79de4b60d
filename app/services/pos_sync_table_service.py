from __future__ import annotations

from sqlalchemy.orm import Session

from app.models import Table
from app.schemas import PosTableData
from app.services.pos_identity_service import find_or_create, lookup_id


def resolve_or_create_table(db: Session, table_data: PosTableData | None, venue_id: str) -> str | None:
    if table_data is None:
        return None

    external_id = table_data.external_id.strip()
    number = (table_data.number or external_id).strip()
    values: dict = {'number': number}
    if table_data.capacity:
        values['capacity'] = table_data.capacity

    result = find_or_create(db, Table, keys={'venue_id': venue_id, 'external_id': external_id}, values=values)
    if result.id is not None:
        return result.id

    # The insert collided on (venue_id, number): the POS table maps onto an existing table.
    table_id = lookup_id(db, Table, {'venue_id': venue_id, 'number': number})
    if table_id is None:
        raise RuntimeError(f'POS table {external_id} conflicted but could not be found at venue {venue_id}')
    return table_id
