"""POS connection liveness per venue.

States are ONLINE, OFFLINE and NEEDS_RECONCILIATION. Heartbeats carry the id
of the POS database instance; a different id than the one on record means the
POS data source was swapped (backup restore, migration) and the venue is held
in NEEDS_RECONCILIATION until an operator acknowledges it. Neither fresh
heartbeats nor staleness sweeps leave that state on their own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.errors import BadRequestError, NotFoundError
from app.models import ConnectionStatus, PosConnectionStatus
from app.services.audit_service import log_audit
from app.services.pos_identity_service import insert_or_conflict
from app.services.venue_service import get_venue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionTransition:
    status: ConnectionStatus
    instance_changed: bool


@dataclass
class HeartbeatResult:
    connection: PosConnectionStatus
    instance_changed: bool


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def next_connection_status(
    current: ConnectionStatus | None,
    stored_instance_id: str | None,
    incoming_instance_id: str,
) -> ConnectionTransition:
    if current is None:
        return ConnectionTransition(ConnectionStatus.ONLINE, False)
    if stored_instance_id is not None and stored_instance_id != incoming_instance_id:
        return ConnectionTransition(ConnectionStatus.NEEDS_RECONCILIATION, True)
    if current == ConnectionStatus.NEEDS_RECONCILIATION:
        return ConnectionTransition(ConnectionStatus.NEEDS_RECONCILIATION, False)
    return ConnectionTransition(ConnectionStatus.ONLINE, False)


def is_stale(connection: PosConnectionStatus, *, threshold_seconds: int, now: datetime) -> bool:
    last_heartbeat = _as_utc(connection.last_heartbeat_at)
    if last_heartbeat is None:
        return True
    return (now - last_heartbeat).total_seconds() > threshold_seconds


def _locked_connection(db: Session, venue_id: str) -> PosConnectionStatus | None:
    return db.execute(
        select(PosConnectionStatus)
        .where(PosConnectionStatus.venue_id == venue_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def get_connection_status(db: Session, venue_id: str) -> PosConnectionStatus:
    connection = db.execute(
        select(PosConnectionStatus).where(PosConnectionStatus.venue_id == venue_id)
    ).scalar_one_or_none()
    if not connection:
        raise NotFoundError(f'No POS connection recorded for venue {venue_id}')
    return connection


def record_heartbeat(
    db: Session,
    *,
    venue_id: str,
    instance_id: str,
    producer_version: str | None = None,
    now: datetime | None = None,
) -> HeartbeatResult:
    now = now or _now()
    get_venue(db, venue_id)

    connection = _locked_connection(db, venue_id)
    if connection is None:
        result = insert_or_conflict(
            db,
            PosConnectionStatus,
            keys={'venue_id': venue_id},
            values={
                'status': ConnectionStatus.ONLINE,
                'instance_id': instance_id,
                'producer_version': producer_version,
                'last_heartbeat_at': now,
                'updated_at': now,
            },
        )
        connection = _locked_connection(db, venue_id)
        if result.created:
            logger.info('POS connection for venue %s registered (instance %s)', venue_id, instance_id)
            return HeartbeatResult(connection=connection, instance_changed=False)

    transition = next_connection_status(connection.status, connection.instance_id, instance_id)
    if transition.instance_changed:
        logger.warning(
            'POS instance for venue %s changed from %s to %s; reconciliation required',
            venue_id,
            connection.instance_id,
            instance_id,
        )
        log_audit(
            db,
            action='POS_INSTANCE_CHANGED',
            venue_id=venue_id,
            metadata={
                'previous_instance_id': connection.instance_id,
                'instance_id': instance_id,
                'producer_version': producer_version,
            },
        )

    connection.status = transition.status
    connection.instance_id = instance_id
    connection.producer_version = producer_version
    connection.last_heartbeat_at = now
    connection.updated_at = now
    db.flush()
    logger.info('Heartbeat from venue %s: %s', venue_id, transition.status.value)
    return HeartbeatResult(connection=connection, instance_changed=transition.instance_changed)


def evaluate_staleness(
    db: Session,
    venue_id: str,
    threshold_seconds: int,
    now: datetime | None = None,
) -> ConnectionStatus | None:
    now = now or _now()
    connection = _locked_connection(db, venue_id)
    if connection is None:
        return None
    if connection.status == ConnectionStatus.ONLINE and is_stale(
        connection, threshold_seconds=threshold_seconds, now=now
    ):
        logger.info('POS connection for venue %s went OFFLINE (last heartbeat %s)', venue_id, connection.last_heartbeat_at)
        connection.status = ConnectionStatus.OFFLINE
        connection.updated_at = now
        db.flush()
    return connection.status


def evaluate_all_venues(db: Session, threshold_seconds: int, now: datetime | None = None) -> list[str]:
    now = now or _now()
    online_venue_ids = db.execute(
        select(PosConnectionStatus.venue_id).where(PosConnectionStatus.status == ConnectionStatus.ONLINE)
    ).scalars().all()

    offline: list[str] = []
    for venue_id in online_venue_ids:
        status = evaluate_staleness(db, venue_id, threshold_seconds, now=now)
        if status == ConnectionStatus.OFFLINE:
            offline.append(venue_id)
    return offline


def acknowledge_reconciliation(
    db: Session,
    venue_id: str,
    *,
    threshold_seconds: int,
    now: datetime | None = None,
) -> PosConnectionStatus:
    now = now or _now()
    connection = _locked_connection(db, venue_id)
    if connection is None:
        raise NotFoundError(f'No POS connection recorded for venue {venue_id}')
    if connection.status != ConnectionStatus.NEEDS_RECONCILIATION:
        raise BadRequestError(f'POS connection for venue {venue_id} does not need reconciliation')

    stale = is_stale(connection, threshold_seconds=threshold_seconds, now=now)
    connection.status = ConnectionStatus.OFFLINE if stale else ConnectionStatus.ONLINE
    connection.updated_at = now
    log_audit(
        db,
        action='POS_RECONCILIATION_ACKNOWLEDGED',
        venue_id=venue_id,
        metadata={'instance_id': connection.instance_id, 'status': connection.status.value},
    )
    db.flush()
    return connection
