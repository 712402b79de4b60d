from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth import require_sync_key
from app.config import settings
from app.db import get_db
from app.models import PosCommandStatus
from app.schemas import (
    ClaimCommandsPayload,
    CommandAttemptPayload,
    EnqueueCommandPayload,
    HeartbeatPayload,
    PosOrderPayload,
)
from app.serializers import serialize_command, serialize_connection, serialize_order
from app.services import pos_command_service
from app.services.pos_connection_service import (
    acknowledge_reconciliation,
    get_connection_status,
    record_heartbeat,
)
from app.services.pos_sync_order_service import process_order_event

router = APIRouter(prefix='/pos-sync', tags=['pos-sync'], dependencies=[Depends(require_sync_key)])


@router.post('/orders')
def sync_order(payload: PosOrderPayload, db: Session = Depends(get_db)):
    order = process_order_event(db, payload)
    return {'success': True, 'data': serialize_order(order)}


@router.post('/heartbeat')
def heartbeat(payload: HeartbeatPayload, db: Session = Depends(get_db)):
    result = record_heartbeat(
        db,
        venue_id=payload.venue_id,
        instance_id=payload.instance_id,
        producer_version=payload.producer_version,
    )
    data = serialize_connection(result.connection)
    db.commit()
    return {'success': True, 'data': {**data, 'instanceChanged': result.instance_changed}}


@router.get('/venues/{venue_id}/connection')
def connection_status(venue_id: str, db: Session = Depends(get_db)):
    connection = get_connection_status(db, venue_id)
    return {'success': True, 'data': serialize_connection(connection)}


@router.post('/venues/{venue_id}/connection/acknowledge')
def acknowledge_connection(venue_id: str, db: Session = Depends(get_db)):
    connection = acknowledge_reconciliation(
        db,
        venue_id,
        threshold_seconds=settings.pos_heartbeat_stale_seconds,
    )
    data = serialize_connection(connection)
    db.commit()
    return {'success': True, 'data': data}


@router.post('/commands')
def enqueue_command(payload: EnqueueCommandPayload, db: Session = Depends(get_db)):
    command = pos_command_service.enqueue(
        db,
        venue_id=payload.venue_id,
        entity_type=payload.entity_type,
        entity_id=payload.entity_id,
        command_type=payload.command_type,
        payload=payload.payload,
    )
    data = serialize_command(command)
    db.commit()
    return {'success': True, 'data': data}


@router.get('/venues/{venue_id}/commands')
def list_commands(venue_id: str, status: PosCommandStatus | None = None, db: Session = Depends(get_db)):
    commands = pos_command_service.list_commands(db, venue_id=venue_id, status=status)
    return {'success': True, 'data': [serialize_command(command) for command in commands]}


@router.post('/venues/{venue_id}/commands/claim')
def claim_commands(venue_id: str, payload: ClaimCommandsPayload, db: Session = Depends(get_db)):
    commands = pos_command_service.claim_pending(db, venue_id=venue_id, limit=payload.limit)
    data = [serialize_command(command) for command in commands]
    db.commit()
    return {'success': True, 'data': data}


@router.post('/commands/{command_id}/attempts')
def record_command_attempt(command_id: str, payload: CommandAttemptPayload, db: Session = Depends(get_db)):
    command = pos_command_service.mark_attempt(
        db,
        command_id,
        success=payload.success,
        error_message=payload.error_message,
        retryable=payload.retryable,
    )
    data = serialize_command(command)
    db.commit()
    return {'success': True, 'data': data}
