from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import BadRequestError, NotFoundError
from app.models import PosCommand, PosCommandStatus, PosCommandType
from app.services.audit_service import log_audit
from app.services.venue_service import get_venue

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = {PosCommandStatus.COMPLETED, PosCommandStatus.FAILED}


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def enqueue(
    db: Session,
    *,
    venue_id: str,
    entity_type: str,
    entity_id: str,
    command_type: PosCommandType,
    payload: dict | None = None,
) -> PosCommand:
    get_venue(db, venue_id)

    now = _now()
    command = PosCommand(
        venue_id=venue_id,
        entity_type=entity_type,
        entity_id=entity_id,
        command_type=command_type,
        payload=payload or {},
        status=PosCommandStatus.PENDING,
        attempts=0,
        created_at=now,
        updated_at=now,
    )
    db.add(command)
    db.flush()
    logger.info('Queued %s command %s for %s %s at venue %s', command_type.value, command.id, entity_type, entity_id, venue_id)
    return command


def get_command(db: Session, command_id: str) -> PosCommand:
    command = db.execute(
        select(PosCommand).where(PosCommand.id == command_id).with_for_update()
    ).scalar_one_or_none()
    if not command:
        raise NotFoundError(f'POS command {command_id} not found')
    return command


def list_commands(db: Session, *, venue_id: str, status: PosCommandStatus | None = None) -> list[PosCommand]:
    stmt = select(PosCommand).where(PosCommand.venue_id == venue_id)
    if status is not None:
        stmt = stmt.where(PosCommand.status == status)
    return db.execute(stmt.order_by(PosCommand.created_at.asc(), PosCommand.id.asc())).scalars().all()


def claim_pending(db: Session, *, venue_id: str, limit: int = 10) -> list[PosCommand]:
    """Hand the oldest pending commands of a venue to the POS bridge for delivery."""
    commands = db.execute(
        select(PosCommand)
        .where(PosCommand.venue_id == venue_id, PosCommand.status == PosCommandStatus.PENDING)
        .order_by(PosCommand.created_at.asc(), PosCommand.id.asc())
        .limit(limit)
        .with_for_update(skip_locked=True)
    ).scalars().all()
    now = _now()
    for command in commands:
        command.status = PosCommandStatus.PROCESSING
        command.last_attempt_at = now
        command.updated_at = now
    db.flush()
    return commands


def mark_attempt(
    db: Session,
    command_id: str,
    *,
    success: bool,
    error_message: str | None = None,
    retryable: bool = False,
) -> PosCommand:
    command = get_command(db, command_id)
    if command.status in TERMINAL_STATUSES:
        raise BadRequestError(f'POS command {command_id} is already {command.status.value}')
    if command.status != PosCommandStatus.PROCESSING:
        raise BadRequestError(f'POS command {command_id} has not been claimed')

    now = _now()
    command.attempts += 1
    command.last_attempt_at = now
    command.updated_at = now

    if success:
        command.status = PosCommandStatus.COMPLETED
        command.completed_at = now
        command.error_message = None
    elif retryable and command.attempts < settings.pos_command_max_attempts:
        command.status = PosCommandStatus.PENDING
        command.error_message = error_message
    else:
        command.status = PosCommandStatus.FAILED
        command.error_message = error_message or 'Delivery failed'
        logger.warning('POS command %s failed after %s attempts: %s', command.id, command.attempts, command.error_message)
        log_audit(
            db,
            action='POS_COMMAND_FAILED',
            venue_id=command.venue_id,
            metadata={
                'command_id': command.id,
                'entity_type': command.entity_type,
                'entity_id': command.entity_id,
                'attempts': command.attempts,
                'error_message': command.error_message,
            },
        )
    db.flush()
    return command
