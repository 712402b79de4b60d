from __future__ import annotations

from sqlalchemy.orm import Session

from app.models import AuditLog


def log_audit(
    db: Session,
    *,
    action: str,
    venue_id: str | None,
    metadata: dict | None = None,
) -> None:
    db.add(
        AuditLog(
            venue_id=venue_id,
            action=action,
            meta=metadata or {},
        )
    )
