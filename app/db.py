from __future__ import annotations

from collections.abc import Iterator

from sqlalchemy import create_engine
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, sessionmaker

from app.config import settings

engine = create_engine(settings.database_url_normalized, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def upsert_insert(db: Session, model):
    """Dialect-specific INSERT that supports ON CONFLICT clauses."""
    dialect = db.get_bind().dialect.name
    if dialect == 'postgresql':
        return postgresql.insert(model)
    if dialect == 'sqlite':
        return sqlite.insert(model)
    raise NotImplementedError(f'ON CONFLICT inserts are not supported for dialect {dialect}')
