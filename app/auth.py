import secrets

from fastapi import Header, HTTPException, status

from app.config import settings


def require_sync_key(x_pos_sync_key: str | None = Header(default=None)) -> None:
    """Guard for endpoints called by the POS bridge. Open when no key is configured."""
    expected = settings.pos_sync_api_key
    if not expected:
        return
    if not x_pos_sync_key or not secrets.compare_digest(x_pos_sync_key, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid POS sync key')
