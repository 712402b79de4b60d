from __future__ import annotations

import argparse
import logging

from app.config import settings
from app.db import SessionLocal
from app.services.pos_connection_service import evaluate_all_venues

logger = logging.getLogger(__name__)


def check_connections(*, threshold_seconds: int) -> list[str]:
    with SessionLocal() as db:
        offline = evaluate_all_venues(db, threshold_seconds)
        db.commit()
    for venue_id in offline:
        logger.warning('POS connection for venue %s is OFFLINE', venue_id)
    return offline


def main() -> None:
    parser = argparse.ArgumentParser(description='Mark POS connections OFFLINE when heartbeats stop.')
    parser.add_argument(
        '--threshold-seconds',
        type=int,
        default=settings.pos_heartbeat_stale_seconds,
        help='Seconds without a heartbeat before an ONLINE venue is considered OFFLINE.',
    )
    args = parser.parse_args()
    logging.basicConfig(level=settings.log_level.upper())

    offline = check_connections(threshold_seconds=args.threshold_seconds)
    print(f'POS connection check complete: offline={len(offline)}')


if __name__ == '__main__':
    main()
