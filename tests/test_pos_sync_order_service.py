from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from app.errors import NotFoundError
from app.models import (
    KitchenStatus,
    Order,
    OrderSource,
    OrderStatus,
    OrderType,
    Shift,
    Staff,
    StaffVenue,
    SyncStatus,
    Table,
)
from app.schemas import PosOrderPayload
from app.services.pos_sync_order_service import process_order_event
from helpers import count_rows, make_session_factory, seed_venue


def _payload(**order_overrides) -> PosOrderPayload:
    order_data = {
        'externalId': 'POS-100',
        'orderNumber': '100',
        'status': 'PENDING',
        'total': 150.0,
        'createdAt': '2024-01-01T10:00:00Z',
        'posRawData': {},
    }
    order_data.update(order_overrides)
    return PosOrderPayload.model_validate({'venueId': 'v1', 'orderData': order_data})


def _rich_payload() -> PosOrderPayload:
    return PosOrderPayload.model_validate(
        {
            'venueId': 'v1',
            'orderData': {
                'externalId': 'POS-200',
                'orderNumber': '200',
                'status': 'CONFIRMED',
                'paymentStatus': 'PENDING',
                'subtotal': 100,
                'taxAmount': 16,
                'total': 116,
                'createdAt': '2024-01-01T12:00:00Z',
                'posRawData': {'folio': 200},
            },
            'staffData': {'posStaffId': 'W-1', 'name': 'Luis Perez'},
            'tableData': {'externalId': 'T-4', 'number': '4'},
            'shiftData': {'externalId': 'S-9', 'startTime': '2024-01-01T08:00:00Z'},
        }
    )


class ProcessOrderEventTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        seed_venue(self.db)

    def tearDown(self) -> None:
        self.db.close()

    def test_creates_order_without_related_entities(self) -> None:
        order = process_order_event(self.db, _payload())

        self.assertEqual(order.external_id, 'POS-100')
        self.assertEqual(order.venue_id, 'v1')
        self.assertIsNone(order.table_id)
        self.assertIsNone(order.shift_id)
        self.assertIsNone(order.served_by_id)
        self.assertEqual(order.sync_status, SyncStatus.SYNCED)
        self.assertEqual(order.source, OrderSource.POS)
        self.assertEqual(order.type, OrderType.DINE_IN)
        self.assertEqual(order.kitchen_status, KitchenStatus.PENDING)
        self.assertEqual(order.total, Decimal('150'))
        self.assertIsNotNone(order.synced_at)
        self.assertEqual(order.created_at.replace(tzinfo=None), datetime(2024, 1, 1, 10, 0))

    def test_omitted_money_fields_default_to_zero(self) -> None:
        order = process_order_event(self.db, _payload())

        self.assertEqual(order.subtotal, Decimal('0'))
        self.assertEqual(order.tax_amount, Decimal('0'))
        self.assertEqual(order.discount_amount, Decimal('0'))
        self.assertEqual(order.tip_amount, Decimal('0'))

    def test_same_event_twice_keeps_one_row(self) -> None:
        first = process_order_event(self.db, _payload())
        second = process_order_event(self.db, _payload())

        self.assertEqual(first.id, second.id)
        self.assertEqual(count_rows(self.db, Order), 1)
        self.assertEqual(second.sync_status, SyncStatus.SYNCED)

    def test_update_overwrites_status_and_advances_updated_at(self) -> None:
        t0 = datetime(2024, 1, 1, 10, 5, tzinfo=timezone.utc)
        t1 = t0 + timedelta(minutes=30)
        with patch('app.services.pos_sync_order_service._now', side_effect=[t0, t1]):
            created = process_order_event(self.db, _payload())
            updated = process_order_event(self.db, _payload(status='COMPLETED', total=175.5, tipAmount=25.5))

        self.assertEqual(created.id, updated.id)
        self.assertEqual(updated.status, OrderStatus.COMPLETED)
        self.assertEqual(updated.total, Decimal('175.50'))
        self.assertEqual(updated.tip_amount, Decimal('25.50'))
        self.assertEqual(updated.sync_status, SyncStatus.SYNCED)
        self.assertEqual(updated.updated_at.replace(tzinfo=None), t1.replace(tzinfo=None))
        self.assertEqual(updated.created_at.replace(tzinfo=None), datetime(2024, 1, 1, 10, 0))

    def test_unknown_venue_raises_before_any_write(self) -> None:
        payload = PosOrderPayload.model_validate(
            {
                'venueId': 'missing',
                'orderData': {'externalId': 'POS-1', 'orderNumber': '1', 'createdAt': '2024-01-01T10:00:00Z'},
                'staffData': {'posStaffId': 'W-1', 'name': 'Luis'},
            }
        )

        with self.assertRaises(NotFoundError):
            process_order_event(self.db, payload)

        self.assertEqual(count_rows(self.db, Order), 0)
        self.assertEqual(count_rows(self.db, Staff), 0)

    def test_links_and_reuses_staff_table_and_shift(self) -> None:
        first = process_order_event(self.db, _rich_payload())
        second = process_order_event(self.db, _rich_payload())

        self.assertIsNotNone(first.served_by_id)
        self.assertEqual(first.created_by_id, first.served_by_id)
        self.assertEqual(first.table_id, second.table_id)
        self.assertEqual(first.shift_id, second.shift_id)
        self.assertEqual(self.db.get(Shift, first.shift_id).staff_id, first.served_by_id)
        self.assertEqual(self.db.get(Table, first.table_id).number, '4')
        self.assertEqual(first.pos_raw_data, {'folio': 200})
        self.assertEqual(count_rows(self.db, Staff), 1)
        self.assertEqual(count_rows(self.db, StaffVenue), 1)
        self.assertEqual(count_rows(self.db, Table), 1)
        self.assertEqual(count_rows(self.db, Shift), 1)

    def test_storage_failure_marks_existing_order_failed_and_reraises(self) -> None:
        order = process_order_event(self.db, _payload())
        error = OperationalError('INSERT INTO orders', {}, Exception('disk I/O error'))

        with patch('app.services.pos_sync_order_service._upsert_order', side_effect=error):
            with self.assertRaises(OperationalError):
                process_order_event(self.db, _payload(status='COMPLETED'))

        stored = self.db.get(Order, order.id, populate_existing=True)
        self.assertEqual(stored.sync_status, SyncStatus.FAILED)
        self.assertEqual(stored.status, OrderStatus.PENDING)

    def test_failed_sync_is_overwritten_by_later_success(self) -> None:
        process_order_event(self.db, _payload())
        with patch('app.services.pos_sync_order_service._upsert_order', side_effect=RuntimeError('boom')):
            with self.assertRaises(RuntimeError):
                process_order_event(self.db, _payload())

        order = process_order_event(self.db, _payload(status='COMPLETED'))

        self.assertEqual(order.sync_status, SyncStatus.SYNCED)
        self.assertEqual(order.status, OrderStatus.COMPLETED)

    def test_failure_rolls_back_identity_rows(self) -> None:
        with patch('app.services.pos_sync_order_service._upsert_order', side_effect=RuntimeError('boom')):
            with self.assertRaises(RuntimeError):
                process_order_event(self.db, _rich_payload())

        self.assertEqual(count_rows(self.db, Staff), 0)
        self.assertEqual(count_rows(self.db, Table), 0)
        self.assertEqual(count_rows(self.db, Shift), 0)
        self.assertEqual(count_rows(self.db, Order), 0)

    def test_failed_recovery_write_does_not_mask_original_error(self) -> None:
        recovery_error = OperationalError('UPDATE orders', {}, Exception('database is locked'))
        with patch('app.services.pos_sync_order_service._upsert_order', side_effect=RuntimeError('boom')):
            with patch('app.services.pos_sync_order_service._mark_sync_failed', side_effect=recovery_error):
                with self.assertRaisesRegex(RuntimeError, 'boom'):
                    process_order_event(self.db, _payload())


if __name__ == '__main__':
    unittest.main()
