from __future__ import annotations

import unittest
from datetime import datetime, timezone
from unittest.mock import patch

from sqlalchemy import select

from app.models import Shift, ShiftStatus, Staff, StaffRole, StaffVenue, Table
from app.schemas import PosShiftData, PosStaffData, PosTableData
from app.security.passwords import verify_pin
from app.services.pos_identity_service import ResolveOutcome, find_or_create, insert_or_conflict
from app.services.pos_sync_shift_service import resolve_or_create_shift
from app.services.pos_sync_staff_service import resolve_or_create_staff
from app.services.pos_sync_table_service import resolve_or_create_table
from helpers import count_rows, make_session_factory, seed_venue


class FindOrCreateTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        seed_venue(self.db)

    def tearDown(self) -> None:
        self.db.close()

    def test_creates_then_finds_same_row(self) -> None:
        keys = {'venue_id': 'v1', 'external_id': 'T-1'}
        created = find_or_create(self.db, Table, keys=keys, values={'number': '1'})
        found = find_or_create(self.db, Table, keys=keys, values={'number': '1'})

        self.assertEqual(created.outcome, ResolveOutcome.CREATED)
        self.assertEqual(found.outcome, ResolveOutcome.FOUND)
        self.assertEqual(created.id, found.id)
        self.assertEqual(count_rows(self.db, Table), 1)

    def test_losing_insert_reports_conflict_with_winner_id(self) -> None:
        keys = {'venue_id': 'v1', 'external_id': 'T-1'}
        winner = find_or_create(self.db, Table, keys=keys, values={'number': '1'})

        loser = insert_or_conflict(self.db, Table, keys=keys, values={'number': '1'})

        self.assertEqual(loser.outcome, ResolveOutcome.CONFLICT)
        self.assertEqual(loser.id, winner.id)
        self.assertEqual(count_rows(self.db, Table), 1)


class ResolveStaffTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        seed_venue(self.db, venue_id='v1')
        seed_venue(self.db, venue_id='v2')

    def tearDown(self) -> None:
        self.db.close()

    def test_absent_fragment_creates_nothing(self) -> None:
        self.assertIsNone(resolve_or_create_staff(self.db, None, 'v1', 'org1'))
        self.assertEqual(count_rows(self.db, Staff), 0)

    def test_creates_waiter_with_hashed_pin(self) -> None:
        staff_id = resolve_or_create_staff(
            self.db,
            PosStaffData(pos_staff_id='W-7', name='Ana Maria Lopez', pin='4321'),
            'v1',
            'org1',
        )

        staff = self.db.get(Staff, staff_id)
        assignment = self.db.execute(select(StaffVenue).where(StaffVenue.staff_id == staff_id)).scalar_one()
        self.assertEqual(staff.first_name, 'Ana')
        self.assertEqual(staff.last_name, 'Maria Lopez')
        self.assertEqual(staff.organization_id, 'org1')
        self.assertEqual(assignment.role, StaffRole.WAITER)
        self.assertEqual(assignment.pos_staff_id, 'W-7')
        self.assertTrue(verify_pin('4321', assignment.pin_hash))

    def test_existing_pos_staff_is_reused(self) -> None:
        fragment = PosStaffData(pos_staff_id='W-7', name='Ana')
        first = resolve_or_create_staff(self.db, fragment, 'v1', 'org1')
        second = resolve_or_create_staff(self.db, PosStaffData(pos_staff_id='W-7', name='Renamed'), 'v1', 'org1')

        self.assertEqual(first, second)
        self.assertEqual(count_rows(self.db, Staff), 1)
        self.assertEqual(self.db.get(Staff, first).first_name, 'Ana')

    def test_same_pos_staff_id_is_scoped_per_venue(self) -> None:
        fragment = PosStaffData(pos_staff_id='W-7', name='Ana')
        at_v1 = resolve_or_create_staff(self.db, fragment, 'v1', 'org1')
        at_v2 = resolve_or_create_staff(self.db, fragment, 'v2', 'org1')

        self.assertNotEqual(at_v1, at_v2)
        self.assertEqual(count_rows(self.db, StaffVenue), 2)

    def test_race_loser_returns_winner_and_drops_orphan(self) -> None:
        winner_id = resolve_or_create_staff(self.db, PosStaffData(pos_staff_id='W-7', name='Ana'), 'v1', 'org1')

        with patch(
            'app.services.pos_sync_staff_service._staff_id_for_pos_staff',
            side_effect=[None, winner_id],
        ):
            resolved = resolve_or_create_staff(self.db, PosStaffData(pos_staff_id='W-7', name='Ana'), 'v1', 'org1')

        self.assertEqual(resolved, winner_id)
        self.assertEqual(count_rows(self.db, Staff), 1)
        self.assertEqual(count_rows(self.db, StaffVenue), 1)


class ResolveTableTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        seed_venue(self.db)

    def tearDown(self) -> None:
        self.db.close()

    def test_absent_fragment_returns_none(self) -> None:
        self.assertIsNone(resolve_or_create_table(self.db, None, 'v1'))
        self.assertEqual(count_rows(self.db, Table), 0)

    def test_number_defaults_to_external_id(self) -> None:
        table_id = resolve_or_create_table(self.db, PosTableData(external_id='12'), 'v1')

        table = self.db.get(Table, table_id)
        self.assertEqual(table.number, '12')
        self.assertEqual(table.external_id, '12')

    def test_maps_onto_existing_table_with_same_number(self) -> None:
        manual = Table(venue_id='v1', number='5', capacity=6)
        self.db.add(manual)
        self.db.commit()

        table_id = resolve_or_create_table(self.db, PosTableData(external_id='T-5', number='5'), 'v1')

        self.assertEqual(table_id, manual.id)
        self.assertEqual(count_rows(self.db, Table), 1)
        self.assertIsNone(self.db.get(Table, manual.id).external_id)


class ResolveShiftTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        seed_venue(self.db)
        self.staff_id = resolve_or_create_staff(self.db, PosStaffData(pos_staff_id='W-1', name='Luis'), 'v1', 'org1')

    def tearDown(self) -> None:
        self.db.close()

    def test_absent_fragment_returns_none(self) -> None:
        self.assertIsNone(resolve_or_create_shift(self.db, None, 'v1', self.staff_id))

    def test_unseen_shift_without_staff_is_skipped(self) -> None:
        self.assertIsNone(resolve_or_create_shift(self.db, PosShiftData(external_id='S-1'), 'v1', None))
        self.assertEqual(count_rows(self.db, Shift), 0)

    def test_creates_open_shift_for_staff(self) -> None:
        start = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
        fragment = PosShiftData(external_id='S-1', pos_name='Caja 1', start_time=start)
        shift_id = resolve_or_create_shift(self.db, fragment, 'v1', self.staff_id)

        shift = self.db.get(Shift, shift_id)
        self.assertEqual(shift.staff_id, self.staff_id)
        self.assertEqual(shift.status, ShiftStatus.OPEN)
        self.assertEqual(shift.pos_name, 'Caja 1')
        self.assertEqual(shift.start_time.replace(tzinfo=None), datetime(2024, 1, 1, 9, 0))

    def test_existing_shift_is_returned_unchanged(self) -> None:
        shift_id = resolve_or_create_shift(self.db, PosShiftData(external_id='S-1'), 'v1', self.staff_id)

        again = resolve_or_create_shift(
            self.db,
            PosShiftData(external_id='S-1', status=ShiftStatus.CLOSED),
            'v1',
            None,
        )

        self.assertEqual(again, shift_id)
        self.assertEqual(self.db.get(Shift, shift_id).status, ShiftStatus.OPEN)


if __name__ == '__main__':
    unittest.main()
