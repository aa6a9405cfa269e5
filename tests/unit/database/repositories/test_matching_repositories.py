#!/usr/bin/env python3
"""
Unit tests for the PostgreSQL repositories using a mocked Session.

These check the mapping between ORM rows and DTOs and the control flow
around conditional updates and duplicate inserts. SQL behaviour itself is
covered by tests/integration/test_match_store_postgres.py (-m db).
"""

import unittest
import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock

from sqlalchemy.exc import IntegrityError

from database.models import MatchRecord, UserProfile
from database.repositories.chat import ChatRoomRepository
from database.repositories.match import MatchRecordRepository, pair_lock_key, to_dto
from database.repositories.notification import NotificationRepository
from database.repositories.profile import ProfileRepository, to_snapshot
from matchmaking.interfaces import DuplicateRecord
from matchmaking.models import MatchQuality, MatchStatus, Role, SubscriptionTier, VerificationLevel


def match_row(**overrides):
    values = dict(
        id=uuid.uuid4(),
        initiator_id='alice',
        target_id='bob',
        status='pending',
        compatibility_score=72,
        compatibility_factors={'industry_alignment': 1.0},
        match_reasons=['Shared interest in Tech'],
        match_quality='MEDIUM',
        super_liked=False,
        chat_room_id=None,
        created_at=datetime(2026, 3, 14, tzinfo=timezone.utc),
        responded_at=None,
    )
    values.update(overrides)
    return MatchRecord(**values)


class TestPairLockKey(unittest.TestCase):

    def test_order_independent_and_stable(self):
        self.assertEqual(pair_lock_key('alice', 'bob'), pair_lock_key('bob', 'alice'))
        self.assertEqual(pair_lock_key('alice', 'bob'), pair_lock_key('alice', 'bob'))
        self.assertNotEqual(pair_lock_key('alice', 'bob'), pair_lock_key('alice', 'carol'))

    def test_fits_in_bigint(self):
        key = pair_lock_key('alice', 'bob')
        self.assertGreaterEqual(key, -2 ** 63)
        self.assertLess(key, 2 ** 63)


class TestMatchRecordRepository(unittest.TestCase):

    def setUp(self):
        self.db = MagicMock()
        self.repo = MatchRecordRepository(self.db)

    def test_to_dto(self):
        room_id = uuid.uuid4()
        dto = to_dto(match_row(status='matched', chat_room_id=room_id, super_liked=True))

        self.assertIs(dto.status, MatchStatus.MATCHED)
        self.assertIs(dto.match_quality, MatchQuality.MEDIUM)
        self.assertEqual(dto.chat_room_id, str(room_id))
        self.assertTrue(dto.super_liked)
        self.assertEqual(dto.compatibility_factors, {'industry_alignment': 1.0})

    def test_rejection_dto_has_no_quality(self):
        dto = to_dto(match_row(status='rejected', compatibility_score=None, match_quality=None))

        self.assertIs(dto.status, MatchStatus.REJECTED)
        self.assertIsNone(dto.match_quality)
        self.assertIsNone(dto.compatibility_score)

    def test_lock_pair_executes_advisory_lock(self):
        self.repo.lock_pair('bob', 'alice')

        statement = self.db.execute.call_args[0][0]
        self.assertIn('pg_advisory_xact_lock', str(statement))

    def test_get_returns_none_when_missing(self):
        self.db.execute.return_value.scalar_one_or_none.return_value = None
        self.assertIsNone(self.repo.get('alice', 'bob'))

    def test_create_maps_integrity_error(self):
        self.db.flush.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

        with self.assertRaises(DuplicateRecord):
            self.repo.create('alice', 'bob', MatchStatus.PENDING)

        self.db.refresh.assert_not_called()

    def test_create_returns_dto(self):
        def assign_defaults(record):
            record.id = uuid.uuid4()
            record.created_at = datetime(2026, 3, 14, tzinfo=timezone.utc)

        self.db.refresh.side_effect = assign_defaults

        dto = self.repo.create(
            'alice', 'bob', MatchStatus.PENDING,
            compatibility_score=81, match_quality=MatchQuality.HIGH, super_liked=True
        )

        added = self.db.add.call_args[0][0]
        self.assertEqual(added.status, 'pending')
        self.assertEqual(added.match_quality, 'HIGH')
        self.assertEqual(dto.compatibility_score, 81)
        self.assertTrue(dto.super_liked)

    def test_transition_without_pending_row(self):
        self.db.execute.return_value.scalars.return_value.first.return_value = None

        self.assertIsNone(self.repo.transition('bob', 'alice', MatchStatus.MATCHED))

    def test_transition_returns_updated_row(self):
        self.db.execute.return_value.scalars.return_value.first.return_value = match_row(status='matched')

        dto = self.repo.transition('alice', 'bob', MatchStatus.MATCHED)

        self.assertIs(dto.status, MatchStatus.MATCHED)
        statement = str(self.db.execute.call_args[0][0])
        self.assertIn('UPDATE match_record', statement)

    def test_attach_chat_room_returns_rowcount(self):
        self.db.execute.return_value.rowcount = 2
        self.assertEqual(self.repo.attach_chat_room('alice', 'bob', str(uuid.uuid4())), 2)


class TestProfileRepository(unittest.TestCase):

    def test_to_snapshot(self):
        row = UserProfile(
            user_id='f-1', role='funder', display_name='Fund One',
            subscription_tier='Gold', verification_level='FiscalAnalysis',
            attributes={'areas_of_interest': ['Tech'], 'investment_max': 100000},
            latitude=52.5, longitude=13.4,
        )

        snapshot = to_snapshot(row)

        self.assertIs(snapshot.role, Role.FUNDER)
        self.assertIs(snapshot.subscription_tier, SubscriptionTier.GOLD)
        self.assertIs(snapshot.verification_level, VerificationLevel.FISCAL_ANALYSIS)
        self.assertEqual(snapshot.location, (52.5, 13.4))
        self.assertEqual(snapshot.attrs.investment_max, 100000.0)

    def test_get_unknown(self):
        db = MagicMock()
        db.get.return_value = None
        self.assertIsNone(ProfileRepository(db).get('nobody'))

    def test_list_candidates_filters_by_role_and_excludes_related(self):
        db = MagicMock()
        db.execute.return_value.scalars.return_value.all.return_value = []

        ProfileRepository(db).list_candidates(
            Role.FUNDER, exclude_ids=['e-1'], tier_ceiling=SubscriptionTier.BRONZE,
            exclude_related_to='e-1'
        )

        statement = str(db.execute.call_args[0][0])
        self.assertIn('user_profile.role', statement)
        self.assertIn('EXISTS', statement)


class TestNotificationRepository(unittest.TestCase):

    def test_record_returns_none_for_duplicate(self):
        db = MagicMock()
        db.execute.return_value.first.return_value = None

        result = NotificationRepository(db).record(
            user_id='bob', event_type='match', title='t', body='b',
            priority='normal', payload={}, dedup_hash='abc'
        )

        self.assertIsNone(result)

    def test_record_returns_new_id(self):
        db = MagicMock()
        new_id = uuid.uuid4()
        db.execute.return_value.first.return_value = (new_id,)

        result = NotificationRepository(db).record(
            user_id='bob', event_type='match', title='t', body='b',
            priority='normal', payload={}, dedup_hash='abc', notification_id=str(new_id)
        )

        self.assertEqual(result, str(new_id))


class TestChatRoomRepository(unittest.TestCase):

    def test_priority_request_upgrades_existing_room(self):
        db = MagicMock()
        room = MagicMock(priority_level='normal')
        db.execute.return_value.rowcount = 0
        db.execute.return_value.scalar_one_or_none.return_value = room

        result = ChatRoomRepository(db).get_or_create('bob', 'alice', priority=True)

        self.assertIs(result, room)
        self.assertEqual(room.priority_level, 'high')
        db.flush.assert_called_once()


if __name__ == '__main__':
    unittest.main(verbosity=2)
