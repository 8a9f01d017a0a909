"""Tests for :mod:`gatehouse.domain`."""

from datetime import datetime, timedelta
from unittest import TestCase

from pytz import UTC

from gatehouse import domain


class TestUser(TestCase):

    def test_from_row(self):
        """Rows from the login function carry ``is_verified``."""
        user = domain.User.from_row({'id': 7, 'username': 'alice',
                                     'email': None, 'is_verified': True})
        self.assertEqual(user.user_id, '7')
        self.assertEqual(user.email, '')
        self.assertTrue(user.verified)

    def test_registration_repr(self):
        registration = domain.UserRegistration('bob', 'bob@x.com', 'Bob',
                                               'sekrit')
        self.assertNotIn('sekrit', repr(registration))


class TestSession(TestCase):

    def test_expiry(self):
        now = datetime.now(tz=UTC)
        session = domain.Session('abc', '1', now, now + timedelta(seconds=60))
        self.assertFalse(session.expired)
        self.assertGreater(session.expires, 55)

        stale = session._replace(end_time=now - timedelta(seconds=1))
        self.assertTrue(stale.expired)
        self.assertEqual(stale.expires, 0)

    def test_naive_timestamps_are_utc(self):
        session = domain.from_dict({'session_id': 'abc', 'user_id': 1,
                                    'start_time': '2020-01-01T00:00:00',
                                    'end_time': '2020-01-01T01:00:00'})
        self.assertEqual(session.user_id, '1')
        self.assertEqual(session.end_time.tzinfo, UTC)

    def test_missing_field(self):
        with self.assertRaises(KeyError):
            domain.from_dict({'session_id': 'abc'})
