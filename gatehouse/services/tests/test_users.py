"""Tests for :mod:`gatehouse.services.users`."""

from unittest import TestCase, mock
import threading
import time

from flask import Flask
from sqlalchemy.exc import IntegrityError, OperationalError

from gatehouse import domain
from gatehouse.services import users
from gatehouse.services.exceptions import InfrastructureError, UserExists


def row(**data):
    """Simulate a SQLAlchemy result row."""
    return mock.MagicMock(_mapping=data)


class TestUserDirectory(TestCase):
    """The directory runs parameterized queries against the pool."""

    def setUp(self):
        self.engine = mock.MagicMock()
        self.connection = \
            self.engine.begin.return_value.__enter__.return_value
        self.directory = users.UserDirectory(self.engine, 'app_public',
                                             'app_private')

    def executed(self):
        statement, params = self.connection.execute.call_args[0]
        return str(statement), params

    def test_verify_credentials(self):
        """Matching credentials return the user."""
        self.connection.execute.return_value = [
            row(id=7, username='foouser', email='foo@bar.com', name='Foo',
                avatar_url='https://x/a.jpg', is_verified=True)
        ]
        user = self.directory.verify_credentials('foo@bar.com', 'thepassword')
        self.assertEqual(user, domain.User(user_id='7', username='foouser',
                                           email='foo@bar.com', name='Foo',
                                           avatar_url='https://x/a.jpg',
                                           verified=True))
        sql, params = self.executed()
        self.assertIn('app_private.login(:identifier, :secret)', sql)
        self.assertEqual(params, {'identifier': 'foo@bar.com',
                                  'secret': 'thepassword'})

    def test_verify_credentials_no_match(self):
        """Credentials that do not match return ``None``."""
        self.connection.execute.return_value = []
        self.assertIsNone(self.directory.verify_credentials('foo', 'bar'))

    def test_database_unavailable(self):
        """Driver errors are raised as :class:`.InfrastructureError`."""
        self.connection.execute.side_effect = \
            OperationalError('select', {}, Exception('connection refused'))
        with self.assertRaises(InfrastructureError):
            self.directory.verify_credentials('foo', 'bar')
        with self.assertRaises(InfrastructureError):
            self.directory.find_by_id('7')

    def test_find_by_id(self):
        self.connection.execute.return_value = [row(id=7, username='foo')]
        user = self.directory.find_by_id('7')
        self.assertEqual(user.user_id, '7')
        self.assertEqual(user.email, '')
        sql, params = self.executed()
        self.assertIn('from app_public.users', sql)
        self.assertEqual(params, {'user_id': '7'})

    def test_find_by_id_missing(self):
        self.connection.execute.return_value = []
        self.assertIsNone(self.directory.find_by_id('7'))

    def test_username_exists(self):
        self.connection.execute.return_value = [row(username='foo')]
        self.assertTrue(self.directory.username_exists('foo'))
        self.connection.execute.return_value = []
        self.assertFalse(self.directory.username_exists('bar'))
        sql, params = self.executed()
        self.assertIn('users.username = :username', sql)
        self.assertEqual(params, {'username': 'bar'})

    def test_email_exists(self):
        self.connection.execute.return_value = [row(email='foo@bar.com')]
        self.assertTrue(self.directory.email_exists('foo@bar.com'))
        sql, _ = self.executed()
        self.assertIn('from app_public.user_emails', sql)

    def test_create_user(self):
        """A new user is created unverified and returned."""
        self.connection.execute.return_value = [
            row(id=8, username='bob', name='Bob', avatar_url='blank.jpg',
                is_verified=False)
        ]
        user = self.directory.create_user('bob', 'bob@x.com', 'Bob',
                                          'blank.jpg', 'pw')
        self.assertEqual(user.user_id, '8')
        self.assertEqual(user.email, 'bob@x.com')
        self.assertFalse(user.verified)
        sql, params = self.executed()
        self.assertIn('app_private.really_create_user(', sql)
        self.assertIn('email_is_verified => false', sql)
        self.assertEqual(params, {'username': 'bob', 'email': 'bob@x.com',
                                  'name': 'Bob', 'avatar_url': 'blank.jpg',
                                  'password': 'pw'})

    def test_create_user_conflict(self):
        """A uniqueness violation is raised as :class:`.UserExists`."""
        self.connection.execute.side_effect = \
            IntegrityError('select', {}, Exception('duplicate key'))
        with self.assertRaises(UserExists):
            self.directory.create_user('bob', 'bob@x.com', 'Bob',
                                       'blank.jpg', 'pw')

    def test_create_user_no_row(self):
        self.connection.execute.return_value = []
        with self.assertRaises(InfrastructureError):
            self.directory.create_user('bob', 'bob@x.com', 'Bob',
                                       'blank.jpg', 'pw')

    def test_bad_schema_name(self):
        """Schema names are interpolated, so they must be identifiers."""
        with self.assertRaises(ValueError):
            users.UserDirectory(self.engine, 'app_public; drop table x', 'p')


class TestFromConfig(TestCase):

    @mock.patch('gatehouse.services.users.create_engine')
    def test_postgres_timeouts(self, mock_create_engine):
        """Connect and statement timeouts are passed to the driver."""
        users.UserDirectory.from_config({
            'DATABASE_URI': 'postgresql://db/gatehouse',
            'DATABASE_CONNECT_TIMEOUT': '3',
            'DATABASE_STATEMENT_TIMEOUT': '1500',
        })
        args, kwargs = mock_create_engine.call_args
        self.assertEqual(args[0], 'postgresql://db/gatehouse')
        self.assertEqual(kwargs['connect_args'],
                         {'connect_timeout': 3,
                          'options': '-c statement_timeout=1500'})


class TestCurrentDirectory(TestCase):

    def test_built_once_under_concurrency(self):
        """Concurrent first requests share a single engine."""
        app = Flask('test')
        users.init_app(app)
        barrier = threading.Barrier(8)
        results = []

        def slow_from_config(config):
            time.sleep(0.05)
            return mock.MagicMock(spec=users.UserDirectory)

        def first_request():
            with app.app_context():
                barrier.wait()
                results.append(users.current_directory())

        with mock.patch.object(users.UserDirectory, 'from_config',
                               side_effect=slow_from_config) as from_config:
            threads = [threading.Thread(target=first_request)
                       for _ in range(8)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()
        self.assertEqual(from_config.call_count, 1)
        self.assertEqual(len(results), 8)
        self.assertTrue(all(found is results[0] for found in results))
