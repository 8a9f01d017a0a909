"""
Provides access to user records and credentials in the database.

The database owns the user schema and all password handling: passwords are
hashed by ``really_create_user`` and compared by ``login``, both functions
in the private schema. This module only ever passes the plaintext through
as a bound query parameter, and never sees a hash.
"""

import logging
import re
import threading
from typing import Any, Dict, List, Mapping, Optional

from flask import Flask, current_app
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .. import domain
from .exceptions import InfrastructureError, UserExists

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'gatehouse.users'

_lock = threading.Lock()

_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


class UserDirectory(object):
    """
    Runs parameterized queries for user data against a connection pool.

    The engine's pool is shared by all requests; SQLAlchemy checks out a
    connection for the duration of each call.
    """

    def __init__(self, engine: Engine, public_schema: str = 'app_public',
                 private_schema: str = 'app_private') -> None:
        for schema in (public_schema, private_schema):
            if not _IDENTIFIER.match(schema):
                raise ValueError(f'Not a valid schema name: {schema!r}')
        self._engine = engine
        self._public = public_schema
        self._private = private_schema

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'UserDirectory':
        """Create an engine for the configured database."""
        uri = config['DATABASE_URI']
        connect_args: Dict[str, Any] = {}
        if uri.startswith('postgresql'):
            connect_timeout = int(config.get('DATABASE_CONNECT_TIMEOUT', '5'))
            statement_timeout = \
                int(config.get('DATABASE_STATEMENT_TIMEOUT', '5000'))
            connect_args = {
                'connect_timeout': connect_timeout,
                'options': f'-c statement_timeout={statement_timeout}'
            }
        engine = create_engine(uri, pool_pre_ping=True,
                               connect_args=connect_args)
        return cls(engine,
                   public_schema=config.get('PUBLIC_SCHEMA', 'app_public'),
                   private_schema=config.get('PRIVATE_SCHEMA', 'app_private'))

    def verify_credentials(self, identifier: str,
                           secret: str) -> Optional[domain.User]:
        """
        Check a username or e-mail address and password.

        Returns
        -------
        :class:`.User` or None
            ``None`` if the credentials do not match a user. The database
            does not tell us which part was wrong, and neither do we.

        Raises
        ------
        :class:`InfrastructureError`

        """
        rows = self._query(
            f'select users.* from {self._private}.login(:identifier, :secret)'
            ' users where not (users is null)',
            {'identifier': identifier, 'secret': secret}
        )
        return self._one_or_none(rows)

    def find_by_id(self, user_id: str) -> Optional[domain.User]:
        """Get a user by ID, or ``None`` if there is no such user."""
        rows = self._query(
            f'select users.* from {self._public}.users users'
            ' where users.id = :user_id',
            {'user_id': user_id}
        )
        return self._one_or_none(rows)

    def username_exists(self, username: str) -> bool:
        """Determine whether or not a username already exists in the DB."""
        rows = self._query(
            f'select users.username from {self._public}.users users'
            ' where users.username = :username',
            {'username': username}
        )
        return bool(rows)

    def email_exists(self, email: str) -> bool:
        """Determine whether or not an e-mail address is already registered."""
        rows = self._query(
            f'select user_emails.email from {self._public}.user_emails'
            ' user_emails where user_emails.email = :email',
            {'email': email}
        )
        return bool(rows)

    def create_user(self, username: str, email: str, name: str,
                    avatar_url: str, password: str) -> domain.User:
        """
        Add a new, unverified user to the database.

        Raises
        ------
        :class:`UserExists`
            The database refused the user under a uniqueness constraint.
            This can happen even after :meth:`username_exists` and
            :meth:`email_exists` said otherwise, if another registration
            for the same name or address got there first.
        :class:`InfrastructureError`

        """
        rows = self._query(
            f'select users.* from {self._private}.really_create_user('
            ' username => :username,'
            ' email => :email,'
            ' email_is_verified => false,'
            ' name => :name,'
            ' avatar_url => :avatar_url,'
            ' password => :password'
            ' ) users where not (users is null)',
            {'username': username, 'email': email, 'name': name,
             'avatar_url': avatar_url, 'password': password}
        )
        if not rows:
            raise InfrastructureError('User creation returned no user')
        user = domain.User.from_row(rows[0])
        if not user.email:
            user = user._replace(email=email)
        return user

    def _query(self, sql: str, params: Dict[str, Any]) -> List[Mapping]:
        try:
            with self._engine.begin() as connection:
                result = connection.execute(text(sql), params)
                return [row._mapping for row in result]
        except IntegrityError as e:
            logger.debug('Integrity error: %s', e.orig)
            raise UserExists('Conflicts with an existing user') from e
        except SQLAlchemyError as e:
            logger.error('Encountered an error talking to database: %s', e)
            raise InfrastructureError(f'Database query failed: {e}') from e

    def _one_or_none(self, rows: List[Mapping]) -> Optional[domain.User]:
        if not rows:
            return None
        if len(rows) > 1:
            logger.warning('Expected one user, got %i', len(rows))
        return domain.User.from_row(rows[0])


def init_app(app: Flask) -> None:
    """Set default configuration parameters for an application instance."""
    app.config.setdefault('DATABASE_URI', 'postgresql://localhost/gatehouse')
    app.config.setdefault('DATABASE_CONNECT_TIMEOUT', '5')
    app.config.setdefault('DATABASE_STATEMENT_TIMEOUT', '5000')
    app.config.setdefault('PUBLIC_SCHEMA', 'app_public')
    app.config.setdefault('PRIVATE_SCHEMA', 'app_private')


def current_directory() -> UserDirectory:
    """Get/create the :class:`.UserDirectory` for the current application."""
    users: Optional[UserDirectory] = current_app.extensions.get(EXTENSION_KEY)
    if users is None:
        with _lock:
            users = current_app.extensions.get(EXTENSION_KEY)
            if users is None:
                users = UserDirectory.from_config(current_app.config)
                current_app.extensions[EXTENSION_KEY] = users
    return users
