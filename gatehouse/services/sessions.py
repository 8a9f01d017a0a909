"""
Internal service API for the distributed session store.

Used to create, resolve, and delete user sessions. A session record is a
signed JWT stored under the session ID with a time-to-live; the browser only
ever holds the session ID.
"""

import logging
import secrets
import threading
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

from flask import Flask, current_app
import fakeredis
import jwt
import redis
from redis.cluster import RedisCluster
from redis.exceptions import RedisClusterException
from pytz import UTC

from .. import domain
from .exceptions import SessionCreationFailed, SessionDeletionFailed, \
    InfrastructureError, UnknownSession, InvalidToken, ExpiredToken

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'gatehouse.sessions'

_lock = threading.Lock()


class SessionStore(object):
    """
    Manages a connection to Redis.

    In fact, the StrictRedis instance is thread safe and connections are
    attached at the time a command is executed, so a single instance serves
    all requests handled by an application.
    """

    def __init__(self, connection: Any, secret: str, duration: int = 2600,
                 prefix: str = 'sess:') -> None:
        self.r = connection
        self._secret = secret
        self._duration = duration
        self._prefix = prefix

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'SessionStore':
        """Open a connection to Redis using application configuration."""
        host = config.get('REDIS_HOST', 'localhost')
        port = int(config.get('REDIS_PORT', '6379'))
        db = int(config.get('REDIS_DATABASE', '0'))
        token = config.get('REDIS_TOKEN', None)
        cluster = str(config.get('REDIS_CLUSTER', '0')) == '1'
        timeout = float(config.get('REDIS_SOCKET_TIMEOUT', '5'))
        if config.get('REDIS_FAKE'):
            logger.debug('Using fake Redis')
            connection = fakeredis.FakeStrictRedis()
        elif cluster:
            logger.debug('New Redis cluster connection at %s, port %s',
                         host, port)
            try:
                connection = RedisCluster(host=host, port=port,
                                          password=token,
                                          socket_timeout=timeout,
                                          socket_connect_timeout=timeout)
            except (RedisClusterException, redis.exceptions.RedisError) as e:
                raise InfrastructureError(
                    f'Could not reach Redis cluster: {e}'
                ) from e
        else:
            logger.debug('New Redis connection at %s, port %s', host, port)
            connection = redis.StrictRedis(host=host, port=port, db=db,
                                           password=token,
                                           socket_timeout=timeout,
                                           socket_connect_timeout=timeout)
        return cls(connection, config['JWT_SECRET'],
                   duration=int(config.get('SESSION_DURATION', '2600')),
                   prefix=config.get('SESSION_KEY_PREFIX', 'sess:'))

    def create(self, user_id: str,
               session_id: Optional[str] = None) -> domain.Session:
        """
        Create a new session.

        Parameters
        ----------
        user_id : str
        session_id : str
            Normally left unset, so that a fresh random ID is generated. An
            ID that is already in use is never overwritten.

        Returns
        -------
        :class:`.Session`

        Raises
        ------
        :class:`SessionCreationFailed`

        """
        if session_id is None:
            session_id = secrets.token_urlsafe(32)
        start_time = datetime.now(tz=UTC)
        end_time = start_time + timedelta(seconds=self._duration)
        session = domain.Session(
            session_id=session_id,
            user_id=str(user_id),
            start_time=start_time,
            end_time=end_time
        )
        try:
            created = self.r.set(self._key(session_id),
                                 self._encode(domain.to_dict(session)),
                                 ex=self._duration, nx=True)
        except redis.exceptions.ConnectionError as e:
            raise SessionCreationFailed(f'Connection failed: {e}') from e
        except redis.exceptions.RedisError as e:
            raise SessionCreationFailed(f'Failed to create: {e}') from e
        if not created:
            raise SessionCreationFailed('Session ID already in use')
        return session

    def load_by_id(self, session_id: str) -> domain.Session:
        """
        Get session data by session ID.

        Raises
        ------
        :class:`UnknownSession`
            There is no record for ``session_id``; it was deleted, has timed
            out, or never existed.
        :class:`InvalidToken`
            The record is malformed or was not signed by us.
        :class:`ExpiredToken`
        :class:`InfrastructureError`
            Redis could not be reached.

        """
        try:
            session_jwt = self.r.get(self._key(session_id))
        except redis.exceptions.RedisError as e:
            raise InfrastructureError(f'Failed to load session: {e}') from e
        if not session_jwt:
            raise UnknownSession(f'Failed to find session {session_id}')
        session = self._decode(session_jwt)
        if session.session_id != session_id:
            raise InvalidToken('Session record does not match its key')
        if session.expired:
            raise ExpiredToken('Session has expired')
        return session

    def resolve_user_id(self, session_id: str) -> Optional[str]:
        """
        Get the ID of the user bound to a session.

        Returns ``None`` if there is no valid session for ``session_id``.
        Connection problems are still raised as :class:`InfrastructureError`.
        """
        if not session_id:
            return None
        try:
            session = self.load_by_id(session_id)
        except (UnknownSession, InvalidToken, ExpiredToken) as e:
            logger.debug('No valid session: %s', e)
            return None
        return session.user_id

    def delete_by_id(self, session_id: str) -> None:
        """
        Delete a session in the key-value store by ID.

        Deleting a session that does not exist is not an error.
        """
        try:
            self.r.delete(self._key(session_id))
        except redis.exceptions.ConnectionError as e:
            raise SessionDeletionFailed(f'Connection failed: {e}') from e
        except redis.exceptions.RedisError as e:
            raise SessionDeletionFailed(f'Failed to delete: {e}') from e

    def _key(self, session_id: str) -> str:
        return f'{self._prefix}{session_id}'

    def _encode(self, session_data: dict) -> str:
        return jwt.encode(session_data, self._secret, algorithm='HS256')

    def _decode(self, session_jwt: Any) -> domain.Session:
        if isinstance(session_jwt, bytes):
            session_jwt = session_jwt.decode('utf-8')
        try:
            data = jwt.decode(session_jwt, self._secret, algorithms=['HS256'])
        except jwt.exceptions.InvalidTokenError as e:
            raise InvalidToken('Invalid or corrupted session token') from e
        try:
            return domain.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidToken('Session payload malformed') from e


def init_app(app: Flask) -> None:
    """Set default configuration parameters for an application instance."""
    app.config.setdefault('REDIS_HOST', 'localhost')
    app.config.setdefault('REDIS_PORT', '6379')
    app.config.setdefault('REDIS_DATABASE', '0')
    app.config.setdefault('REDIS_TOKEN', None)
    app.config.setdefault('REDIS_CLUSTER', '0')
    app.config.setdefault('REDIS_FAKE', False)
    app.config.setdefault('REDIS_SOCKET_TIMEOUT', '5')
    app.config.setdefault('SESSION_DURATION', '2600')
    app.config.setdefault('SESSION_KEY_PREFIX', 'sess:')
    if not app.config.get('JWT_SECRET'):
        # Records signed with a per-process key only resolve in that process.
        if not app.config['REDIS_FAKE']:
            logger.warning('JWT_SECRET is not set; sessions will not be '
                           'shared between workers')
        app.config['JWT_SECRET'] = secrets.token_urlsafe(16)


def current_session() -> SessionStore:
    """Get/create the :class:`.SessionStore` for the current application."""
    store: Optional[SessionStore] = current_app.extensions.get(EXTENSION_KEY)
    if store is None:
        with _lock:
            store = current_app.extensions.get(EXTENSION_KEY)
            if store is None:
                store = SessionStore.from_config(current_app.config)
                current_app.extensions[EXTENSION_KEY] = store
    return store
