"""Flask configuration."""
import secrets
import os

#################### General config for app ####################
SERVER_PORT = int(os.environ.get('SERVER_PORT', '3000'))
"""Port for the development server (``python -m gatehouse``)."""

SECRET_KEY = os.environ.get('SECRET_KEY', secrets.token_urlsafe(16))
"""Sets the `Flask` secret key. Not used for gatehouse sessions."""

DEFAULT_LOGIN_REDIRECT_URL = os.environ.get('DEFAULT_LOGIN_REDIRECT_URL', '/')
"""Where the user goes after a login attempt, successful or not."""

DEFAULT_LOGOUT_REDIRECT_URL = os.environ.get('DEFAULT_LOGOUT_REDIRECT_URL',
                                             '/index.html')
"""Where the user goes after logging out."""

LOGIN_REQUIRED_REDIRECT_URL = os.environ.get('LOGIN_REQUIRED_REDIRECT_URL',
                                             '/login')
"""Where anonymous users are sent when they hit an authenticated route."""


#################### Sessions ####################
REDIS_HOST = os.environ.get('REDIS_HOST', 'localhost')
REDIS_PORT = os.environ.get('REDIS_PORT', '6379')
REDIS_DATABASE = os.environ.get('REDIS_DATABASE', '0')
REDIS_TOKEN = os.environ.get('REDIS_TOKEN', None)
"""This is the token used in the AUTH procedure."""
REDIS_CLUSTER = os.environ.get('REDIS_CLUSTER', '0')
"""If 1, expects a redis cluster; otherwise expects a single redis node."""

REDIS_FAKE = bool(int(os.environ.get('REDIS_FAKE', '0')))
"""Use the FakeRedis library instead of a redis service.

Useful for testing, dev, beta."""

REDIS_SOCKET_TIMEOUT = os.environ.get('REDIS_SOCKET_TIMEOUT', '5')
"""Seconds to wait on a redis command before giving up."""

JWT_SECRET = os.environ.get('JWT_SECRET', '')
"""
Signs session records and activation tokens.

Must be the same for every worker that shares the session store. If unset,
a random key is generated per process and a warning is logged.
"""

SESSION_DURATION = os.environ.get('SESSION_DURATION', '2600')
"""Session lifetime in seconds."""

SESSION_KEY_PREFIX = os.environ.get('SESSION_KEY_PREFIX', 'sess:')
"""Prefix for session keys in redis."""

AUTH_SESSION_COOKIE_NAME = os.environ.get('AUTH_SESSION_COOKIE_NAME',
                                          'gatehouse_session')
AUTH_SESSION_COOKIE_SECURE = \
    bool(int(os.environ.get('AUTH_SESSION_COOKIE_SECURE', '0')))


#################### Database ####################
DATABASE_URI = os.environ.get('DATABASE_URI',
                              'postgresql://localhost/gatehouse')
"""SQLAlchemy URI for the database that holds users and credentials."""

DATABASE_CONNECT_TIMEOUT = os.environ.get('DATABASE_CONNECT_TIMEOUT', '5')
"""Seconds to wait for a new database connection."""

DATABASE_STATEMENT_TIMEOUT = os.environ.get('DATABASE_STATEMENT_TIMEOUT',
                                            '5000')
"""Milliseconds before PostgreSQL cancels a statement."""

PUBLIC_SCHEMA = os.environ.get('PUBLIC_SCHEMA', 'app_public')
"""Schema holding the ``users`` and ``user_emails`` tables."""

PRIVATE_SCHEMA = os.environ.get('PRIVATE_SCHEMA', 'app_private')
"""Schema holding the ``login`` and ``really_create_user`` functions."""


#################### Mail ####################
SMTP_HOST = os.environ.get('SMTP_HOST', 'localhost')
SMTP_PORT = os.environ.get('SMTP_PORT', '25')
SMTP_USER = os.environ.get('SMTP_USER', '')
SMTP_PASS = os.environ.get('SMTP_PASS', '')
SMTP_SECURE = bool(int(os.environ.get('SMTP_SECURE', '0')))
"""If 1, connect with implicit TLS (usually port 465)."""

SMTP_TIMEOUT = os.environ.get('SMTP_TIMEOUT', '10')

MAIL_SENDER = os.environ.get('MAIL_SENDER', SMTP_USER or 'noreply@localhost')
"""``From`` address on outbound mail."""


#################### Registration ####################
DEFAULT_AVATAR_URL = os.environ.get('DEFAULT_AVATAR_URL',
                                    'https://localhost/images/blank.jpg')

ACTIVATION_TOKEN_TTL = os.environ.get('ACTIVATION_TOKEN_TTL', '86400')
"""Lifetime in seconds of the token sent in the activation e-mail."""


#################### Logging ####################
LOGLEVEL = os.environ.get('LOGLEVEL', 'INFO')
LOG_JSON = bool(int(os.environ.get('LOG_JSON', '0')))
"""If 1, log records are written as JSON lines."""
