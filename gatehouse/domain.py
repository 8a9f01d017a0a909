"""Defines user and session concepts for the gatehouse service."""

from typing import Any, Mapping, NamedTuple, Optional
from datetime import datetime
import dateutil.parser
from pytz import UTC


class User(NamedTuple):
    """
    Represents a persisted user.

    This is a read projection of a row in the users table. Instances are
    only built by :mod:`gatehouse.services.users`, from rows returned by the
    database.
    """

    user_id: str
    """Unique identifier for the user."""

    username: str
    """Slug-like username."""

    email: str = ''
    """The user's primary e-mail address."""

    name: str = ''
    """The user's display name."""

    avatar_url: str = ''
    """URL of the user's avatar image."""

    verified: bool = False
    """Whether or not the users' e-mail address has been verified."""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'User':
        """Build a :class:`.User` from a database row mapping."""
        verified = row.get('email_is_verified', row.get('is_verified', False))
        return cls(
            user_id=str(row['id']),
            username=row['username'],
            email=row.get('email') or '',
            name=row.get('name') or '',
            avatar_url=row.get('avatar_url') or '',
            verified=bool(verified)
        )


class UserRegistration(NamedTuple):
    """Data submitted to create a new account."""

    username: str
    email: str
    name: str
    password: str

    def __repr__(self) -> str:
        """Keep the password out of logs and tracebacks."""
        return (f'UserRegistration(username={self.username!r}, '
                f'email={self.email!r}, name={self.name!r})')


class Session(NamedTuple):
    """Represents an authenticated session."""

    session_id: str
    """Opaque, unguessable identifier; the only thing stored in the cookie."""

    user_id: str
    """The user for which the session was created."""

    start_time: datetime
    """The datetime when the session was created."""

    end_time: datetime
    """The datetime when the session expires."""

    @property
    def expired(self) -> bool:
        """Expired if the current time is later than :attr:`.end_time`."""
        return bool(datetime.now(tz=UTC) >= self.end_time)

    @property
    def expires(self) -> int:
        """
        Number of seconds until the session expires.

        If the session is already expired, returns 0.
        """
        duration = (self.end_time - datetime.now(tz=UTC)).total_seconds()
        return max(int(duration), 0)


def to_dict(session: Session) -> dict:
    """Generate a JSON-friendly dict representation of a :class:`.Session`."""
    data = session._asdict()
    return {key: value.isoformat() if isinstance(value, datetime) else value
            for key, value in data.items()}


def from_dict(data: dict) -> Session:
    """
    Generate a :class:`.Session` from a dict.

    This is the inverse of :func:`to_dict`.

    Raises
    ------
    KeyError
        Raised if a field is missing.
    ValueError
        Raised if a timestamp cannot be parsed.

    """
    return Session(
        session_id=str(data['session_id']),
        user_id=str(data['user_id']),
        start_time=_parse_datetime(data['start_time']),
        end_time=_parse_datetime(data['end_time'])
    )


def _parse_datetime(value: str) -> datetime:
    parsed = dateutil.parser.parse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
