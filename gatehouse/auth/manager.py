"""
Binds authenticated users to sessions.

Only the user ID is kept in a session. Resolving a session is a two-step
lookup: the session store gives us the user ID, and the user directory
gives us the current user data. A session whose user has gone away is
deleted, and is never treated as anonymous-but-valid.
"""

import logging
from typing import Optional

from .. import domain
from ..services.exceptions import InfrastructureError, SessionDeletionFailed
from ..services.sessions import SessionStore, current_session
from ..services.users import UserDirectory, current_directory

logger = logging.getLogger(__name__)


class SessionManager(object):
    """Creates, resolves, and destroys user sessions."""

    def __init__(self, sessions: SessionStore, users: UserDirectory) -> None:
        self._sessions = sessions
        self._users = users

    def establish(self, user_id: str,
                  replaces: Optional[str] = None) -> domain.Session:
        """
        Start a new session for an authenticated user.

        A new session ID is always issued. If the client presented an
        existing session ID, pass it as ``replaces`` and it is deleted; if
        that deletion fails the old record simply runs out its TTL.

        Raises
        ------
        :class:`SessionCreationFailed`

        """
        self.destroy(replaces)
        session = self._sessions.create(user_id)
        logger.debug('Created session for user %s', user_id)
        return session

    def resolve(self, session_id: Optional[str]) -> Optional[domain.User]:
        """
        Get the current user for a session ID.

        Returns ``None`` if the session is absent, invalid, or expired, if
        its user no longer exists, or if the backing services could not be
        reached.
        """
        if not session_id:
            return None
        try:
            user_id = self._sessions.resolve_user_id(session_id)
            if user_id is None:
                return None
            user = self._users.find_by_id(user_id)
        except InfrastructureError as e:
            logger.error('Could not resolve session: %s', e)
            return None
        if user is None:
            logger.info('Session refers to missing user %s; dropping it',
                        user_id)
            self.destroy(session_id)
            return None
        return user

    def destroy(self, session_id: Optional[str]) -> None:
        """Delete a session. Deleting an unknown session is harmless."""
        if not session_id:
            return
        try:
            self._sessions.delete_by_id(session_id)
        except SessionDeletionFailed as e:
            logger.error('Could not delete session: %s', e)


def current_manager() -> SessionManager:
    """Get a :class:`.SessionManager` wired to the current application."""
    return SessionManager(current_session(), current_directory())
