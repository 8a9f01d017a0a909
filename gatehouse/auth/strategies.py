"""
Authentication strategies.

A strategy turns credentials submitted by a client into a
:class:`.domain.User`. Strategies are registered by name, so that other
kinds of credentials (e.g. bearer tokens) can be supported without changing
the session machinery in :mod:`.manager`.
"""

import logging
from typing import Callable, Dict, Optional

from .. import domain
from ..services.exceptions import InfrastructureError
from ..services.users import UserDirectory, current_directory
from .exceptions import AuthenticationFailed

logger = logging.getLogger(__name__)


class AuthenticationStrategy(object):
    """Base class for authentication strategies."""

    name: str = ''

    def authenticate(self, identifier: str, secret: str) -> domain.User:
        """
        Verify credentials.

        Returns
        -------
        :class:`.domain.User`

        Raises
        ------
        :class:`AuthenticationFailed`
            The credentials do not identify a user.
        :class:`InfrastructureError`
            The credentials could not be checked.

        """
        raise NotImplementedError('Implement in a subclass')


class PasswordStrategy(AuthenticationStrategy):
    """Username or e-mail address plus password, checked by the database."""

    name = 'password'

    def __init__(self, users: UserDirectory) -> None:
        self._users = users

    def authenticate(self, identifier: str, secret: str) -> domain.User:
        """Verify a username or e-mail address and password."""
        if not identifier or not secret:
            logger.debug('Missing identifier or password')
            raise AuthenticationFailed('Invalid username or password')
        try:
            user = self._users.verify_credentials(identifier, secret)
        except InfrastructureError as e:
            logger.error('Could not verify credentials: %s', e)
            raise
        if user is None:
            logger.debug('Authentication failed for %s', identifier)
            raise AuthenticationFailed('Invalid username or password')
        logger.debug('Authenticated user %s', user.user_id)
        return user


STRATEGIES: Dict[str, Callable[[UserDirectory], AuthenticationStrategy]] = {
    PasswordStrategy.name: PasswordStrategy
}


def get_strategy(name: str = 'password',
                 users: Optional[UserDirectory] = None) \
        -> AuthenticationStrategy:
    """Get a strategy by name, bound to ``users`` or the app's directory."""
    try:
        factory = STRATEGIES[name]
    except KeyError as e:
        raise ValueError(f'No such authentication strategy: {name}') from e
    return factory(users if users is not None else current_directory())
