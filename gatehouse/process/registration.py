"""
Registration of new user accounts.

Registration is a fixed sequence of steps. Each step runs only if the one
before it succeeded, and the first failure stops the sequence:

1. The username must not be taken.
2. The e-mail address must not be registered.
3. The user is created, unverified, with the default avatar.
4. An activation e-mail is sent to the new address.

A failed activation e-mail does not undo the account; it is reported on the
returned :class:`Registration` instead.

Steps 1 and 2 do not run in the same transaction as step 3, so two
concurrent registrations for the same username or address can both pass
the checks. The unique constraints in the database decide that race, and
the loser gets :class:`CreationFailed`. The checks are there to give most
users a precise error message, not to guarantee uniqueness.
"""

import logging
from datetime import datetime, timedelta
from html import escape
from typing import NamedTuple, Optional

import jwt
from flask import current_app
from pytz import UTC

from .. import domain
from ..services.exceptions import InfrastructureError, MailDeliveryFailed, \
    UserExists
from ..services.mail import MailSession, current_mailer
from ..services.users import UserDirectory, current_directory

logger = logging.getLogger(__name__)


class RegistrationFailed(RuntimeError):
    """Registration stopped before the account was created."""

    step = ''
    """The step of the sequence that failed."""


class UsernameTaken(RegistrationFailed):
    """The username is already in use."""

    step = 'username'


class EmailTaken(RegistrationFailed):
    """The e-mail address is already registered."""

    step = 'email'


class CheckFailed(RegistrationFailed):
    """A uniqueness check could not be carried out."""

    def __init__(self, step: str, message: str) -> None:
        super(CheckFailed, self).__init__(message)
        self.step = step


class CreationFailed(RegistrationFailed):
    """The database did not create the user."""

    step = 'create'


class NotificationFailed(RuntimeError):
    """The account exists, but the activation e-mail was not sent."""

    step = 'notify'


class Registration(NamedTuple):
    """The outcome of a registration that created an account."""

    user: domain.User
    """The newly created user."""

    notification_error: Optional[NotificationFailed] = None
    """Set if the activation e-mail could not be sent."""

    @property
    def notified(self) -> bool:
        """Whether the activation e-mail was handed to the mail relay."""
        return self.notification_error is None


class Registrar(object):
    """Runs the registration sequence against explicit collaborators."""

    def __init__(self, users: UserDirectory, mailer: MailSession,
                 avatar_url: str, secret: str,
                 token_ttl: int = 86400) -> None:
        self._users = users
        self._mailer = mailer
        self._avatar_url = avatar_url
        self._secret = secret
        self._token_ttl = token_ttl

    def register(self, registration: domain.UserRegistration,
                 origin: str) -> Registration:
        """
        Create a new account and send its activation e-mail.

        Parameters
        ----------
        registration : :class:`.domain.UserRegistration`
        origin : str
            The site at which the account was created, for the e-mail.

        Returns
        -------
        :class:`.Registration`

        Raises
        ------
        :class:`UsernameTaken`
        :class:`EmailTaken`
        :class:`CheckFailed`
        :class:`CreationFailed`

        """
        self._check_username(registration.username)
        self._check_email(registration.email)
        user = self._create(registration)
        try:
            self._notify(user, origin)
        except NotificationFailed as e:
            return Registration(user=user, notification_error=e)
        return Registration(user=user)

    def activation_token(self, user: domain.User) -> str:
        """Generate a signed token that proves ownership of the address."""
        expires = datetime.now(tz=UTC) + timedelta(seconds=self._token_ttl)
        claims = {
            'user_id': user.user_id,
            'email': user.email,
            'purpose': 'activate',
            'exp': expires
        }
        return jwt.encode(claims, self._secret, algorithm='HS256')

    def _check_username(self, username: str) -> None:
        try:
            taken = self._users.username_exists(username)
        except InfrastructureError as e:
            raise CheckFailed('username',
                              'Error checking for existing username.') from e
        if taken:
            logger.debug('Username %s is taken', username)
            raise UsernameTaken('Username already in use.')

    def _check_email(self, email: str) -> None:
        try:
            taken = self._users.email_exists(email)
        except InfrastructureError as e:
            raise CheckFailed('email',
                              'Error checking for existing email.') from e
        if taken:
            logger.debug('E-mail %s is taken', email)
            raise EmailTaken('Email already in use.')

    def _create(self, registration: domain.UserRegistration) -> domain.User:
        try:
            user = self._users.create_user(
                username=registration.username,
                email=registration.email,
                name=registration.name,
                avatar_url=self._avatar_url,
                password=registration.password
            )
        except UserExists as e:
            logger.info('Lost registration race for %s', registration.username)
            raise CreationFailed('Error creating new user.') from e
        except InfrastructureError as e:
            raise CreationFailed('Error creating new user.') from e
        logger.info('Created user %s', user.user_id)
        return user

    def _notify(self, user: domain.User, origin: str) -> None:
        token = self.activation_token(user)
        subject = f'New account created at {origin}'
        html = (
            f'<p>New account created for {escape(user.username)} at '
            f'{escape(origin)}.</p>'
            f'<p>Here is your activation token: {escape(token)}</p>'
        )
        try:
            self._mailer.send(user.email, subject, html)
        except MailDeliveryFailed as e:
            logger.error('Activation e-mail for user %s not sent: %s',
                         user.user_id, e)
            raise NotificationFailed('Error sending activation email.') from e


def current_registrar() -> Registrar:
    """Get a :class:`.Registrar` wired to the current application."""
    config = current_app.config
    return Registrar(
        current_directory(),
        current_mailer(),
        avatar_url=config['DEFAULT_AVATAR_URL'],
        secret=config['JWT_SECRET'],
        token_ttl=int(config.get('ACTIVATION_TOKEN_TTL', '86400'))
    )
