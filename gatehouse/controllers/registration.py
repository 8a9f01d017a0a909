"""Controller for account registration."""

from http import HTTPStatus as status
from typing import Tuple
import logging

from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import InternalServerError, ServiceUnavailable
from wtforms import Form, PasswordField, StringField
from wtforms.validators import DataRequired, Length, Optional, Regexp

from .. import domain
from ..process.registration import CheckFailed, CreationFailed, \
    EmailTaken, UsernameTaken, current_registrar

logger = logging.getLogger(__name__)

ResponseData = Tuple[dict, int, dict]

CREATED = ('New user created. Please check your e-mail for first-login '
           'authentication token.')
CREATED_NOT_NOTIFIED = ('New user created, but the activation e-mail could '
                        'not be sent.')
INVALID = 'Invalid registration data.'


class RegistrationForm(Form):
    """User registration form."""

    username = StringField('Username',
                           validators=[DataRequired(), Length(max=255)])
    email = StringField('E-mail address',
                        validators=[DataRequired(), Length(max=255),
                                    Regexp(r'^[^@\s]+@[^@\s]+$')])
    name = StringField('Name', validators=[Optional(), Length(max=255)])
    password = PasswordField('Password', validators=[DataRequired()])

    def to_domain(self) -> domain.UserRegistration:
        """Generate a :class:`.UserRegistration` from this form's data."""
        return domain.UserRegistration(
            username=self.username.data,
            email=self.email.data,
            name=self.name.data or '',
            password=self.password.data
        )


def register(form_data: MultiDict, origin: str) -> ResponseData:
    """
    Handle a registration request.

    Parameters
    ----------
    form_data : MultiDict
        Should include `username`, `email`, `name` and `password`.
    origin : str
        The site on which the account is being created.

    Returns
    -------
    dict
        Includes ``message``, a plain-text status for the client.
    int
        201 (Created) if the account was created.
    dict
        Headers to add to the response.

    """
    logger.debug('Registration form submitted')
    form = RegistrationForm(form_data)
    if not form.validate():
        logger.debug('Registration form not valid: %s', form.errors)
        return {'message': INVALID}, status.BAD_REQUEST, {}

    try:
        registration = current_registrar().register(form.to_domain(), origin)
    except UsernameTaken as e:
        return {'message': str(e)}, status.CONFLICT, {}
    except EmailTaken as e:
        return {'message': str(e)}, status.CONFLICT, {}
    except CheckFailed as e:
        logger.error('Registration check failed at %s: %s', e.step, e)
        raise ServiceUnavailable(str(e)) from e
    except CreationFailed as e:
        logger.error('Registration failed: %s', e)
        raise InternalServerError(str(e)) from e

    data = {'user_id': registration.user.user_id, 'message': CREATED}
    if not registration.notified:
        data['message'] = CREATED_NOT_NOTIFIED
    return data, status.CREATED, {}
