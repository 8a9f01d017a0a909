"""
Controllers for logging in and out.

When a user logs in, they are issued a session ID that is stored as a
cookie in their browser. That session ID is registered in the distributed
keystore along with the user's ID. In subsequent requests
:class:`gatehouse.auth.Auth` uses the session ID to find the user.
"""

from http import HTTPStatus as status
from typing import Any, Dict, Optional, Tuple
import logging

from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import ServiceUnavailable
from wtforms import Form, PasswordField, StringField
from wtforms.validators import DataRequired

from ..auth.exceptions import AuthenticationFailed
from ..auth.manager import current_manager
from ..auth.strategies import get_strategy
from ..services.exceptions import InfrastructureError

logger = logging.getLogger(__name__)

ResponseData = Tuple[dict, int, dict]


class LoginForm(Form):
    """Log in form."""

    email = StringField('Username or e-mail', validators=[DataRequired()])
    passwd = PasswordField('Password', validators=[DataRequired()])


def login(form_data: MultiDict, session_id: Optional[str],
          next_page: str) -> ResponseData:
    """
    Log a user in.

    Parameters
    ----------
    form_data : MultiDict
        Should include `email` and `passwd` data.
    session_id : str or None
        The session ID currently held by the client, if any. It is replaced
        by a new one on success.
    next_page : str
        Page to which the user is redirected, whether or not the login
        succeeds.

    Returns
    -------
    dict
        Additional data to add to the response.
    int
        Status code. This should be 303 (See Other) if all goes well.
    dict
        Headers to add to the response.

    """
    logger.debug('Login form submitted')
    form = LoginForm(form_data)
    data: Dict[str, Any] = {}
    if not form.validate():
        logger.debug('Form data is not valid')
        return data, status.SEE_OTHER, {'Location': next_page}

    try:    # Attempt to authenticate the user with the credentials provided.
        user = get_strategy('password').authenticate(form.email.data,
                                                     form.passwd.data)
    except AuthenticationFailed as e:
        logger.debug('Authentication failed: %s', e)
        return data, status.SEE_OTHER, {'Location': next_page}
    except InfrastructureError as e:
        raise ServiceUnavailable('Cannot log in') from e

    try:    # Create a session in the distributed session store.
        session = current_manager().establish(user.user_id,
                                              replaces=session_id)
    except InfrastructureError as e:
        logger.error('Could not create session: %s', e)
        raise ServiceUnavailable('Cannot log in') from e

    # The UI route should use these to set cookies on the response.
    data.update({
        'cookies': {
            'auth_session_cookie': (session.session_id, session.expires)
        },
        'user_id': user.user_id
    })
    return data, status.SEE_OTHER, {'Location': next_page}


def logout(session_id: Optional[str], next_page: str) -> ResponseData:
    """
    Log the user out.

    Parameters
    ----------
    session_id : str or None
        If not None, invalidates the session.
    next_page : str
        Page to which the user should be redirected upon logout.

    """
    logger.debug('Request to log out')
    try:
        current_manager().destroy(session_id)
    except InfrastructureError as e:
        # The cookie is cleared anyway; the record runs out its TTL.
        logger.error('Could not reach session store: %s', e)
    data = {
        'cookies': {
            'auth_session_cookie': ('', 0)
        }
    }
    return data, status.SEE_OTHER, {'Location': next_page}
