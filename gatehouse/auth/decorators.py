"""
Protects routes that require an authenticated user.

:class:`gatehouse.auth.Auth` resolves the session cookie before each
request and puts the user (or ``None``) on ``request.auth``.
:func:`login_required` only lets the request through when a user is
present.

.. code-block:: python

   @blueprint.route('/account', methods=['GET'])
   @login_required
   def account() -> Response:
       return make_response(f'Hi, {request.auth.username}.')

"""

import logging
from functools import wraps
from http import HTTPStatus as status
from typing import Any, Callable

from flask import current_app, make_response, redirect, request

from .. import domain

logger = logging.getLogger(__name__)


def is_authenticated() -> bool:
    """Whether the current request carries a valid session."""
    return isinstance(getattr(request, 'auth', None), domain.User)


def login_required(func: Callable) -> Callable:
    """Redirect anonymous users to the login page."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        if not is_authenticated():
            logger.debug('No valid session; redirecting')
            target = current_app.config.get('LOGIN_REQUIRED_REDIRECT_URL',
                                            '/login')
            return make_response(redirect(target, code=status.SEE_OTHER))
        return func(*args, **kwargs)
    return wrapper
