"""Provides tools for working with authenticated user sessions."""

from typing import Optional
import logging

from flask import Flask, request

from . import decorators
from ..services.exceptions import InfrastructureError
from .manager import SessionManager, current_manager

logger = logging.getLogger(__name__)


class Auth(object):
    """
    Attaches the authenticated user to the request.

    Intended for use in a Flask application factory, for example:

    .. code-block:: python

       from flask import Flask
       from gatehouse.auth import Auth
       from someapp import routes


       def create_web_app() -> Flask:
          app = Flask('someapp')
          app.config.from_pyfile('config.py')
          Auth(app)   # Registers the before_request auth check
          app.register_blueprint(routes.blueprint)    # Your blueprint.
          return app


    After that, ``request.auth`` is a :class:`gatehouse.domain.User` when
    the request has a valid session cookie, and ``None`` otherwise.
    ``request.session_id`` holds the raw cookie value, if any.
    """

    def __init__(self, app: Optional[Flask] = None) -> None:
        """
        Initialize ``app`` with `Auth`.

        Parameters
        ----------
        app : :class:`Flask`

        """
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """
        Attach :meth:`.load_session` to the Flask app.

        Parameters
        ----------
        app : :class:`Flask`

        """
        self.app = app
        app.extensions['gatehouse.auth'] = self
        app.config.setdefault('AUTH_SESSION_COOKIE_NAME', 'gatehouse_session')
        app.config.setdefault('LOGIN_REQUIRED_REDIRECT_URL', '/login')
        app.before_request(self.load_session)

    def load_session(self) -> None:
        """
        Look for an active session, and attach its user to the request.

        This is run before each Flask request. A missing or invalid session
        is not an error here; it just leaves ``request.auth`` as ``None``.
        """
        cookie_name = self.app.config['AUTH_SESSION_COOKIE_NAME']
        session_id = request.cookies.get(cookie_name)
        request.session_id = session_id
        request.auth = None
        if session_id:
            try:
                request.auth = current_manager().resolve(session_id)
            except InfrastructureError as e:
                logger.error('Session store unavailable: %s', e)
                return
            if request.auth is None:
                logger.debug('Session cookie present but not valid')


__all__ = ('Auth', 'SessionManager', 'current_manager', 'decorators')
