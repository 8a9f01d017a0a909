"""Application factory for the gatehouse app."""

import logging

from flask import Flask, Response, make_response
from werkzeug.exceptions import HTTPException

from . import app_logging
from .auth import Auth
from .routes import ui
from .services import mail, sessions, users

logger = logging.getLogger(__name__)


def plain_text_exception(error: HTTPException) -> Response:
    """Render an HTTP error as plain text, without internal details."""
    response = make_response(error.description or error.name, error.code)
    response.mimetype = 'text/plain'
    return response


def create_web_app() -> Flask:
    """Initialize and configure the gatehouse application."""
    app = Flask('gatehouse')
    app.config.from_pyfile('config.py')

    level = str(app.config['LOGLEVEL'])
    app_logging.setup_logger(int(level) if level.isdigit() else level.upper(),
                             json_format=app.config['LOG_JSON'])

    sessions.init_app(app)
    users.init_app(app)
    mail.init_app(app)
    Auth(app)   # Resolves the session cookie before each request.

    app.register_blueprint(ui.blueprint)
    app.register_error_handler(HTTPException, plain_text_exception)
    logger.debug('Created gatehouse app')
    return app
