"""Provides Flask integration for the external interface."""

from datetime import timedelta
from http import HTTPStatus as status
from typing import Optional
import logging

from flask import Blueprint, request, make_response, redirect, \
    current_app, Response
from werkzeug.datastructures import MultiDict

from ..auth.decorators import login_required
from ..controllers import authentication, registration

logger = logging.getLogger(__name__)
blueprint = Blueprint('ui', __name__, url_prefix='')


def set_cookies(response: Response, data: dict) -> None:
    """
    Update a :class:`.Response` with cookies in controller data.

    Contollers seeking to update cookies must include a 'cookies' key
    in their response data.
    """
    cookies = data.pop('cookies', None)
    if cookies is None:
        return None
    for cookie_key, (cookie_value, expires) in cookies.items():
        cookie_name = current_app.config[f'{cookie_key.upper()}_NAME']
        max_age = timedelta(seconds=expires)
        logger.debug('Set cookie %s, max_age %s', cookie_name, max_age)
        params = dict(httponly=True, path='/', samesite='Lax')
        if current_app.config['AUTH_SESSION_COOKIE_SECURE']:
            params.update({'secure': True})
        response.set_cookie(cookie_name, cookie_value, max_age=max_age,
                            **params)


def form_data() -> MultiDict:
    """Get submitted fields from either a form or a JSON body."""
    if request.is_json:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return MultiDict()
        return MultiDict({key: str(value) for key, value in payload.items()
                          if value is not None})
    return request.form


def plain_text(content: str, code: int,
               headers: Optional[dict] = None) -> Response:
    """Make a plain-text response."""
    response = make_response(content, code, headers or {})
    response.mimetype = 'text/plain'
    return response


@blueprint.after_app_request
def apply_response_headers(response: Response) -> Response:
    """Apply response headers to all responses."""
    # Prevent UI redress attacks.
    response.headers['Content-Security-Policy'] = "frame-ancestors 'none'"
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'same-origin'
    return response


@blueprint.route('/', methods=['GET'])
def index() -> Response:
    """Landing page."""
    return plain_text('Hi.', status.OK)


@blueprint.route('/auth/login', methods=['POST'])
def login() -> Response:
    """User can log in with username or e-mail and password."""
    next_page = current_app.config['DEFAULT_LOGIN_REDIRECT_URL']
    logger.debug('Request to log in, then redirect to %s', next_page)
    data, code, headers = authentication.login(form_data(),
                                               request.session_id,
                                               next_page)
    # Flask puts cookie-setting methods on the response, so we do that here
    # instead of in the controller.
    response = make_response(redirect(headers['Location'], code=code))
    set_cookies(response, data)
    return response


@blueprint.route('/auth/register', methods=['POST'])
def register() -> Response:
    """Interface for creating new accounts."""
    data, code, headers = registration.register(form_data(),
                                                request.host_url)
    return plain_text(data['message'], code, headers)


@blueprint.route('/logout', methods=['GET'])
def logout() -> Response:
    """Log out."""
    next_page = current_app.config['DEFAULT_LOGOUT_REDIRECT_URL']
    logger.debug('Request to log out, then redirect to %s', next_page)
    data, code, headers = authentication.logout(request.session_id,
                                                next_page)
    response = make_response(redirect(headers['Location'], code=code))
    set_cookies(response, data)
    return response


@blueprint.route('/account', methods=['GET'])
@login_required
def account() -> Response:
    """Account page; only for authenticated users."""
    return plain_text('Hi.', status.OK)


@blueprint.route('/auth_status', methods=['GET'])
def auth_status() -> Response:
    """Get if the app is running."""
    return plain_text('OK', status.OK)
