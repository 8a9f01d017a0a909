"""Provides a unified API for sending e-mail."""

import logging
import smtplib
import threading
from email.message import EmailMessage
from typing import Any, Mapping, Optional

from flask import Flask, current_app

from .exceptions import MailDeliveryFailed

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'gatehouse.mail'

_lock = threading.Lock()


class MailSession(object):
    """
    Sends messages through an SMTP relay.

    A new SMTP connection is opened for each message, so a single instance
    can be shared between concurrent requests.
    """

    def __init__(self, host: str = "", port: int = 0, sender: str = "",
                 user: str = "", password: str = "", secure: bool = False,
                 timeout: float = 10) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._user = user
        self._password = password
        self._secure = secure
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'MailSession':
        """Configure the relay from application configuration."""
        return cls(
            host=config.get('SMTP_HOST', 'localhost'),
            port=int(config.get('SMTP_PORT', '25')),
            sender=config.get('MAIL_SENDER', ''),
            user=config.get('SMTP_USER', ''),
            password=config.get('SMTP_PASS', ''),
            secure=bool(config.get('SMTP_SECURE', False)),
            timeout=float(config.get('SMTP_TIMEOUT', '10'))
        )

    @property
    def sender(self) -> str:
        """The ``From`` address of outbound mail."""
        return self._sender

    def _new_connection(self) -> smtplib.SMTP:
        if self._secure:
            return smtplib.SMTP_SSL(host=self._host, port=self._port,
                                    timeout=self._timeout)
        return smtplib.SMTP(host=self._host, port=self._port,
                            timeout=self._timeout)

    def send(self, to: str, subject: str, html: str) -> None:
        """
        Send an HTML message.

        Plain connections are upgraded with STARTTLS whenever the relay
        offers it, before any login.

        Raises
        ------
        :class:`MailDeliveryFailed`
            The relay could not be reached, refused the login, or rejected
            the message.

        """
        message = EmailMessage()
        message['From'] = self._sender
        message['To'] = to
        message['Subject'] = subject
        message.set_content(html, subtype='html')
        try:
            with self._new_connection() as conn:
                if not self._secure:
                    conn.ehlo()
                    if conn.has_extn('starttls'):
                        conn.starttls()
                        conn.ehlo()     # Extensions change after TLS.
                if self._user:
                    conn.login(self._user, self._password)
                conn.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error('Could not send mail to %s: %s', to, e)
            raise MailDeliveryFailed(f'Could not send mail: {e}') from e
        logger.debug('Sent mail to %s: %s', to, subject)


def init_app(app: Flask) -> None:
    """Set default configuration parameters for an application instance."""
    app.config.setdefault('SMTP_HOST', 'localhost')
    app.config.setdefault('SMTP_PORT', '25')
    app.config.setdefault('SMTP_USER', '')
    app.config.setdefault('SMTP_PASS', '')
    app.config.setdefault('SMTP_SECURE', False)
    app.config.setdefault('SMTP_TIMEOUT', '10')
    app.config.setdefault('MAIL_SENDER', 'noreply@localhost')


def current_mailer() -> MailSession:
    """Get/create the :class:`.MailSession` for the current application."""
    mailer: Optional[MailSession] = current_app.extensions.get(EXTENSION_KEY)
    if mailer is None:
        with _lock:
            mailer = current_app.extensions.get(EXTENSION_KEY)
            if mailer is None:
                mailer = MailSession.from_config(current_app.config)
                current_app.extensions[EXTENSION_KEY] = mailer
    return mailer
