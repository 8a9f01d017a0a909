import pytest

from gatehouse.factory import create_web_app
from gatehouse.services import mail, users
from gatehouse.tests.util import FakeMailer, FakeUserDirectory


@pytest.fixture()
def directory():
    return FakeUserDirectory()


@pytest.fixture()
def mailer():
    return FakeMailer()


@pytest.fixture()
def app(directory, mailer):
    app = create_web_app()
    app.config['REDIS_FAKE'] = True
    app.config['JWT_SECRET'] = 'foosecret'
    app.config['SESSION_KEY_PREFIX'] = 'test-sess:'
    app.extensions[users.EXTENSION_KEY] = directory
    app.extensions[mail.EXTENSION_KEY] = mailer
    return app


@pytest.fixture()
def client(app):
    return app.test_client()
