import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from chesslab_app import create_app, db
from chesslab_app.config import Config
from chesslab_app.models import User
from chesslab_app.modules.repertoire.services.repertoire_service import RepertoireService


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'connect_args': {'check_same_thread': False}
    }
    WTF_CSRF_ENABLED = False
    LOG_TO_FILE = False


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _make_user(username):
    user = User(username=username, email=f'{username}@example.com')
    user.set_password('password123')
    db.session.add(user)
    db.session.flush()
    RepertoireService.ensure_user_repertoires(user.user_id)
    db.session.commit()
    return user


@pytest.fixture
def user(app):
    return _make_user('alice')


@pytest.fixture
def other_user(app):
    return _make_user('bob')


@pytest.fixture
def login(client):
    def _login(user):
        with client.session_transaction() as sess:
            sess['_user_id'] = str(user.user_id)
            sess['_fresh'] = True
        return client
    return _login


@pytest.fixture
def auth_client(login, user):
    return login(user)
