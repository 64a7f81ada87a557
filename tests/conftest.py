import pytest

from app import create_app

# Routes register on the single app instance at import time, so the app is
# built once for the whole session before any test module is imported.
_app = create_app({
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'JWT_SECRET_KEY': 'test-secret',
    'BCRYPT_LOG_ROUNDS': 4,
    'RATELIMIT_ENABLED': False,
    'CACHE_TYPE': 'NullCache',
    'APP_TIMEZONE': 'Asia/Kolkata',
    'DEFAULT_COUNTRY_CODE': '91',
})

from agriops.core import get_db, get_bcrypt  # noqa: E402
from agriops.auth import create_local_jwt  # noqa: E402
from agriops.models import Agent, Farmer  # noqa: E402


@pytest.fixture
def app():
    db = get_db()
    with _app.app_context():
        db.drop_all()
        db.create_all()
        yield _app
        db.session.remove()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_agent(app):
    counter = {'n': 0}

    def _make(name=None, role='agent', password='secret'):
        counter['n'] += 1
        agent = Agent(
            name=name or f"Agent {counter['n']}",
            role=role,
            phone_number=f"98765{counter['n']:05d}",
            password_hash=get_bcrypt().generate_password_hash(password).decode('utf-8')
        )
        get_db().session.add(agent)
        get_db().session.commit()
        return agent

    return _make


@pytest.fixture
def make_farmer(app):
    def _make(number, name='Ramesh'):
        farmer = Farmer(name=name, number=number, identity='Farmer')
        get_db().session.add(farmer)
        get_db().session.commit()
        return farmer

    return _make


@pytest.fixture
def auth_header():
    def _header(agent):
        return {'Authorization': f"Bearer {create_local_jwt(agent)}"}

    return _header
