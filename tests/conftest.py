import pytest
from fastapi.testclient import TestClient

from trustroute.config import Settings
from trustroute.database import Base
from trustroute.main import create_app
from trustroute.models import BusOperator, RefundPolicy
from tests.helpers import FakeChatClient, STANDARD_RULES, ADMIN_KEY, signup_and_login

@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL="sqlite://",
        SECRET_KEY="test-secret",
        ADMIN_API_KEY=ADMIN_KEY,
        REFUND_POLICY_PATH=str(tmp_path / "missing_policy.md"),
        OPENROUTER_API_KEY="test-key",
        LOG_LEVEL="WARNING",
    )

@pytest.fixture
def chat_client():
    return FakeChatClient()

@pytest.fixture
def app(settings, chat_client):
    application = create_app(settings, chat_client=chat_client)
    Base.metadata.create_all(bind=application.state.engine)
    yield application
    Base.metadata.drop_all(bind=application.state.engine)
    application.state.engine.dispose()

@pytest.fixture
def db(app):
    session = app.state.session_factory()
    yield session
    session.close()

@pytest.fixture
def make_client(app):
    """Build independent clients so each keeps its own session cookie"""
    clients = []

    def _make():
        client = TestClient(app)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()

@pytest.fixture
def client(make_client):
    return make_client()

@pytest.fixture
def auth_client(client):
    signup_and_login(client)
    return client

@pytest.fixture
def operator(db):
    op = BusOperator(name="MetroWay")
    db.add(op)
    db.flush()
    policy = RefundPolicy(operator_id=op.id, version=1, is_current=True, rules=STANDARD_RULES)
    db.add(policy)
    db.commit()
    return {"operator_id": op.id, "policy_id": policy.id}
