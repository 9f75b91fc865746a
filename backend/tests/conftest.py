import os
import tempfile
import uuid
from unittest.mock import MagicMock

# 测试使用内存 SQLite，需在导入 virality 之前设置
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="virality-logs-")
os.environ["STORE_URL"] = ""
os.environ["STORE_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

from virality.config import Settings
from virality.database import Base, SessionLocal, engine, get_db
from virality.errors import AuthUnavailableError
from virality.main import create_app
from virality.services.auth_client import AuthClient, AuthSession
from virality.services.store import AnalysisStore

ALICE = {
    "id": str(uuid.UUID("11111111-1111-4111-8111-111111111111")),
    "email": "alice@example.com",
    "user_metadata": {"full_name": "Alice Example"},
}
BOB = {
    "id": str(uuid.UUID("22222222-2222-4222-8222-222222222222")),
    "email": "bob@example.com",
    "user_metadata": {},
}

CREATE_PAYLOAD = {
    "content": "hello",
    "contentType": "text",
    "platforms": ["twitter"],
    "targetAudience": {"ageRange": "18-24", "interests": ["tech"], "demographics": ["US"]},
}


class FakeAuthClient(AuthClient):
    """认证服务替身：按 token 返回用户，可模拟不可达"""

    def __init__(self, settings: Settings):
        super().__init__(settings, session=MagicMock())
        self.users = {"token-alice": ALICE, "token-bob": BOB}
        self.refresh_tokens = {}
        self.unreachable = False
        self.signed_out = []

    def fetch_user(self, access_token):
        if self.unreachable:
            raise AuthUnavailableError("Auth backend unreachable")
        return self.users.get(access_token)

    def refresh(self, refresh_token):
        if self.unreachable:
            raise AuthUnavailableError("Auth backend unreachable")
        entry = self.refresh_tokens.get(refresh_token)
        if entry is None:
            return None
        access_token, new_refresh_token, user = entry
        return AuthSession(user=user, access_token=access_token, refresh_token=new_refresh_token)

    def exchange_code(self, code, code_verifier):
        if code == "good-code":
            return AuthSession(user=ALICE, access_token="token-alice", refresh_token="refresh-alice")
        raise AuthUnavailableError("invalid grant")

    def sign_out(self, access_token):
        self.signed_out.append(access_token)


@pytest.fixture
def settings():
    return Settings(
        store_url="https://project.example.co",
        store_api_key="anon-key",
        database_url="sqlite://",
        default_credits=3,
        log_dir=os.environ["LOG_DIR"],
    )


@pytest.fixture
def unconfigured_settings(settings):
    return settings.model_copy(update={"store_url": "", "store_api_key": ""})


@pytest.fixture
def db_session():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store(db_session, settings):
    return AnalysisStore(db_session, settings)


@pytest.fixture
def alice_profile(store):
    return store.ensure_profile(ALICE)


@pytest.fixture
def auth_client(settings):
    return FakeAuthClient(settings)


def _build_client(app, db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def app(settings, auth_client):
    return create_app(settings, auth_client)


@pytest.fixture
def client(app, db_session):
    with _build_client(app, db_session) as test_client:
        yield test_client


@pytest.fixture
def alice_client(client, alice_profile):
    client.cookies.set("access_token", "token-alice")
    return client


@pytest.fixture
def unconfigured_client(unconfigured_settings, db_session):
    app = create_app(unconfigured_settings, FakeAuthClient(unconfigured_settings))
    with _build_client(app, db_session) as test_client:
        yield test_client
