import asyncio
import json

import pytest
import requests
from fastapi.testclient import TestClient

from virality.main import create_app
from virality.services.auth_client import AuthClient
from virality.services.session_gate import SessionGate, is_protected

from conftest import ALICE, FakeAuthClient


def _evaluate(gate, path, cookies=None):
    return asyncio.run(gate.evaluate(path, cookies or {}))


@pytest.fixture
def gate(settings, auth_client):
    return SessionGate(settings, auth_client)


@pytest.fixture
def unconfigured_gate(unconfigured_settings):
    return SessionGate(unconfigured_settings, FakeAuthClient(unconfigured_settings))


# ── 路径判定 ──────────────────────────────────────────────────────────────

@pytest.mark.parametrize("path", ["/dashboard", "/dashboard/settings", "/wizard", "/wizard/step-2"])
def test_protected_paths(path):
    assert is_protected(path)


@pytest.mark.parametrize("path", ["/", "/login", "/api/analysis", "/health", "/auth/callback"])
def test_unprotected_paths(path):
    assert not is_protected(path)


# ── 受保护路径：fail closed ───────────────────────────────────────────────

@pytest.mark.parametrize("path", ["/dashboard", "/dashboard/settings", "/wizard"])
def test_protected_without_cookie_redirects(gate, path):
    decision = _evaluate(gate, path)
    assert decision.redirect_to == "/login"


def test_protected_with_invalid_token_redirects(gate):
    decision = _evaluate(gate, "/dashboard", {"access_token": "expired"})
    assert decision.redirect_to == "/login"


def test_protected_when_auth_unreachable_redirects(gate, auth_client):
    auth_client.unreachable = True
    decision = _evaluate(gate, "/dashboard", {"access_token": "token-alice"})
    assert decision.redirect_to == "/login"


def test_protected_when_unconfigured_redirects(unconfigured_gate):
    decision = _evaluate(unconfigured_gate, "/wizard", {"access_token": "token-alice"})
    assert decision.redirect_to == "/login"


def test_protected_with_valid_session_passes(gate):
    decision = _evaluate(gate, "/dashboard", {"access_token": "token-alice"})
    assert decision.passed
    assert decision.session.user == ALICE
    assert decision.cookies_to_set == {}


# ── 非保护路径：fail open ─────────────────────────────────────────────────

@pytest.mark.parametrize("cookies", [{}, {"access_token": "expired"}, {"access_token": "token-alice"}])
def test_unprotected_always_passes(gate, cookies):
    assert _evaluate(gate, "/", cookies).passed


def test_unprotected_passes_when_auth_unreachable(gate, auth_client):
    auth_client.unreachable = True
    decision = _evaluate(gate, "/", {"access_token": "token-alice"})
    assert decision.passed
    assert decision.session is None


def test_unprotected_passes_when_unconfigured(unconfigured_gate):
    assert _evaluate(unconfigured_gate, "/").passed


# ── 会话刷新 ──────────────────────────────────────────────────────────────

def test_expired_access_token_is_refreshed_and_rotated(gate, auth_client):
    auth_client.refresh_tokens["refresh-1"] = ("token-new", "refresh-2", ALICE)
    decision = _evaluate(gate, "/dashboard", {"access_token": "expired", "refresh_token": "refresh-1"})
    assert decision.passed
    assert decision.session.access_token == "token-new"
    assert decision.cookies_to_set == {"access_token": "token-new", "refresh_token": "refresh-2"}


def test_rejected_refresh_token_redirects(gate):
    decision = _evaluate(gate, "/dashboard", {"refresh_token": "revoked"})
    assert decision.redirect_to == "/login"


# ── 中间件 ────────────────────────────────────────────────────────────────

def test_dashboard_settings_without_session_redirects_to_login(client):
    response = client.get("/dashboard/settings", follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == "/login"


def test_landing_renders_when_store_url_unset(unconfigured_client):
    response = unconfigured_client.get("/", follow_redirects=False)
    assert response.status_code == 200
    body = response.json()
    assert body["configured"] is False
    assert body["setup_instructions"]


def test_unconfigured_dashboard_redirects(unconfigured_client):
    response = unconfigured_client.get("/dashboard", follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == "/login"


def test_rotated_cookies_are_written_back(client, alice_profile, auth_client):
    auth_client.refresh_tokens["refresh-1"] = ("token-alice", "refresh-2", ALICE)
    client.cookies.set("refresh_token", "refresh-1")
    response = client.get("/dashboard", follow_redirects=False)
    assert response.status_code == 200
    set_cookie = response.headers.get_list("set-cookie")
    assert any(c.startswith("access_token=token-alice") for c in set_cookie)
    assert any(c.startswith("refresh_token=refresh-2") for c in set_cookie)
    assert all("HttpOnly" in c for c in set_cookie)


# ── 认证服务返回格式错误的响应 ────────────────────────────────────────────

class _GarbledSession:
    """认证服务返回 200，但响应体不是合法 JSON / 缺少 access_token"""

    def __init__(self, refresh_body=None):
        self.refresh_body = refresh_body

    def request(self, method, url, **kwargs):
        response = requests.Response()
        response.status_code = 200
        if "grant_type=refresh_token" in url and self.refresh_body is not None:
            response._content = json.dumps(self.refresh_body).encode()
        elif url.endswith("/user") and self.refresh_body is not None:
            response.status_code = 401
            response._content = b"{}"
        else:
            response._content = b"<html>gateway error</html>"
        return response


@pytest.mark.parametrize("session", [
    _GarbledSession(),
    _GarbledSession(refresh_body={"token_type": "bearer"}),
])
def test_malformed_auth_reply_passes_unprotected(settings, session):
    gate = SessionGate(settings, AuthClient(settings, session=session))
    decision = _evaluate(gate, "/", {"access_token": "t", "refresh_token": "r"})
    assert decision.passed
    assert decision.session is None


def test_malformed_auth_reply_redirects_protected(settings):
    gate = SessionGate(settings, AuthClient(settings, session=_GarbledSession()))
    decision = _evaluate(gate, "/dashboard", {"access_token": "t"})
    assert decision.redirect_to == "/login"


def test_malformed_auth_reply_renders_landing(settings, db_session):
    app = create_app(settings, AuthClient(settings, session=_GarbledSession()))
    with TestClient(app) as client:
        client.cookies.set("access_token", "t")
        response = client.get("/")
    assert response.status_code == 200
    assert response.json()["name"] == "Virality Analyzer"
