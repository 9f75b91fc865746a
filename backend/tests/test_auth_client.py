import base64
import hashlib
import json

import pytest
import requests

from virality.errors import AuthUnavailableError, ConfigurationError
from virality.services.auth_client import AuthClient, generate_pkce_pair

from conftest import ALICE


def make_response(status_code, body=None):
    response = requests.Response()
    response.status_code = status_code
    response._content = json.dumps(body).encode() if body is not None else b""
    return response


class ScriptedSession:
    """按 URL 路径返回预设响应"""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def request(self, method, url, timeout=None, headers=None, json=None):
        self.calls.append((method, url, json))
        for suffix, result in self.routes.items():
            if url.endswith(suffix):
                if isinstance(result, Exception):
                    raise result
                return result
        raise AssertionError(f"unexpected request {method} {url}")


def test_valid_access_token(settings):
    session = ScriptedSession({"/auth/v1/user": make_response(200, ALICE)})
    client = AuthClient(settings, session=session)

    resolved = client.resolve_session_sync({"access_token": "token-alice"})

    assert resolved.user_id == ALICE["id"]
    assert resolved.rotated_cookies == {}
    assert session.calls[0][1] == "https://project.example.co/auth/v1/user"


def test_no_cookies_means_no_request(settings):
    session = ScriptedSession({})
    assert AuthClient(settings, session=session).resolve_session_sync({}) is None
    assert session.calls == []


def test_expired_access_token_is_refreshed(settings):
    session = ScriptedSession({
        "/auth/v1/user": make_response(401, {"msg": "expired"}),
        "grant_type=refresh_token": make_response(200, {
            "access_token": "new-access",
            "refresh_token": "new-refresh",
            "expires_in": 3600,
            "user": ALICE,
        }),
    })
    client = AuthClient(settings, session=session)

    resolved = client.resolve_session_sync({"access_token": "old", "refresh_token": "old-refresh"})

    assert resolved.user_id == ALICE["id"]
    assert resolved.rotated_cookies == {"access_token": "new-access", "refresh_token": "new-refresh"}
    assert session.calls[1][2] == {"refresh_token": "old-refresh"}


def test_rejected_refresh_token_means_anonymous(settings):
    session = ScriptedSession({
        "/auth/v1/user": make_response(401),
        "grant_type=refresh_token": make_response(400, {"error": "invalid_grant"}),
    })
    client = AuthClient(settings, session=session)

    assert client.resolve_session_sync({"access_token": "old", "refresh_token": "bad"}) is None


def test_server_error_raises_unavailable(settings):
    session = ScriptedSession({"/auth/v1/user": make_response(500)})
    with pytest.raises(AuthUnavailableError):
        AuthClient(settings, session=session).resolve_session_sync({"access_token": "t"})


def test_network_error_raises_unavailable(settings):
    session = ScriptedSession({"/auth/v1/user": requests.exceptions.ConnectionError("refused")})
    with pytest.raises(AuthUnavailableError):
        AuthClient(settings, session=session).fetch_user("t")


def test_unconfigured_client_refuses_requests(unconfigured_settings):
    client = AuthClient(unconfigured_settings, session=ScriptedSession({}))
    with pytest.raises(ConfigurationError):
        client.fetch_user("t")


def test_exchange_code_error_message(settings):
    session = ScriptedSession({
        "grant_type=pkce": make_response(400, {"error_description": "invalid flow state"}),
    })
    with pytest.raises(AuthUnavailableError) as exc:
        AuthClient(settings, session=session).exchange_code("code", "verifier")
    assert exc.value.message == "invalid flow state"


def test_pkce_challenge_matches_verifier():
    verifier, challenge = generate_pkce_pair()
    expected = base64.urlsafe_b64encode(hashlib.sha256(verifier.encode()).digest()).rstrip(b"=").decode()
    assert challenge == expected
    assert "=" not in challenge


def test_authorize_url(settings):
    url = AuthClient(settings, session=ScriptedSession({})).authorize_url("google", "abc")
    assert url.startswith("https://project.example.co/auth/v1/authorize?provider=google")
    assert "code_challenge=abc" in url
    assert "redirect_to=http%3A%2F%2Flocalhost%3A8000%2Fauth%2Fcallback" in url


def test_non_json_user_reply_raises_unavailable(settings):
    garbled = requests.Response()
    garbled.status_code = 200
    garbled._content = b"<html>upstream error</html>"
    session = ScriptedSession({"/auth/v1/user": garbled})
    with pytest.raises(AuthUnavailableError):
        AuthClient(settings, session=session).fetch_user("t")


def test_token_reply_without_access_token_raises_unavailable(settings):
    session = ScriptedSession({
        "/auth/v1/user": make_response(401),
        "grant_type=refresh_token": make_response(200, {"refresh_token": "r2"}),
    })
    with pytest.raises(AuthUnavailableError):
        AuthClient(settings, session=session).resolve_session_sync({"access_token": "t", "refresh_token": "r"})
