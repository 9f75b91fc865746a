"""托管认证服务客户端（OAuth + 会话刷新）"""
import asyncio
import base64
import hashlib
import logging
import secrets
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode

import requests

from virality.config import Settings
from virality.errors import AuthUnavailableError, ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class AuthSession:
    """已解析的会话"""
    user: Dict[str, Any]
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    # 刷新后轮换的 cookie，需原样写回响应
    rotated_cookies: Dict[str, str] = field(default_factory=dict)

    @property
    def user_id(self) -> str:
        return str(self.user.get("id", ""))


def generate_pkce_pair() -> tuple[str, str]:
    """生成 PKCE code_verifier / code_challenge(S256)"""
    verifier = secrets.token_urlsafe(48)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


class AuthClient:
    """认证服务客户端，同步 requests 调用放到线程中执行"""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.base_url = settings.store_url.rstrip("/")
        self.api_key = settings.store_api_key
        self.timeout = settings.auth_timeout
        self.http = session or requests.Session()

    @property
    def configured(self) -> bool:
        return self.settings.auth_configured

    def _require_config(self) -> None:
        if not self.configured:
            raise ConfigurationError("Auth backend is not configured (STORE_URL / STORE_API_KEY)")

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        headers = {"apikey": self.api_key, "Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        self._require_config()
        url = f"{self.base_url}/auth/v1{path}"
        try:
            return self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            logger.error(f"Timeout calling auth backend: {path}")
            raise AuthUnavailableError("Auth backend timed out") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Could not reach auth backend: {type(e).__name__}: {e}")
            raise AuthUnavailableError("Auth backend unreachable") from e

    def _json_object(self, response: requests.Response) -> Dict[str, Any]:
        """解析 2xx 响应体；格式不对按服务不可用处理"""
        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Auth backend returned a non-JSON body ({response.status_code})")
            raise AuthUnavailableError("Auth backend returned an invalid response") from e
        if not isinstance(data, dict):
            raise AuthUnavailableError("Auth backend returned an invalid response")
        return data

    def _session_from_token_response(self, response: requests.Response) -> AuthSession:
        data = self._json_object(response)
        access_token = data.get("access_token")
        if not access_token:
            raise AuthUnavailableError("Auth backend token response has no access_token")
        return AuthSession(
            user=data.get("user") if isinstance(data.get("user"), dict) else {},
            access_token=access_token,
            refresh_token=data.get("refresh_token"),
            expires_in=data.get("expires_in"),
        )

    # ---------- 同步接口 ----------

    def fetch_user(self, access_token: str) -> Optional[Dict[str, Any]]:
        """校验 access token；无效返回 None，服务异常抛 AuthUnavailableError"""
        response = self._request("GET", "/user", headers=self._headers(access_token))
        if response.status_code == 200:
            return self._json_object(response)
        if response.status_code in (401, 403):
            return None
        raise AuthUnavailableError(f"Auth backend returned {response.status_code}")

    def refresh(self, refresh_token: str) -> Optional[AuthSession]:
        response = self._request(
            "POST",
            "/token?grant_type=refresh_token",
            headers=self._headers(),
            json={"refresh_token": refresh_token},
        )
        if response.status_code == 200:
            return self._session_from_token_response(response)
        if 400 <= response.status_code < 500:
            return None
        raise AuthUnavailableError(f"Auth backend returned {response.status_code}")

    def exchange_code(self, code: str, code_verifier: str) -> AuthSession:
        response = self._request(
            "POST",
            "/token?grant_type=pkce",
            headers=self._headers(),
            json={"auth_code": code, "code_verifier": code_verifier},
        )
        if response.status_code != 200:
            message = _error_message(response) or "OAuth code exchange failed"
            raise AuthUnavailableError(message)
        return self._session_from_token_response(response)

    def sign_out(self, access_token: str) -> None:
        response = self._request("POST", "/logout", headers=self._headers(access_token))
        if response.status_code >= 400:
            logger.warning(f"Sign out returned {response.status_code}")

    def authorize_url(self, provider: str, code_challenge: str) -> str:
        self._require_config()
        params = {
            "provider": provider,
            "redirect_to": f"{self.settings.site_url.rstrip('/')}/auth/callback",
            "code_challenge": code_challenge,
            "code_challenge_method": "s256",
        }
        return f"{self.base_url}/auth/v1/authorize?{urlencode(params)}"

    def resolve_session_sync(self, cookies: Mapping[str, str]) -> Optional[AuthSession]:
        """从 cookie 解析会话；access token 失效时尝试用 refresh token 轮换"""
        access_token = cookies.get(self.settings.access_cookie_name)
        refresh_token = cookies.get(self.settings.refresh_cookie_name)
        if not access_token and not refresh_token:
            return None

        if access_token:
            user = self.fetch_user(access_token)
            if user:
                return AuthSession(user=user, access_token=access_token, refresh_token=refresh_token)

        if not refresh_token:
            return None

        session = self.refresh(refresh_token)
        if session is None:
            return None
        if not session.user:
            session.user = self.fetch_user(session.access_token) or {}
            if not session.user:
                return None
        session.rotated_cookies = {self.settings.access_cookie_name: session.access_token}
        if session.refresh_token:
            session.rotated_cookies[self.settings.refresh_cookie_name] = session.refresh_token
        logger.info(f"Refreshed session for user {session.user_id}")
        return session

    # ---------- 异步接口 ----------

    async def resolve_session(self, cookies: Mapping[str, str]) -> Optional[AuthSession]:
        return await asyncio.to_thread(self.resolve_session_sync, dict(cookies))

    async def aexchange_code(self, code: str, code_verifier: str) -> AuthSession:
        return await asyncio.to_thread(self.exchange_code, code, code_verifier)

    async def asign_out(self, access_token: str) -> None:
        await asyncio.to_thread(self.sign_out, access_token)


def _error_message(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return ""
    if not isinstance(data, dict):
        return ""
    return str(data.get("error_description") or data.get("msg") or data.get("error") or "")
