"""会话网关：按路径前缀决定放行或跳转登录

受保护路径在无法确认会话时一律跳转（fail closed），
其余路径在认证服务不可用时照常放行（fail open）。
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

from virality.config import Settings
from virality.errors import ViralityError
from virality.services.auth_client import AuthClient, AuthSession

logger = logging.getLogger(__name__)

PROTECTED_PREFIXES: Tuple[str, ...] = ("/dashboard", "/wizard")
LOGIN_PATH = "/login"


def is_protected(path: str) -> bool:
    return path.startswith(PROTECTED_PREFIXES)


@dataclass
class GateDecision:
    """网关判定结果，轮换后的 cookie 由调用方写回响应"""
    redirect_to: Optional[str] = None
    session: Optional[AuthSession] = None
    cookies_to_set: Dict[str, str] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return self.redirect_to is None


class SessionGate:
    """无状态的请求级会话检查"""

    def __init__(self, settings: Settings, auth_client: AuthClient):
        self.settings = settings
        self.auth_client = auth_client

    def has_session_cookie(self, cookies: Mapping[str, str]) -> bool:
        return bool(
            cookies.get(self.settings.access_cookie_name)
            or cookies.get(self.settings.refresh_cookie_name)
        )

    async def evaluate(self, path: str, cookies: Mapping[str, str]) -> GateDecision:
        protected = is_protected(path)

        if not self.settings.auth_configured:
            if protected:
                logger.warning(f"Auth backend not configured; redirecting {path} to login")
                return GateDecision(redirect_to=LOGIN_PATH)
            return GateDecision()

        if not self.has_session_cookie(cookies):
            return GateDecision(redirect_to=LOGIN_PATH) if protected else GateDecision()

        try:
            session = await self.auth_client.resolve_session(cookies)
        except ViralityError as e:
            logger.error(f"Session lookup failed for {path}: {e}")
            session = None
            if not protected:
                return GateDecision()

        if session is None:
            return GateDecision(redirect_to=LOGIN_PATH) if protected else GateDecision()

        return GateDecision(session=session, cookies_to_set=dict(session.rotated_cookies))
