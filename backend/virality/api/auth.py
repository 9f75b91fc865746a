"""OAuth 登录 / 回调 / 退出"""
import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from virality.api.deps import get_app_settings, get_auth_client, get_optional_session, get_store
from virality.api.middleware import set_session_cookies
from virality.config import Settings
from virality.errors import NotFoundError, ViralityError
from virality.services.auth_client import AuthClient, AuthSession, generate_pkce_pair
from virality.services.store import AnalysisStore

router = APIRouter()
logger = logging.getLogger(__name__)


def _login_error_redirect(message: str) -> RedirectResponse:
    return RedirectResponse(url=f"/login?error={quote(message)}", status_code=303)


@router.get("/login/{provider}")
async def start_login(
    provider: str,
    settings: Settings = Depends(get_app_settings),
    auth_client: AuthClient = Depends(get_auth_client),
):
    """开始 OAuth 登录：保存 PKCE verifier 并跳转到认证服务"""
    if provider not in settings.provider_list:
        raise NotFoundError(f"Unknown sign-in provider: {provider}")

    verifier, challenge = generate_pkce_pair()
    response = RedirectResponse(url=auth_client.authorize_url(provider, challenge), status_code=303)
    response.set_cookie(
        settings.pkce_cookie_name,
        verifier,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=600,
        path="/",
    )
    return response


@router.get("/callback")
async def oauth_callback(
    request: Request,
    code: Optional[str] = None,
    error_description: Optional[str] = None,
    settings: Settings = Depends(get_app_settings),
    auth_client: AuthClient = Depends(get_auth_client),
    store: AnalysisStore = Depends(get_store),
):
    """OAuth 回调：换取会话、初始化用户资料、写入会话 cookie"""
    if error_description:
        return _login_error_redirect(error_description)
    verifier = request.cookies.get(settings.pkce_cookie_name)
    if not code or not verifier:
        return _login_error_redirect("Missing authorization code")

    try:
        session = await auth_client.aexchange_code(code, verifier)
    except ViralityError as e:
        logger.error(f"OAuth code exchange failed: {e}")
        return _login_error_redirect(e.message)

    store.ensure_profile(session.user)

    response = RedirectResponse(url="/dashboard", status_code=303)
    cookies = {settings.access_cookie_name: session.access_token}
    if session.refresh_token:
        cookies[settings.refresh_cookie_name] = session.refresh_token
    set_session_cookies(response, cookies, settings)
    response.delete_cookie(settings.pkce_cookie_name, path="/")
    logger.info(f"User {session.user_id} signed in")
    return response


@router.post("/signout")
async def sign_out(
    settings: Settings = Depends(get_app_settings),
    auth_client: AuthClient = Depends(get_auth_client),
    session: Optional[AuthSession] = Depends(get_optional_session),
):
    """退出登录：通知认证服务失效会话并清除 cookie"""
    if session is not None:
        try:
            await auth_client.asign_out(session.access_token)
        except ViralityError as e:
            logger.warning(f"Sign out at auth backend failed: {e}")

    response = RedirectResponse(url="/", status_code=303)
    response.delete_cookie(settings.access_cookie_name, path="/")
    response.delete_cookie(settings.refresh_cookie_name, path="/")
    return response
