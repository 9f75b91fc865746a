"""页面视图（首页 / 登录 / 仪表盘 / 向导）"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse

from virality.api.deps import get_app_settings, get_optional_session, get_store, require_session
from virality.config import Settings
from virality.errors import NotFoundError
from virality.models import Analysis, AnalysisStatus, ContentType, SUPPORTED_PLATFORMS
from virality.schemas import (
    AnalysisResponse,
    CreditsResponse,
    DashboardResponse,
    DashboardStats,
    Feature,
    HistoryResponse,
    LandingResponse,
    LoginResponse,
    OAuthProvider,
    ProfileResponse,
    SettingsResponse,
    WizardResponse,
)
from virality.services.auth_client import AuthSession
from virality.services.store import AnalysisStore

router = APIRouter()

FEATURES = [
    Feature(
        title="AI-Powered Analysis",
        description="Advanced AI algorithms analyze your content for maximum viral potential across platforms.",
    ),
    Feature(
        title="Multi-Platform Insights",
        description="Get specific recommendations for Twitter, Instagram, TikTok, YouTube, and LinkedIn.",
    ),
    Feature(
        title="Audience Targeting",
        description="Understand your audience and optimize content for maximum engagement.",
    ),
    Feature(
        title="Performance Prediction",
        description="Predict likes, shares, and comments before you post your content.",
    ),
    Feature(
        title="Trend Alignment",
        description="Stay ahead of trends with real-time social media trend analysis.",
    ),
    Feature(
        title="Optimization Tips",
        description="Get actionable recommendations to improve your content performance.",
    ),
]

SETUP_INSTRUCTIONS = [
    "Create a .env file in the backend directory with STORE_URL, STORE_API_KEY and LLM_API_KEY.",
    "Run `python scripts/quick_start.py` to start the local backend and write the .env file for you.",
    "Run `python scripts/init_db.py` to create the database tables.",
    "Restart the server and sign in.",
]


def _user_view(session: AuthSession) -> dict:
    metadata = session.user.get("user_metadata") or {}
    return {
        "id": session.user_id,
        "email": session.user.get("email"),
        "full_name": metadata.get("full_name"),
    }


def _optional_credits(store: AnalysisStore, user_id: str) -> Optional[CreditsResponse]:
    try:
        return CreditsResponse.model_validate(store.get_credits(user_id))
    except NotFoundError:
        return None


def build_stats(analyses: List[Analysis], credits_remaining: int) -> DashboardStats:
    """汇总统计；平均分只计入已有分数的分析"""
    scores = [a.overall_virality_score for a in analyses if a.overall_virality_score is not None]
    return DashboardStats(
        total_analyses=len(analyses),
        completed=sum(1 for a in analyses if a.status == AnalysisStatus.COMPLETED),
        average_score=round(sum(scores) / max(len(scores), 1)),
        credits_remaining=credits_remaining,
    )


@router.get("/", response_model=LandingResponse)
async def landing(settings: Settings = Depends(get_app_settings)):
    """首页；未配置认证服务时返回配置指引"""
    configured = settings.auth_configured
    return LandingResponse(
        name="Virality Analyzer",
        tagline="Predict how far your content will spread before you post it.",
        configured=configured,
        features=FEATURES,
        setup_instructions=None if configured else SETUP_INSTRUCTIONS,
    )


@router.get("/login", response_model=LoginResponse)
async def login(
    error: Optional[str] = None,
    settings: Settings = Depends(get_app_settings),
    session: Optional[AuthSession] = Depends(get_optional_session),
):
    """登录页；已登录则直接进入仪表盘"""
    if session is not None:
        return RedirectResponse(url="/dashboard", status_code=303)
    return LoginResponse(
        providers=[
            OAuthProvider(name=provider, login_url=f"/auth/login/{provider}")
            for provider in settings.provider_list
        ],
        configured=settings.auth_configured,
        error=error,
    )


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    settings: Settings = Depends(get_app_settings),
    session: AuthSession = Depends(require_session),
    store: AnalysisStore = Depends(get_store),
):
    """仪表盘：统计卡片 + 最近的分析"""
    analyses = store.list_analyses(session.user_id)
    credits = _optional_credits(store, session.user_id)
    credits_remaining = credits.credits_remaining if credits else 0
    return DashboardResponse(
        user=_user_view(session),
        credits=credits,
        stats=build_stats(analyses, credits_remaining),
        recent_analyses=[
            AnalysisResponse.model_validate(a)
            for a in analyses[: settings.dashboard_recent_limit]
        ],
    )


@router.get("/dashboard/history", response_model=HistoryResponse)
async def history(
    session: AuthSession = Depends(require_session),
    store: AnalysisStore = Depends(get_store),
):
    """全部历史分析"""
    return HistoryResponse(
        analyses=[AnalysisResponse.model_validate(a) for a in store.list_analyses(session.user_id)]
    )


@router.get("/dashboard/settings", response_model=SettingsResponse)
async def account_settings(
    session: AuthSession = Depends(require_session),
    store: AnalysisStore = Depends(get_store),
):
    try:
        profile = ProfileResponse.model_validate(store.get_credits(session.user_id))
    except NotFoundError:
        profile = None
    return SettingsResponse(user=_user_view(session), profile=profile)


@router.get("/wizard", response_model=WizardResponse)
async def wizard(
    session: AuthSession = Depends(require_session),
    store: AnalysisStore = Depends(get_store),
):
    """新建分析向导所需的选项"""
    credits = _optional_credits(store, session.user_id)
    return WizardResponse(
        content_types=[c.value for c in ContentType],
        platforms=SUPPORTED_PLATFORMS,
        credits_remaining=credits.credits_remaining if credits else 0,
    )
