"""API请求/响应模型"""
from virality.schemas.analysis import (
    TargetAudience,
    AnalysisCreate,
    AnalysisUpdate,
    PlatformInsightResponse,
    AnalysisResponse,
)
from virality.schemas.profile import CreditsResponse, ProfileResponse
from virality.schemas.pages import (
    Feature,
    LandingResponse,
    LoginResponse,
    OAuthProvider,
    DashboardStats,
    DashboardResponse,
    HistoryResponse,
    SettingsResponse,
    WizardResponse,
)

__all__ = [
    "TargetAudience",
    "AnalysisCreate",
    "AnalysisUpdate",
    "PlatformInsightResponse",
    "AnalysisResponse",
    "CreditsResponse",
    "ProfileResponse",
    "Feature",
    "LandingResponse",
    "LoginResponse",
    "OAuthProvider",
    "DashboardStats",
    "DashboardResponse",
    "HistoryResponse",
    "SettingsResponse",
    "WizardResponse",
]
