"""页面视图模型"""
from typing import List, Optional, Dict, Any

from pydantic import BaseModel

from virality.schemas.analysis import AnalysisResponse
from virality.schemas.profile import CreditsResponse, ProfileResponse


class Feature(BaseModel):
    title: str
    description: str


class LandingResponse(BaseModel):
    """首页"""
    name: str
    tagline: str
    configured: bool
    features: List[Feature]
    setup_instructions: Optional[List[str]] = None


class OAuthProvider(BaseModel):
    name: str
    login_url: str


class LoginResponse(BaseModel):
    """登录页"""
    providers: List[OAuthProvider]
    configured: bool
    error: Optional[str] = None


class DashboardStats(BaseModel):
    total_analyses: int
    completed: int
    average_score: int
    credits_remaining: int


class DashboardResponse(BaseModel):
    """仪表盘"""
    user: Dict[str, Any]
    credits: Optional[CreditsResponse] = None
    stats: DashboardStats
    recent_analyses: List[AnalysisResponse]


class HistoryResponse(BaseModel):
    analyses: List[AnalysisResponse]


class SettingsResponse(BaseModel):
    user: Dict[str, Any]
    profile: Optional[ProfileResponse] = None


class WizardResponse(BaseModel):
    """新建分析向导"""
    content_types: List[str]
    platforms: List[str]
    credits_remaining: int
