"""数据库模型"""
from virality.models.analysis import Analysis, AnalysisStatus, ContentType
from virality.models.platform_insight import PlatformInsight, Platform, SUPPORTED_PLATFORMS
from virality.models.profile import Profile

__all__ = [
    "Analysis",
    "AnalysisStatus",
    "ContentType",
    "PlatformInsight",
    "Platform",
    "SUPPORTED_PLATFORMS",
    "Profile",
]
