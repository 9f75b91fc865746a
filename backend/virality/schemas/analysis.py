"""分析相关的请求/响应模型"""
from datetime import datetime
from typing import List, Optional, Dict, Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from virality.models.analysis import AnalysisStatus, ContentType
from virality.models.platform_insight import SUPPORTED_PLATFORMS


class TargetAudience(BaseModel):
    """目标受众"""
    model_config = ConfigDict(populate_by_name=True)

    age_range: str = Field(..., alias="ageRange", min_length=1, max_length=50)
    interests: List[str] = Field(default_factory=list)
    demographics: List[str] = Field(default_factory=list)


class AnalysisCreate(BaseModel):
    """创建分析请求（POST /api/analysis）"""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "content": "hello",
                "contentType": "text",
                "platforms": ["twitter"],
                "targetAudience": {
                    "ageRange": "18-24",
                    "interests": ["tech"],
                    "demographics": ["US"],
                },
            }
        },
    )

    content: str = Field(..., min_length=1, description="待分析内容")
    content_type: ContentType = Field(..., alias="contentType")
    platforms: List[str] = Field(..., min_length=1, description="目标平台列表")
    target_audience: TargetAudience = Field(..., alias="targetAudience")
    title: Optional[str] = Field(default=None, max_length=255)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content must not be empty")
        return value

    @field_validator("platforms")
    @classmethod
    def platforms_supported(cls, value: List[str]) -> List[str]:
        platforms = []
        for platform in value:
            name = platform.strip().lower()
            if name not in SUPPORTED_PLATFORMS:
                raise ValueError(f"unsupported platform: {platform}, supported: {SUPPORTED_PLATFORMS}")
            if name not in platforms:
                platforms.append(name)
        return platforms

    def to_request_body(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class AnalysisUpdate(BaseModel):
    """更新分析请求（PATCH /api/analysis/{id}）"""
    status: Optional[AnalysisStatus] = None
    overall_virality_score: Optional[int] = None


class PlatformInsightResponse(BaseModel):
    """单平台洞察响应"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    analysis_id: UUID
    platform: str
    virality_score: Optional[int] = None
    metrics: Dict[str, Any] = Field(default_factory=dict)
    recommendations: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class AnalysisResponse(BaseModel):
    """分析记录响应（含平台洞察）"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    content: str
    content_type: ContentType
    platforms: List[str]
    target_audience: Dict[str, Any] = Field(default_factory=dict)
    status: AnalysisStatus
    overall_virality_score: Optional[int] = None
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    platform_insights: List[PlatformInsightResponse] = Field(default_factory=list)
