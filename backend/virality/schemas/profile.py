"""用户额度相关的响应模型"""
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class CreditsResponse(BaseModel):
    """剩余额度"""
    model_config = ConfigDict(from_attributes=True)

    credits_remaining: int
    subscription_tier: str


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: Optional[str] = None
    full_name: Optional[str] = None
    credits_remaining: int
    subscription_tier: str
