"""平台管理API"""
from typing import List

from fastapi import APIRouter

from virality.models import SUPPORTED_PLATFORMS

router = APIRouter()


@router.get("", response_model=List[str])
async def list_platforms():
    """获取支持的平台列表"""
    return SUPPORTED_PLATFORMS
