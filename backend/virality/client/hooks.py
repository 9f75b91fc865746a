"""分析数据的缓存查询层

读操作按 key 缓存并合并并发请求；写操作每次调用只发送一次，
成功后让受影响的 key 失效（不做本地乐观修改），失败时不动缓存。
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from virality.client.cache import QueryCache
from virality.client.http import ViralityClient
from virality.errors import AnalysisValidationError
from virality.lifecycle import coerce_status, validate_score, validate_update
from virality.models.analysis import AnalysisStatus
from virality.schemas import AnalysisCreate

logger = logging.getLogger(__name__)

ANALYSES_KEY = ("analyses",)
CREDITS_KEY = ("user-credits",)


def analysis_key(analysis_id: str) -> tuple:
    return ("analysis", str(analysis_id))


class AnalysisQueries:
    """Cache-aware wrappers around :class:`ViralityClient`."""

    def __init__(self, client: ViralityClient, cache: Optional[QueryCache] = None):
        self.client = client
        self.cache = cache or QueryCache()

    async def _call(self, func, *args):
        return await asyncio.to_thread(func, *args)

    # ---------- 读 ----------

    async def list_analyses(self) -> List[Dict[str, Any]]:
        return await self.cache.fetch(ANALYSES_KEY, lambda: self._call(self.client.list_analyses))

    async def get_analysis(self, analysis_id: str) -> Dict[str, Any]:
        if not analysis_id:
            raise AnalysisValidationError("analysis id is required")
        return await self.cache.fetch(
            analysis_key(analysis_id),
            lambda: self._call(self.client.get_analysis, str(analysis_id)),
        )

    async def get_credits(self) -> Dict[str, Any]:
        return await self.cache.fetch(CREDITS_KEY, lambda: self._call(self.client.get_credits))

    # ---------- 写 ----------

    async def create_analysis(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """提交新分析（POST /api/analysis），错误信息原样抛出"""
        try:
            body = AnalysisCreate.model_validate(payload).to_request_body()
        except ValidationError as e:
            raise AnalysisValidationError(_describe_validation_error(e)) from e

        created = await self._call(self.client.create_analysis, body)
        # 创建会在服务端扣减额度
        self.cache.invalidate(ANALYSES_KEY)
        self.cache.invalidate(CREDITS_KEY)
        return created

    async def update_analysis(
        self,
        analysis_id: str,
        status: Optional[str] = None,
        overall_virality_score: Optional[int] = None,
    ) -> Dict[str, Any]:
        """按状态机预校验后发送 PATCH；校验基于服务端当前状态而非缓存"""
        if not analysis_id:
            raise AnalysisValidationError("analysis id is required")
        if status is not None:
            coerce_status(status)
        if overall_virality_score is not None:
            validate_score(overall_virality_score)
        current = await self._call(self.client.get_analysis, str(analysis_id))
        target = validate_update(current["status"], status, overall_virality_score)

        changes: Dict[str, Any] = {"status": target.value}
        if target == AnalysisStatus.COMPLETED:
            changes["overall_virality_score"] = overall_virality_score

        updated = await self._call(self.client.update_analysis, str(analysis_id), changes)
        self.cache.invalidate(ANALYSES_KEY)
        self.cache.invalidate(analysis_key(analysis_id))
        return updated


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ()))
        parts.append(f"{location}: {item.get('msg')}" if location else item.get("msg", ""))
    return "; ".join(parts) or "Invalid analysis payload"
