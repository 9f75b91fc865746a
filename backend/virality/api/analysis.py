"""分析相关API"""
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from virality.api.deps import get_store, require_session
from virality.errors import DispatchError
from virality.schemas import AnalysisCreate, AnalysisUpdate, AnalysisResponse
from virality.services.auth_client import AuthSession
from virality.services.store import AnalysisStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=List[AnalysisResponse])
async def list_analyses(
    session: AuthSession = Depends(require_session),
    store: AnalysisStore = Depends(get_store),
):
    """当前用户的分析列表（按时间倒序，含平台洞察）"""
    return store.list_analyses(session.user_id)


@router.post("", response_model=AnalysisResponse, status_code=status.HTTP_201_CREATED)
async def create_analysis(
    data: AnalysisCreate,
    session: AuthSession = Depends(require_session),
    store: AnalysisStore = Depends(get_store),
):
    """创建分析并提交 AI 评分任务"""
    analysis = store.create_analysis(session.user_id, data)

    from virality.workers.analyze_tasks import score_analysis
    try:
        celery_task = score_analysis.delay(str(analysis.id))
    except Exception as e:
        # broker 不可用时分析记为 failed 并退还额度
        logger.error(f"Could not dispatch scoring for analysis {analysis.id}: {type(e).__name__}: {e}")
        store.abandon_analysis(analysis.id, session.user_id, f"Could not queue scoring job: {type(e).__name__}")
        raise DispatchError("Could not queue the analysis for scoring; your credit was refunded") from e
    logger.info(f"Dispatched scoring task {celery_task.id} for analysis {analysis.id}")

    return analysis


@router.get("/{analysis_id}", response_model=AnalysisResponse)
async def get_analysis(
    analysis_id: UUID,
    session: AuthSession = Depends(require_session),
    store: AnalysisStore = Depends(get_store),
):
    """查询单个分析"""
    return store.get_analysis(analysis_id, session.user_id)


@router.patch("/{analysis_id}", response_model=AnalysisResponse)
async def update_analysis(
    analysis_id: UUID,
    data: AnalysisUpdate,
    session: AuthSession = Depends(require_session),
    store: AnalysisStore = Depends(get_store),
):
    """更新状态/分数，只允许 pending -> processing -> completed|failed"""
    return store.update_analysis(
        analysis_id,
        session.user_id,
        status=data.status,
        overall_virality_score=data.overall_virality_score,
    )
