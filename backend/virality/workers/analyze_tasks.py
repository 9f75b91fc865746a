"""AI评分任务"""
import asyncio
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from virality.analyzers import LLMClient, ViralityScorer
from virality.config import Settings, get_settings
from virality.database import SessionLocal
from virality.models import Analysis, AnalysisStatus
from virality.services.store import AnalysisStore
from virality.utils.logger import get_logger
from virality.workers.celery_app import celery_app

logger = get_logger(__name__)


def run_scoring(
    db: Session,
    analysis_id: str,
    settings: Settings,
    scorer: Optional[ViralityScorer] = None,
) -> dict:
    """pending -> processing -> completed|failed"""
    analysis_uuid = _parse_id(analysis_id)
    analysis = db.get(Analysis, analysis_uuid) if analysis_uuid else None
    if not analysis:
        return {"error": "Analysis not found"}
    if analysis.status != AnalysisStatus.PENDING:
        logger.info(f"Analysis {analysis_id} is {analysis.status.value}; skipping")
        return {"status": analysis.status.value, "skipped": True}

    store = AnalysisStore(db, settings)
    owner = analysis.user_id
    store.update_analysis(analysis.id, owner, status=AnalysisStatus.PROCESSING)

    scorer = scorer or ViralityScorer(
        LLMClient(settings),
        content_max_length=settings.analysis_content_max_length,
    )
    try:
        loop = asyncio.new_event_loop()
        try:
            verdict = loop.run_until_complete(
                scorer.score(
                    content=analysis.content,
                    content_type=analysis.content_type.value,
                    platforms=list(analysis.platforms),
                    target_audience=analysis.target_audience or {},
                )
            )
        finally:
            loop.close()

        store.replace_insights(analysis.id, owner, verdict.insights)
        store.update_analysis(
            analysis.id,
            owner,
            status=AnalysisStatus.COMPLETED,
            overall_virality_score=verdict.overall_score,
        )
    except Exception as e:
        logger.error(f"Scoring failed for analysis {analysis_id}: {type(e).__name__}: {e}")
        db.rollback()
        store.update_analysis(
            analysis.id,
            owner,
            status=AnalysisStatus.FAILED,
            error_message=f"{type(e).__name__}: {e}",
        )
        return {"status": AnalysisStatus.FAILED.value, "error": str(e)}

    logger.info(f"Analysis {analysis_id} completed with score {verdict.overall_score}")
    return {"status": AnalysisStatus.COMPLETED.value, "overall_virality_score": verdict.overall_score}


@celery_app.task(name="virality.score_analysis")
def score_analysis(analysis_id: str):
    """执行AI传播力评分"""
    db = SessionLocal()
    try:
        return run_scoring(db, analysis_id, get_settings())
    finally:
        db.close()


def _parse_id(analysis_id: str) -> Optional[UUID]:
    try:
        return UUID(str(analysis_id))
    except ValueError:
        return None
