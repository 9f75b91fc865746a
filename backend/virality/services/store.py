"""分析数据存取层

所有读写都按 user_id 限定范围：别人的分析与不存在的分析一样返回 NotFoundError。
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Union
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from virality.config import Settings
from virality.errors import InsufficientCreditsError, NotFoundError, StoreError
from virality.lifecycle import validate_update
from virality.models import Analysis, AnalysisStatus, PlatformInsight, Profile
from virality.schemas import AnalysisCreate

logger = logging.getLogger(__name__)

IdLike = Union[UUID, str]


def _as_uuid(value: IdLike) -> Optional[UUID]:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


def derive_title(content: str, max_length: int) -> str:
    """取内容首行作为标题"""
    first_line = next((line.strip() for line in content.splitlines() if line.strip()), "")
    if not first_line:
        return "Untitled analysis"
    if len(first_line) > max_length:
        return first_line[: max_length - 3].rstrip() + "..."
    return first_line


class AnalysisStore:
    """analyses / platform_insights / profiles 的存取适配器"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    def list_analyses(self, user_id: IdLike) -> List[Analysis]:
        """当前用户的全部分析（含平台洞察），按创建时间倒序"""
        owner = _as_uuid(user_id)
        if owner is None:
            return []
        return (
            self.db.query(Analysis)
            .options(selectinload(Analysis.platform_insights))
            .filter(Analysis.user_id == owner)
            .order_by(Analysis.created_at.desc())
            .all()
        )

    def get_analysis(self, analysis_id: IdLike, user_id: IdLike) -> Analysis:
        analysis_uuid = _as_uuid(analysis_id)
        owner = _as_uuid(user_id)
        analysis = None
        if analysis_uuid is not None and owner is not None:
            analysis = (
                self.db.query(Analysis)
                .options(selectinload(Analysis.platform_insights))
                .filter(Analysis.id == analysis_uuid, Analysis.user_id == owner)
                .first()
            )
        if not analysis:
            raise NotFoundError(f"Analysis {analysis_id} not found")
        return analysis

    def create_analysis(self, user_id: IdLike, payload: AnalysisCreate) -> Analysis:
        """创建 pending 状态的分析，并在同一事务内扣减一次额度"""
        profile = self._get_profile(user_id)
        # 条件扣减在数据库内完成，并发创建不会透支额度
        debited = (
            self.db.query(Profile)
            .filter(Profile.id == profile.id, Profile.credits_remaining > 0)
            .update(
                {Profile.credits_remaining: Profile.credits_remaining - 1},
                synchronize_session=False,
            )
        )
        if not debited:
            self.db.rollback()
            raise InsufficientCreditsError("No credits remaining, upgrade your plan to run more analyses")

        analysis = Analysis(
            user_id=profile.id,
            title=payload.title or derive_title(payload.content, self.settings.analysis_title_max_length),
            content=payload.content,
            content_type=payload.content_type,
            platforms=list(payload.platforms),
            target_audience=payload.target_audience.model_dump(),
            status=AnalysisStatus.PENDING,
        )
        self.db.add(analysis)
        self._commit()
        self.db.refresh(analysis)
        logger.info(
            f"Created analysis {analysis.id} for user {profile.id} "
            f"({profile.credits_remaining} credits left)"
        )
        return analysis

    def update_analysis(
        self,
        analysis_id: IdLike,
        user_id: IdLike,
        status: Optional[Union[AnalysisStatus, str]] = None,
        overall_virality_score: Optional[int] = None,
        error_message: Optional[str] = None,
    ) -> Analysis:
        """按状态机校验后更新状态/分数"""
        analysis = self.get_analysis(analysis_id, user_id)
        target = validate_update(analysis.status, status, overall_virality_score)

        analysis.status = target
        if target == AnalysisStatus.COMPLETED:
            analysis.overall_virality_score = overall_virality_score
        if target == AnalysisStatus.FAILED and error_message:
            analysis.error_message = error_message
        self._commit()
        self.db.refresh(analysis)
        logger.info(f"Analysis {analysis.id} -> {target.value}")
        return analysis

    def abandon_analysis(self, analysis_id: IdLike, user_id: IdLike, reason: str) -> Analysis:
        """评分任务未能入队：pending 分析直接记为 failed，并退还创建时扣的额度"""
        analysis = self.get_analysis(analysis_id, user_id)
        validate_update(analysis.status, AnalysisStatus.PROCESSING)
        validate_update(AnalysisStatus.PROCESSING, AnalysisStatus.FAILED)

        analysis.status = AnalysisStatus.FAILED
        analysis.error_message = reason
        self.db.query(Profile).filter(Profile.id == analysis.user_id).update(
            {Profile.credits_remaining: Profile.credits_remaining + 1},
            synchronize_session=False,
        )
        self._commit()
        self.db.refresh(analysis)
        logger.warning(f"Analysis {analysis.id} abandoned and credit refunded: {reason}")
        return analysis

    def replace_insights(self, analysis_id: IdLike, user_id: IdLike, insights: Iterable[Dict[str, Any]]) -> Analysis:
        """写入平台洞察；不在分析所选平台内的条目被丢弃"""
        analysis = self.get_analysis(analysis_id, user_id)
        allowed = set(analysis.platforms or [])

        analysis.platform_insights.clear()
        # 先删除旧记录，避免 (analysis_id, platform) 唯一约束冲突
        self.db.flush()
        seen = set()
        for entry in insights:
            platform = str(entry.get("platform", "")).strip().lower()
            if platform not in allowed or platform in seen:
                logger.warning(f"Dropping insight for unselected platform '{platform}' on {analysis.id}")
                continue
            seen.add(platform)
            analysis.platform_insights.append(
                PlatformInsight(
                    platform=platform,
                    virality_score=entry.get("virality_score"),
                    metrics=entry.get("metrics") or {},
                    recommendations=list(entry.get("recommendations") or []),
                )
            )
        self._commit()
        self.db.refresh(analysis)
        return analysis

    def get_credits(self, user_id: IdLike) -> Profile:
        return self._get_profile(user_id)

    def ensure_profile(self, user: Dict[str, Any]) -> Profile:
        """首次登录时创建用户资料并发放初始额度"""
        user_uuid = _as_uuid(user.get("id"))
        if user_uuid is None:
            raise NotFoundError("Session user has no valid id")
        profile = self.db.get(Profile, user_uuid)
        if profile:
            return profile

        metadata = user.get("user_metadata") or {}
        profile = Profile(
            id=user_uuid,
            email=user.get("email"),
            full_name=metadata.get("full_name"),
            credits_remaining=self.settings.default_credits,
            subscription_tier=self.settings.default_subscription_tier,
        )
        self.db.add(profile)
        self._commit()
        self.db.refresh(profile)
        logger.info(f"Created profile for user {user_uuid}")
        return profile

    def _get_profile(self, user_id: IdLike) -> Profile:
        user_uuid = _as_uuid(user_id)
        profile = self.db.get(Profile, user_uuid) if user_uuid is not None else None
        if not profile:
            raise NotFoundError("Profile not found")
        return profile

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store commit failed: {e}")
            raise StoreError(f"Store request failed: {type(e).__name__}") from e
