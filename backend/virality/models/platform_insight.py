"""平台洞察模型"""
import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Integer, DateTime, JSON, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from virality.database import Base


class Platform(str, enum.Enum):
    """平台枚举"""
    TWITTER = "twitter"
    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"
    YOUTUBE = "youtube"
    LINKEDIN = "linkedin"
    FACEBOOK = "facebook"


SUPPORTED_PLATFORMS = [p.value for p in Platform]


class PlatformInsight(Base):
    """单平台传播预测表"""
    __tablename__ = "platform_insights"
    __table_args__ = (
        UniqueConstraint("analysis_id", "platform", name="uq_analysis_platform"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    analysis_id = Column(Uuid(as_uuid=True), ForeignKey("analyses.id", ondelete="CASCADE"), nullable=False, index=True)

    platform = Column(String(50), nullable=False)
    virality_score = Column(Integer, nullable=True)
    metrics = Column(JSON, default=dict)
    recommendations = Column(JSON, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)

    analysis = relationship("Analysis", back_populates="platform_insights")
