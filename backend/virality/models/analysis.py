"""分析记录模型"""
import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Integer, DateTime, Enum, Text, JSON, Uuid
from sqlalchemy.orm import relationship

from virality.database import Base


class AnalysisStatus(str, enum.Enum):
    """分析状态枚举"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ContentType(str, enum.Enum):
    """内容类型枚举"""
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    MIXED = "mixed"


class Analysis(Base):
    """内容传播力分析表"""
    __tablename__ = "analyses"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    content_type = Column(Enum(ContentType), nullable=False)
    platforms = Column(JSON, nullable=False)
    target_audience = Column(JSON, default=dict)

    status = Column(Enum(AnalysisStatus), default=AnalysisStatus.PENDING, nullable=False, index=True)
    overall_virality_score = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    platform_insights = relationship(
        "PlatformInsight",
        back_populates="analysis",
        cascade="all, delete-orphan",
        order_by="PlatformInsight.platform",
    )
