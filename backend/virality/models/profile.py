"""用户资料与额度模型"""
from datetime import datetime

from sqlalchemy import Column, String, Integer, DateTime, CheckConstraint, Uuid

from virality.database import Base


class Profile(Base):
    """用户资料表，id 与认证服务的用户 id 一致"""
    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint("credits_remaining >= 0", name="ck_profiles_credits_non_negative"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True)
    email = Column(String(255), nullable=True)
    full_name = Column(String(255), nullable=True)

    credits_remaining = Column(Integer, nullable=False, default=0)
    subscription_tier = Column(String(50), nullable=False, default="free")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
