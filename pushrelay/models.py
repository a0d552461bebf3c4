"""
SQLAlchemy models
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from pushrelay.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Device(Base):
    """
    Push token registered under a short code
    One record per code, removed DEVICE_TTL_HOURS after created_at
    """
    __tablename__ = "devices"
    
    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(6), unique=True, nullable=False, index=True)
    fcm_token = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    
    def __repr__(self):
        return f"<Device(code={self.code}, created_at={self.created_at})>"
