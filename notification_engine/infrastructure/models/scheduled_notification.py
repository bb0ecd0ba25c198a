"""SQLAlchemy model for notifications scheduled for later delivery."""

from sqlalchemy import Column, DateTime, Index, Integer, JSON, String, Text

from notification_engine.infrastructure.database import Base
from notification_engine.utils import now_in_app_naive_datetime


class ScheduledNotificationModel(Base):
    """Database representation of a scheduled notification."""

    __tablename__ = "scheduled_notification"
    __table_args__ = (
        Index("ix_scheduled_notification_status_due", "status", "scheduled_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    notification_type = Column(String(20), nullable=False, default="info")
    event_type = Column(String(100), nullable=False)
    target_audience = Column(String(30), nullable=False)
    target_roles = Column(JSON, nullable=True)
    target_user_ids = Column(JSON, nullable=True)
    scheduled_at = Column(DateTime(), nullable=False)
    expires_at = Column(DateTime(), nullable=True)
    action_url = Column(String(500), nullable=True)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    status = Column(String(20), nullable=False, default="pending")
    sent_count = Column(Integer, nullable=False, default=0)
    failure_count = Column(Integer, nullable=False, default=0)
    sent_at = Column(DateTime(), nullable=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(
        DateTime(),
        nullable=False,
        default=now_in_app_naive_datetime,
        onupdate=now_in_app_naive_datetime,
    )


__all__ = ["ScheduledNotificationModel"]
