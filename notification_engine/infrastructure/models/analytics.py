"""SQLAlchemy model for notification analytics events."""

from sqlalchemy import Column, DateTime, Index, Integer, String

from notification_engine.infrastructure.database import Base
from notification_engine.utils import now_in_app_naive_datetime


class NotificationAnalyticsModel(Base):
    """Append-only log of delivery and engagement actions."""

    __tablename__ = "notification_analytics"
    __table_args__ = (
        Index("ix_notification_analytics_action_timestamp", "action", "timestamp"),
    )

    id = Column(Integer, primary_key=True, index=True)
    notification_id = Column(Integer, nullable=True, index=True)
    scheduled_notification_id = Column(Integer, nullable=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    event_type = Column(String(100), nullable=False)
    action = Column(String(20), nullable=False)
    action_url = Column(String(500), nullable=True)
    user_agent = Column(String(500), nullable=True)
    ip_address = Column(String(45), nullable=True)
    timestamp = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)


__all__ = ["NotificationAnalyticsModel"]
