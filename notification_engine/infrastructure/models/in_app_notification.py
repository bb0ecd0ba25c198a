"""SQLAlchemy model for notifications shown in a user's inbox."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
)

from notification_engine.infrastructure.database import Base
from notification_engine.utils import now_in_app_naive_datetime


class InAppNotificationModel(Base):
    """Database representation of an in-app notification for one recipient."""

    __tablename__ = "in_app_notification"
    __table_args__ = (
        Index("ix_in_app_notification_user_read", "user_id", "is_read"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    event_type = Column(String(100), nullable=False)
    notification_type = Column(String(20), nullable=False, default="info")
    priority = Column(String(20), nullable=False, default="normal")
    category = Column(String(20), nullable=False, default="system")
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(), nullable=True)
    action_url = Column(String(500), nullable=True)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    expires_at = Column(DateTime(), nullable=True, index=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    scheduled_notification_id = Column(
        Integer,
        ForeignKey("scheduled_notification.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )


__all__ = ["InAppNotificationModel"]
