"""SQLAlchemy model for explicit notification preferences."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint

from notification_engine.infrastructure.database import Base
from notification_engine.utils import now_in_app_naive_datetime


class NotificationPreferenceModel(Base):
    """Database representation of a user's opt-in or opt-out."""

    __tablename__ = "notification_preference"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "channel",
            "event_type",
            name="uq_notification_preference_user_channel_event",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    channel = Column(String(20), nullable=False)
    event_type = Column(String(100), nullable=False)
    enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(
        DateTime(),
        nullable=False,
        default=now_in_app_naive_datetime,
        onupdate=now_in_app_naive_datetime,
    )


__all__ = ["NotificationPreferenceModel"]
