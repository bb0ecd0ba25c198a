"""SQLAlchemy model for administrator notification templates."""

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, Text

from notification_engine.infrastructure.database import Base
from notification_engine.utils import now_in_app_naive_datetime


class NotificationTemplateModel(Base):
    """Database representation of a notification template."""

    __tablename__ = "notification_template"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    event_type = Column(String(50), nullable=False)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    notification_type = Column(String(20), nullable=False, default="info")
    category = Column(String(20), nullable=False, default="system")
    variables = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(
        DateTime(),
        nullable=False,
        default=now_in_app_naive_datetime,
        onupdate=now_in_app_naive_datetime,
    )


__all__ = ["NotificationTemplateModel"]
