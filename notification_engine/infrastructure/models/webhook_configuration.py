"""SQLAlchemy model for outbound webhook configurations."""

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, Text

from notification_engine.infrastructure.database import Base
from notification_engine.utils import now_in_app_naive_datetime


class WebhookConfigurationModel(Base):
    """Database representation of a webhook endpoint."""

    __tablename__ = "webhook_configuration"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    url = Column(String(500), nullable=False)
    method = Column(String(10), nullable=False, default="POST")
    content_type = Column(String(50), nullable=False, default="application/json")
    auth_type = Column(String(20), nullable=False, default="none")
    auth_token = Column(String(500), nullable=True)
    auth_username = Column(String(100), nullable=True)
    auth_password = Column(String(255), nullable=True)
    auth_header_name = Column(String(100), nullable=True)
    secret = Column(String(255), nullable=True)
    timeout = Column(Integer, nullable=False, default=30)
    retry_attempts = Column(Integer, nullable=False, default=3)
    retry_delay = Column(Integer, nullable=False, default=5)
    enabled_events = Column(JSON, nullable=False, default=list)
    custom_headers = Column(JSON, nullable=False, default=dict)
    payload_template = Column(Text, nullable=True)
    is_enabled = Column(Boolean, nullable=False, default=True)
    success_count = Column(Integer, nullable=False, default=0)
    failure_count = Column(Integer, nullable=False, default=0)
    last_triggered_at = Column(DateTime(), nullable=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(
        DateTime(),
        nullable=False,
        default=now_in_app_naive_datetime,
        onupdate=now_in_app_naive_datetime,
    )


__all__ = ["WebhookConfigurationModel"]
