"""
Notification Model - in-app notifications for staff
"""
from datetime import datetime
from sqlalchemy import String, DateTime, Boolean, Text, Uuid, JSON, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from typing import Optional
import uuid
import enum

from fieldcrm.db.base import Base, utcnow
from fieldcrm.models.lead import _enum_values


class NotificationType(str, enum.Enum):
    RESCHEDULE = "reschedule"
    LEAD_ASSIGNED = "lead_assigned"
    LEAD_COMPLETED = "lead_completed"
    GENERAL = "general"


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[NotificationType] = mapped_column(
        SQLEnum(NotificationType, name="notification_type", values_callable=_enum_values),
        default=NotificationType.GENERAL,
        nullable=False,
    )
    data: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
