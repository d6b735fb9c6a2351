"""
Notification Service
Builds the notification events the lead engines emit and persists them
to the notifications table.

Emission is fire-and-forget: a failing sink is logged and never turns a
successful lead operation into a failure.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fieldcrm.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)


@dataclass
class NotificationEvent:
    target_user_id: uuid.UUID
    title: str
    message: str
    kind: NotificationType = NotificationType.GENERAL
    payload: Dict[str, Any] = field(default_factory=dict)


class NotificationSink(Protocol):
    def emit(self, event: NotificationEvent) -> None:
        ...


class DatabaseNotificationSink:
    """Persists each event as an unread Notification row."""

    def __init__(self, db: Session):
        self.db = db

    def emit(self, event: NotificationEvent) -> None:
        try:
            self.db.add(
                Notification(
                    user_id=event.target_user_id,
                    title=event.title,
                    message=event.message,
                    type=event.kind,
                    data=event.payload,
                    is_read=False,
                )
            )
            self.db.commit()
            logger.info(f"[NOTIFY] '{event.title}' -> user {event.target_user_id}")
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"[NOTIFY] Failed to store '{event.title}' for user {event.target_user_id}: {exc}")


class NullNotificationSink:
    def emit(self, event: NotificationEvent) -> None:
        logger.debug(f"[NOTIFY] Dropped '{event.title}' for user {event.target_user_id}")


def emit_safely(sink: Optional[NotificationSink], events: List[NotificationEvent]) -> None:
    """Hand events to *sink*; sink failures are logged, never raised."""
    if sink is None:
        return
    for event in events:
        try:
            sink.emit(event)
        except Exception as exc:
            logger.error(f"[NOTIFY] Sink failed for '{event.title}': {exc}")


# ── Event builders ────────────────────────────────────────────────────────────

def lead_assignment_event(user_id: uuid.UUID, lead_id: uuid.UUID, customer_name: str,
                          title: str = "New Lead Assigned") -> NotificationEvent:
    return NotificationEvent(
        target_user_id=user_id,
        title=title,
        message=f"You have been assigned a new lead: {customer_name}",
        kind=NotificationType.LEAD_ASSIGNED,
        payload={"leadId": str(lead_id)},
    )


def lead_completion_event(user_id: uuid.UUID, lead_id: uuid.UUID, customer_name: str,
                          customer_code: Optional[str] = None) -> NotificationEvent:
    return NotificationEvent(
        target_user_id=user_id,
        title="Lead Completed",
        message=f"Lead for {customer_name} has been completed and converted to customer.",
        kind=NotificationType.LEAD_COMPLETED,
        payload={"leadId": str(lead_id), "customerId": customer_code},
    )


def reschedule_event(user_id: uuid.UUID, lead_id: uuid.UUID, customer_name: str,
                     rescheduled_date: date, reason: str) -> NotificationEvent:
    return NotificationEvent(
        target_user_id=user_id,
        title="Lead Rescheduled",
        message=(
            f"Lead for {customer_name} has been rescheduled to "
            f"{rescheduled_date.isoformat()}. Reason: {reason}"
        ),
        kind=NotificationType.RESCHEDULE,
        payload={"leadId": str(lead_id), "rescheduledDate": rescheduled_date.isoformat(), "reason": reason},
    )


def call_scheduled_event(user_id: uuid.UUID, lead_id: uuid.UUID, call_date: date,
                         call_time: Optional[str]) -> NotificationEvent:
    when = f"{call_date.isoformat()} at {call_time}" if call_time else call_date.isoformat()
    return NotificationEvent(
        target_user_id=user_id,
        title="Call Scheduled",
        message=f"Call scheduled for {when}",
        kind=NotificationType.GENERAL,
        payload={"leadId": str(lead_id)},
    )
