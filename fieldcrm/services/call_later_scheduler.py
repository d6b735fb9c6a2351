"""
Call-Later Scheduler
Records deferred follow-up requests against leads and answers the
"calls due today" question for call operator dashboards.

Every call-later request appends one CallLaterLog row and puts the lead
on hold in the same unit of work.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import and_, or_

from fieldcrm.models.lead import CallLaterLog, Lead, LeadStatus
from fieldcrm.models.user import AppUser
from fieldcrm.services.errors import ValidationFailed
from fieldcrm.services.guards import coerce_date, require_actor, require_lead, require_text
from fieldcrm.services.lead_store import LeadStore
from fieldcrm.services.notification_service import (
    NotificationSink, call_scheduled_event, emit_safely, reschedule_event,
)

logger = logging.getLogger(__name__)

DateInput = Union[date, str]


def record_call_later(
    store: LeadStore,
    lead: Lead,
    actor: AppUser,
    call_later_date: date,
    reason: str,
    notes: Optional[str] = None,
    call_time: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Append the CallLaterLog row and return the lead fields a call-later
    request sets. The caller writes those fields and commits. The count is
    incremented by the store, not from the loaded value.
    """
    store.insert_call_later_log(
        lead_id=lead.id,
        call_operator_id=actor.id,
        call_operator_name=actor.name,
        call_later_date=call_later_date,
        reason=reason,
        notes=notes,
    )
    return {
        "status": LeadStatus.HOLD,
        "scheduled_call_date": call_later_date,
        "scheduled_call_time": call_time,
        "scheduled_call_reason": reason,
        "call_later_count": Lead.call_later_count + 1,
        "last_call_later_date": call_later_date,
        "last_call_later_reason": reason,
    }


class CallLaterScheduler:
    def __init__(self, store: LeadStore, notifier: Optional[NotificationSink] = None):
        self.store = store
        self.notifier = notifier

    # ── Commands ──────────────────────────────────────────────────────────────

    def schedule_call_later(
        self,
        lead_id: uuid.UUID,
        call_later_date: Optional[DateInput],
        reason: Optional[str],
        actor: Optional[AppUser],
        notes: Optional[str] = None,
        call_time: Optional[str] = None,
    ) -> Lead:
        actor = require_actor(actor)
        when = coerce_date(call_later_date, "Call later date")
        reason = require_text(reason, "Call later reason")

        lead = require_lead(self.store, lead_id)
        _ensure_schedulable(lead)

        fields = record_call_later(self.store, lead, actor, when, reason, notes, call_time)
        self.store.update_lead(lead, fields)
        self.store.commit()
        logger.info(
            f"[CALL-LATER] Lead {lead_id} on hold until {when} by {actor.name} "
            f"(count={lead.call_later_count})"
        )
        return lead

    def schedule_call(
        self,
        lead_id: uuid.UUID,
        call_date: Optional[DateInput],
        call_time: Optional[str],
        reason: Optional[str],
        actor: Optional[AppUser],
    ) -> Lead:
        """Set the scheduled call fields and hold the lead without a call-later log row."""
        actor = require_actor(actor)
        when = coerce_date(call_date, "Call date")
        reason = require_text(reason, "Reason")

        lead = require_lead(self.store, lead_id)
        _ensure_schedulable(lead)

        self.store.update_lead(lead, {
            "scheduled_call_date": when,
            "scheduled_call_time": call_time,
            "scheduled_call_reason": reason,
            "status": LeadStatus.HOLD,
        })
        self.store.commit()
        emit_safely(self.notifier, [call_scheduled_event(actor.id, lead_id, when, call_time)])
        return lead

    def reschedule(
        self,
        lead_id: uuid.UUID,
        new_date: Optional[DateInput],
        reason: Optional[str],
        rescheduled_by: uuid.UUID,
        actor: Optional[AppUser],
    ) -> Lead:
        actor = require_actor(actor)
        when = coerce_date(new_date, "New date")
        reason = require_text(reason, "Reschedule reason")

        lead = require_lead(self.store, lead_id)
        _ensure_schedulable(lead)

        self.store.update_lead(lead, {
            "rescheduled_date": when,
            "rescheduled_by": str(rescheduled_by),
            "reschedule_reason": reason,
            "status": LeadStatus.HOLD,
        })
        self.store.commit()
        logger.info(f"[CALL-LATER] Lead {lead_id} rescheduled to {when} by {actor.name}")
        emit_safely(self.notifier, [reschedule_event(rescheduled_by, lead_id, lead.customer_name, when, reason)])
        return lead

    # ── Queries ───────────────────────────────────────────────────────────────

    def due_today(self, user_id: uuid.UUID, today: Optional[date] = None) -> List[Lead]:
        """
        Leads of *user_id* to call today: scheduled for today, ringing, or
        overdue (scheduled before today while still new or on hold).
        Dates compare by calendar day only.
        """
        today = today or date.today()
        return self.store.select_leads(
            Lead.call_operator_id == user_id,
            or_(
                Lead.scheduled_call_date == today,
                Lead.status == LeadStatus.RINGING,
                and_(
                    Lead.scheduled_call_date < today,
                    Lead.status.in_([LeadStatus.NEW, LeadStatus.HOLD]),
                ),
            ),
            order_by=(Lead.scheduled_call_date.asc(), Lead.created_at.asc()),
        )

    def history_for(self, lead_id: uuid.UUID) -> List[CallLaterLog]:
        return self.store.select_call_later_logs(CallLaterLog.lead_id == lead_id)

    def history_by_operator(self, operator_id: uuid.UUID) -> List[CallLaterLog]:
        return self.store.select_call_later_logs(CallLaterLog.call_operator_id == operator_id)


def _ensure_schedulable(lead: Lead) -> None:
    if lead.customer_id is not None:
        raise ValidationFailed("Lead has already been converted to a customer.")
    if lead.status == LeadStatus.DECLINED:
        raise ValidationFailed("Declined leads can only be revived by reassigning them.")
