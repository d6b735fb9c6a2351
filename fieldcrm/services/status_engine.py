"""
Status Transition Engine
Applies lead status changes together with the fields each target status
derives (call notes, visit notes, operator attribution, call-later
scheduling), and records explicit call logs.

Any status may follow any other, except:
  * completed is only reachable through customer conversion;
  * a converted lead never leaves completed;
  * a declined lead is revived through reassignment, not a direct transition.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Optional, Union

from fieldcrm.models.lead import CallLog, Lead, LeadStatus
from fieldcrm.models.user import AppUser
from fieldcrm.services.call_later_scheduler import record_call_later
from fieldcrm.services.errors import NotFound, ValidationFailed
from fieldcrm.services.guards import coerce_date, require_actor, require_lead, require_text
from fieldcrm.services.lead_store import LeadStore

logger = logging.getLogger(__name__)


@dataclass
class CallLaterRequest:
    call_later_date: Union[date, str, None]
    reason: Optional[str]
    call_time: Optional[str] = None


def _contacted_effects(actor: AppUser, notes: str) -> Dict[str, Any]:
    return {"call_notes": notes, "call_operator_id": actor.id, "call_operator_name": actor.name}


def _visit_effects(actor: AppUser, notes: str) -> Dict[str, Any]:
    return {"visit_notes": notes}


# Fields derived from notes, per target status
TRANSITION_EFFECTS: Dict[LeadStatus, Callable[[AppUser, str], Dict[str, Any]]] = {
    LeadStatus.CONTACTED: _contacted_effects,
    LeadStatus.TRANSIT: _visit_effects,
    LeadStatus.COMPLETED: _visit_effects,
}


class StatusEngine:
    def __init__(self, store: LeadStore):
        self.store = store

    def transition(
        self,
        lead_id: uuid.UUID,
        new_status: Union[LeadStatus, str],
        actor: Optional[AppUser],
        notes: Optional[str] = None,
        call_later: Optional[CallLaterRequest] = None,
        record_call: bool = False,
    ) -> Lead:
        """
        Move a lead to *new_status* and apply its derived fields.

        Putting a lead on hold with a call-later date and reason also appends
        a CallLaterLog row; *record_call* writes a CallLog. Everything is
        committed together or not at all.
        """
        actor = require_actor(actor)
        new_status = _coerce_status(new_status)
        notes = notes.strip() if notes and notes.strip() else None

        when, reason = None, None
        if new_status == LeadStatus.HOLD and call_later is not None and call_later.call_later_date:
            when = coerce_date(call_later.call_later_date, "Call later date")
            reason = require_text(call_later.reason, "Call later reason")

        lead = require_lead(self.store, lead_id)
        self._check_allowed(lead, new_status)

        fields: Dict[str, Any] = {"status": new_status}
        if notes and new_status in TRANSITION_EFFECTS:
            fields.update(TRANSITION_EFFECTS[new_status](actor, notes))

        if when is not None:
            fields.update(record_call_later(
                self.store, lead, actor, when, reason, notes, call_later.call_time
            ))

        if record_call:
            self.store.insert_call_log(
                user_id=actor.id,
                caller_name=actor.name,
                lead_id=lead.id,
                status_at_call=new_status.value,
                notes=notes,
            )

        previous = lead.status
        self.store.update_lead(lead, fields)
        self.store.commit()
        logger.info(f"[STATUS] Lead {lead_id}: {previous.value} -> {new_status.value} by {actor.name}")
        return lead

    def log_call(
        self,
        actor: Optional[AppUser],
        lead_id: Optional[uuid.UUID] = None,
        customer_id: Optional[uuid.UUID] = None,
        status: Union[LeadStatus, str, None] = None,
        notes: Optional[str] = None,
    ) -> CallLog:
        actor = require_actor(actor)
        if (lead_id is None) == (customer_id is None):
            raise ValidationFailed("A call log needs exactly one of lead or customer.")
        status_value = _coerce_status(status).value if status else None

        if lead_id is not None:
            require_lead(self.store, lead_id)
        elif self.store.get_customer(customer_id) is None:
            raise NotFound("Customer not found.")

        log = self.store.insert_call_log(
            user_id=actor.id,
            caller_name=actor.name,
            lead_id=lead_id,
            customer_id=customer_id,
            status_at_call=status_value,
            notes=notes,
        )
        self.store.commit()
        logger.info(f"[STATUS] Call logged by {actor.name} for {'lead ' + str(lead_id) if lead_id else 'customer ' + str(customer_id)}")
        return log

    @staticmethod
    def _check_allowed(lead: Lead, new_status: LeadStatus) -> None:
        if lead.customer_id is not None and new_status != LeadStatus.COMPLETED:
            raise ValidationFailed("Lead has been converted to a customer and cannot change status.")
        if new_status == LeadStatus.COMPLETED and lead.customer_id is None:
            raise ValidationFailed("Lead must be converted to a customer before it can be completed.")
        if lead.status == LeadStatus.DECLINED and new_status != LeadStatus.DECLINED:
            raise ValidationFailed("Declined leads can only be revived by reassigning them.")


def _coerce_status(value: Union[LeadStatus, str]) -> LeadStatus:
    try:
        return LeadStatus(value)
    except ValueError:
        raise ValidationFailed(f"Invalid lead status: {value}")
