"""
Assignment Engine
Binds leads to call operator or technician slots, singly or in bulk, moves
leads between operators and revives declined leads.

Call operator and technician assignment are independent: assigning one slot
never clears the other. Only the admin reassignment (reassign_to_role)
clears slots.
"""
from __future__ import annotations

import logging
import uuid
from typing import Dict, Iterable, List, Optional, Union

from fieldcrm.core.config import settings
from fieldcrm.models.lead import Lead, LeadStatus
from fieldcrm.models.user import AppUser, UserRole
from fieldcrm.services.errors import AssignmentConflict, NotFound, TargetNotFound, ValidationFailed
from fieldcrm.services.guards import require_actor, require_lead
from fieldcrm.services.lead_store import LeadStore
from fieldcrm.services.notification_service import NotificationSink, emit_safely, lead_assignment_event

logger = logging.getLogger(__name__)

# Slot prefix, status after assignment and lookup failure message per role
ASSIGNABLE_ROLES: Dict[UserRole, tuple] = {
    UserRole.CALL_OPERATOR: ("call_operator", LeadStatus.NEW, "Call operator not found."),
    UserRole.TECHNICIAN: ("technician", LeadStatus.TRANSIT, "Technician not found."),
}

# Status a lead takes when an admin hands it to a role
REASSIGN_STATUS: Dict[UserRole, LeadStatus] = {
    UserRole.SALESMAN: LeadStatus.NEW,
    UserRole.CALL_OPERATOR: LeadStatus.CONTACTED,
    UserRole.TECHNICIAN: LeadStatus.TRANSIT,
}

_CLEARED_SLOTS = ("salesman", "call_operator", "technician")


class AssignmentEngine:
    def __init__(
        self,
        store: LeadStore,
        notifier: Optional[NotificationSink] = None,
        strict_reassignment: Optional[bool] = None,
    ):
        self.store = store
        self.notifier = notifier
        self.strict_reassignment = (
            settings.STRICT_REASSIGNMENT if strict_reassignment is None else strict_reassignment
        )

    # ── Single lead ───────────────────────────────────────────────────────────

    def assign(
        self,
        lead_id: uuid.UUID,
        target_user_id: uuid.UUID,
        target_role: Union[UserRole, str],
        actor: Optional[AppUser],
    ) -> Lead:
        actor = require_actor(actor)
        role = _assignable_role(target_role)
        target = self._resolve_target(target_user_id, role)

        lead = require_lead(self.store, lead_id)
        _ensure_assignable(lead)

        self.store.update_lead(lead, _slot_fields(target, role))
        self.store.commit()
        logger.info(f"[ASSIGN] Lead {lead_id} -> {role.value} {target.name} by {actor.name}")

        emit_safely(self.notifier, [lead_assignment_event(target.id, lead.id, lead.customer_name)])
        return lead

    def reassign(
        self,
        lead_id: uuid.UUID,
        from_operator_id: Optional[uuid.UUID],
        to_operator_id: uuid.UUID,
        actor: Optional[AppUser],
    ) -> Lead:
        """
        Move a lead from one call operator to another, keeping its status
        and history.

        Best-effort by default: when the lead's current operator is not
        *from_operator_id* it is simply assigned to *to_operator_id*. With
        strict reassignment the write only applies while the lead still
        belongs to *from_operator_id*; otherwise AssignmentConflict.
        """
        actor = require_actor(actor)
        target = self._resolve_target(to_operator_id, UserRole.CALL_OPERATOR)

        lead = require_lead(self.store, lead_id)
        _ensure_assignable(lead)

        fields = {"call_operator_id": target.id, "call_operator_name": target.name}
        if self.strict_reassignment:
            expected = (
                Lead.call_operator_id.is_(None) if from_operator_id is None
                else Lead.call_operator_id == from_operator_id
            )
            if self.store.update_lead_where(lead_id, [expected], fields) == 0:
                self.store.rollback()
                raise AssignmentConflict(
                    "Lead was reassigned by someone else. Refresh and try again."
                )
            self.store.commit()
            lead = self.store.get_lead(lead_id)
        else:
            if lead.call_operator_id != from_operator_id:
                logger.warning(
                    f"[ASSIGN] Lead {lead_id} belongs to {lead.call_operator_id}, not {from_operator_id}; "
                    f"assigning to {target.name} anyway"
                )
            self.store.update_lead(lead, fields)
            self.store.commit()

        logger.info(f"[ASSIGN] Lead {lead_id} reassigned to {target.name} by {actor.name}")
        emit_safely(self.notifier, [lead_assignment_event(target.id, lead.id, lead.customer_name)])
        return lead

    def reassign_to_role(
        self,
        lead_id: uuid.UUID,
        user_id: uuid.UUID,
        role: Union[UserRole, str],
        actor: Optional[AppUser],
    ) -> Lead:
        """Hand a lead to a salesman, call operator or technician, clearing the other field slots."""
        actor = require_actor(actor)
        try:
            role = UserRole(role)
        except ValueError:
            raise ValidationFailed(f"Invalid role: {role}")
        if role not in REASSIGN_STATUS:
            raise ValidationFailed(f"Leads cannot be reassigned to a {role.value}.")

        target = self.store.get_user(user_id)
        if target is None or not target.is_active or target.role != role:
            raise TargetNotFound("User not found.")

        lead = require_lead(self.store, lead_id)
        _ensure_assignable(lead)

        fields = {}
        for slot in _CLEARED_SLOTS:
            fields[f"{slot}_id"] = None
            fields[f"{slot}_name"] = None
        fields[f"{role.value}_id"] = target.id
        fields[f"{role.value}_name"] = target.name
        fields["status"] = REASSIGN_STATUS[role]

        self.store.update_lead(lead, fields)
        self.store.commit()
        logger.info(f"[ASSIGN] Lead {lead_id} handed to {role.value} {target.name} by {actor.name}")

        emit_safely(self.notifier, [
            lead_assignment_event(target.id, lead.id, lead.customer_name, title="Lead Reassigned")
        ])
        return lead

    # ── Bulk ──────────────────────────────────────────────────────────────────

    def bulk_assign(
        self,
        lead_ids: Iterable[uuid.UUID],
        target_user_id: uuid.UUID,
        target_role: Union[UserRole, str],
        actor: Optional[AppUser],
    ) -> int:
        """
        Assign every lead in *lead_ids* to one user with a single update.

        An empty set is a no-op returning 0. The target and every lead are
        checked first; any failure rejects the whole batch.
        """
        ids = list(dict.fromkeys(lead_ids))
        if not ids:
            logger.info("[ASSIGN] Nothing to assign")
            return 0

        actor = require_actor(actor)
        role = _assignable_role(target_role)
        target = self._resolve_target(target_user_id, role)

        leads = self._load_batch(ids)
        for lead in leads:
            _ensure_assignable(lead)

        count = self.store.update_leads_in(ids, _slot_fields(target, role))
        self.store.commit()
        logger.info(f"[ASSIGN] {count} lead(s) -> {role.value} {target.name} by {actor.name}")

        emit_safely(self.notifier, [
            lead_assignment_event(target.id, lead.id, lead.customer_name) for lead in leads
        ])
        return count

    def bulk_reassign_declined(
        self,
        lead_ids: Iterable[uuid.UUID],
        operator_id: uuid.UUID,
        actor: Optional[AppUser],
    ) -> int:
        """Revive declined leads as new leads of one call operator. Other statuses in the set are ignored."""
        ids = list(dict.fromkeys(lead_ids))
        if not ids:
            return 0

        actor = require_actor(actor)
        target = self._resolve_target(operator_id, UserRole.CALL_OPERATOR)

        declined = [lead for lead in self._load_batch(ids) if lead.status == LeadStatus.DECLINED]
        if not declined:
            logger.info("[ASSIGN] No declined leads to reassign")
            return 0

        count = self.store.update_leads_in(
            [lead.id for lead in declined],
            {
                "call_operator_id": target.id,
                "call_operator_name": target.name,
                "status": LeadStatus.NEW,
            },
        )
        self.store.commit()
        logger.info(f"[ASSIGN] Revived {count} declined lead(s) for {target.name} by {actor.name}")

        emit_safely(self.notifier, [
            lead_assignment_event(target.id, lead.id, lead.customer_name, title="Lead Reassigned")
            for lead in declined
        ])
        return count

    # ── Unassigned queries ────────────────────────────────────────────────────

    def unassigned(self) -> List[Lead]:
        """Leads with neither a call operator nor a technician."""
        return self.store.select_leads(Lead.call_operator_id.is_(None), Lead.technician_id.is_(None))

    def unassigned_to_call_operators(self) -> List[Lead]:
        return self.store.select_leads(Lead.call_operator_id.is_(None))

    def unassigned_to_technicians(self) -> List[Lead]:
        return self.store.select_leads(Lead.technician_id.is_(None))

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _resolve_target(self, user_id: uuid.UUID, role: UserRole) -> AppUser:
        target = self.store.get_user(user_id) if user_id else None
        if target is None or not target.is_active or target.role != role:
            logger.warning(f"[ASSIGN] No active {role.value} with id {user_id}")
            raise TargetNotFound(ASSIGNABLE_ROLES[role][2])
        return target

    def _load_batch(self, ids: List[uuid.UUID]) -> List[Lead]:
        leads = self.store.get_leads(ids)
        if len(leads) != len(ids):
            found = {lead.id for lead in leads}
            missing = [str(lead_id) for lead_id in ids if lead_id not in found]
            raise NotFound(f"Lead not found: {', '.join(missing)}")
        return leads


def _assignable_role(value: Union[UserRole, str]) -> UserRole:
    try:
        role = UserRole(value)
    except ValueError:
        raise ValidationFailed(f"Invalid role: {value}")
    if role not in ASSIGNABLE_ROLES:
        raise ValidationFailed("Leads can only be assigned to call operators or technicians.")
    return role


def _slot_fields(target: AppUser, role: UserRole) -> dict:
    slot, status, _ = ASSIGNABLE_ROLES[role]
    return {f"{slot}_id": target.id, f"{slot}_name": target.name, "status": status}


def _ensure_assignable(lead: Lead) -> None:
    if lead.customer_id is not None:
        raise ValidationFailed("Lead has already been converted to a customer.")
