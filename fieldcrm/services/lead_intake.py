"""
Lead Intake Service
Creates leads one at a time or in an import batch, placing each new lead
in the assignment slot that matches the creator's role.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fieldcrm.models.lead import Lead, LeadLikelihood, LeadStatus, PropertyType
from fieldcrm.models.user import AppUser, UserRole
from fieldcrm.services.duplicate_detector import DuplicateDetector
from fieldcrm.services.errors import DuplicateDetected, ValidationFailed
from fieldcrm.services.guards import coerce_date, require_actor, require_text
from fieldcrm.services.lead_store import LeadStore

logger = logging.getLogger(__name__)

_OPTIONAL_FIELDS = ("additional_phone", "email", "call_notes", "follow_up_date")

_CREATOR_SLOT = {
    UserRole.CALL_OPERATOR: "call_operator",
    UserRole.TEAM_LEAD: "team_lead",
    UserRole.SUPER_ADMIN: "super_admin",
}


@dataclass
class ImportResult:
    imported: List[Lead] = field(default_factory=list)
    skipped_phones: List[str] = field(default_factory=list)


class LeadIntakeService:
    def __init__(self, store: LeadStore):
        self.store = store
        self.detector = DuplicateDetector(store)

    def create_lead(self, data: Dict[str, Any], actor: Optional[AppUser]) -> Lead:
        actor = require_actor(actor)
        row = self._build_row(data, actor)

        result = self.detector.check_duplicate(row["phone_number"], row["customer_name"], actor, data)
        if result.is_duplicate:
            existing = result.existing_lead
            raise DuplicateDetected(
                f"A lead with phone number {row['phone_number']} already exists "
                f"({existing.customer_name}, {existing.status.value}).",
                existing_lead=existing,
                details=result.describe()["existingLead"],
            )

        lead = self.store.insert_lead(**row)
        self.store.commit()
        logger.info(f"[INTAKE] Lead {lead.id} created by {actor.name} ({actor.role.value})")
        return lead

    def bulk_import(self, rows: List[Dict[str, Any]], actor: Optional[AppUser]) -> ImportResult:
        """
        Insert every non-duplicate row in one batch.

        Rows are validated up front; a single invalid row rejects the import.
        Rows matching an existing lead are skipped and audited, repeats of an
        earlier row in the same batch are skipped.
        """
        actor = require_actor(actor)
        built = [self._build_row(data, actor) for data in rows]

        result = ImportResult()
        seen = set()
        to_insert = []
        for row, raw in zip(built, rows):
            phone = row["phone_number"]
            extra = row.get("additional_phone")
            repeated = phone in seen or (extra is not None and extra in seen)
            if repeated or self.detector.check_duplicate(phone, row["customer_name"], actor, raw).is_duplicate:
                result.skipped_phones.append(phone)
                continue
            seen.add(phone)
            if extra:
                seen.add(extra)
            to_insert.append(row)

        if to_insert:
            result.imported = self.store.insert_leads(to_insert)
            self.store.commit()
        logger.info(
            f"[INTAKE] Imported {len(result.imported)} lead(s), "
            f"skipped {len(result.skipped_phones)} duplicate(s) for {actor.name}"
        )
        return result

    def _build_row(self, data: Dict[str, Any], actor: AppUser) -> Dict[str, Any]:
        row = {
            "customer_name": require_text(data.get("customer_name"), "Customer name"),
            "phone_number": require_text(data.get("phone_number"), "Phone number"),
            "address": require_text(data.get("address"), "Address"),
            "property_type": _coerce(PropertyType, data.get("property_type"), PropertyType.RESIDENTIAL, "property type"),
            "likelihood": _coerce(LeadLikelihood, data.get("likelihood"), LeadLikelihood.WARM, "likelihood"),
            "status": LeadStatus.NEW,
            "call_later_count": 0,
            "created_by": actor.id,
            "created_by_name": actor.name,
        }
        for name in _OPTIONAL_FIELDS:
            value = data.get(name)
            if isinstance(value, str):
                value = value.strip() or None
            if value is None:
                continue
            row[name] = coerce_date(value, "Follow-up date") if name == "follow_up_date" else value

        slot = _CREATOR_SLOT.get(actor.role, "salesman")
        row[f"{slot}_id"] = actor.id
        row[f"{slot}_name"] = actor.name
        return row


def _coerce(enum_cls, value, default, label):
    if value is None or value == "":
        return default
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationFailed(f"Invalid {label}: {value}")
