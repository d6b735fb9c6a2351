"""
Duplicate Lead Detector
Blocks creation of a lead whose phone number already belongs to an
existing lead, and keeps an audit trail of every blocked attempt.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from fieldcrm.models.lead import Lead
from fieldcrm.models.user import AppUser, UserRole
from fieldcrm.services.errors import PersistenceError, ValidationFailed
from fieldcrm.services.lead_store import LeadStore

logger = logging.getLogger(__name__)

# Slot precedence used to name the current owner of an existing lead
_OWNER_SLOTS = (
    ("technician", UserRole.TECHNICIAN),
    ("call_operator", UserRole.CALL_OPERATOR),
    ("team_lead", UserRole.TEAM_LEAD),
    ("super_admin", UserRole.SUPER_ADMIN),
    ("salesman", UserRole.SALESMAN),
)


def lead_owner(lead: Lead) -> Tuple[Optional[str], Optional[str]]:
    """Return (owner_name, owner_role) for the first occupied assignment slot."""
    for slot, role in _OWNER_SLOTS:
        if getattr(lead, f"{slot}_id") is not None:
            return getattr(lead, f"{slot}_name"), role.value
    return lead.created_by_name, None


@dataclass
class DuplicateCheckResult:
    is_duplicate: bool
    existing_lead: Optional[Lead] = None

    def describe(self) -> Dict[str, Any]:
        if not self.existing_lead:
            return {"isDuplicate": False}
        lead = self.existing_lead
        owner_name, owner_role = lead_owner(lead)
        return {
            "isDuplicate": True,
            "existingLead": {
                "id": str(lead.id),
                "customer_name": lead.customer_name,
                "phone_number": lead.phone_number,
                "status": lead.status.value,
                "owner_name": owner_name,
                "owner_role": owner_role,
                "created_at": lead.created_at.isoformat() if lead.created_at else None,
            },
        }


class DuplicateDetector:
    def __init__(self, store: LeadStore):
        self.store = store

    def check_duplicate(
        self,
        phone_number: str,
        customer_name: Optional[str],
        attempting_user: Optional[AppUser],
        attempted_data: Optional[Dict[str, Any]] = None,
    ) -> DuplicateCheckResult:
        """
        Look for a lead with the same primary or additional phone.

        A store failure during the lookup propagates as a retryable
        PersistenceError so the caller blocks creation. A failure while
        writing the audit row only gets logged.
        """
        phone = (phone_number or "").strip()
        if not phone:
            raise ValidationFailed("Phone number is required.")

        try:
            existing = self.store.find_by_phone(phone)
        except PersistenceError as exc:
            logger.error(f"[DUPLICATE] Lookup failed for {phone}; blocking creation: {exc}")
            raise PersistenceError(
                "Could not check for duplicate leads. Please try again.", retryable=True, cause=exc.cause
            ) from exc

        if existing is None:
            return DuplicateCheckResult(is_duplicate=False)

        logger.info(
            f"[DUPLICATE] {phone} already belongs to lead {existing.id} "
            f"(attempted by {attempting_user.name if attempting_user else 'unknown'})"
        )
        self._audit(phone, customer_name, attempting_user, existing, attempted_data)
        return DuplicateCheckResult(is_duplicate=True, existing_lead=existing)

    def _audit(self, phone, customer_name, attempting_user, existing: Lead, attempted_data) -> None:
        owner_name, owner_role = lead_owner(existing)
        try:
            self.store.insert_duplicate_log(
                attempted_phone_number=phone,
                attempted_customer_name=customer_name,
                attempted_by_id=attempting_user.id if attempting_user else None,
                attempted_by_name=attempting_user.name if attempting_user else None,
                attempted_by_role=attempting_user.role.value if attempting_user else None,
                existing_lead_id=existing.id,
                existing_lead_customer_name=existing.customer_name,
                existing_lead_phone_number=existing.phone_number,
                existing_lead_status=existing.status.value,
                existing_lead_owner_name=owner_name,
                existing_lead_owner_role=owner_role,
                attempted_lead_data=_jsonable(attempted_data),
            )
            self.store.commit()
        except PersistenceError as exc:
            logger.error(f"[DUPLICATE] Could not record duplicate attempt for {phone}: {exc}")


def _jsonable(data: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if data is None:
        return None
    return {key: (value if isinstance(value, (str, int, float, bool, type(None))) else str(value))
            for key, value in data.items()}
