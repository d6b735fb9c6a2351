"""
Input checks shared by the lead engines. All of them run before the
engine issues a write.
"""
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional, Union

from fieldcrm.models.lead import Lead
from fieldcrm.models.user import AppUser
from fieldcrm.services.errors import NotAuthenticated, NotFound, ValidationFailed
from fieldcrm.services.lead_store import LeadStore


def require_actor(actor: Optional[AppUser]) -> AppUser:
    if actor is None:
        raise NotAuthenticated()
    if not actor.is_active:
        raise NotAuthenticated("Your account has been deactivated. Please contact your administrator.")
    return actor


def require_lead(store: LeadStore, lead_id: uuid.UUID) -> Lead:
    lead = store.get_lead(lead_id)
    if lead is None:
        raise NotFound("Lead not found.")
    return lead


def require_text(value: Optional[str], label: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationFailed(f"{label} is required.")
    return str(value).strip()


def coerce_date(value: Union[date, datetime, str, None], label: str) -> date:
    """Accept a date, a datetime or an ISO 'YYYY-MM-DD' string; anything else is rejected."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationFailed(f"{label} is required.")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationFailed(f"{label} must be a valid calendar date (YYYY-MM-DD).")
