"""
Lead Schemas
Pydantic v2 models for the lead action endpoints. Field names are the
persisted snake_case names so payloads round-trip with stored rows.
"""
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from fieldcrm.models.lead import LeadLikelihood, LeadStatus, PropertyType
from fieldcrm.models.user import UserRole


# ─────────────────────── Lead ───────────────────────

class LeadCreate(BaseModel):
    customer_name: Optional[str] = None
    phone_number: Optional[str] = None
    additional_phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    property_type: Optional[str] = None
    likelihood: Optional[str] = None
    call_notes: Optional[str] = None
    follow_up_date: Optional[str] = None  # "YYYY-MM-DD"


class LeadImport(BaseModel):
    leads: List[LeadCreate]


class LeadOut(BaseModel):
    id: uuid.UUID
    customer_name: str
    phone_number: str
    additional_phone: Optional[str] = None
    email: Optional[str] = None
    address: str
    property_type: PropertyType
    likelihood: LeadLikelihood
    status: LeadStatus

    salesman_id: Optional[uuid.UUID] = None
    salesman_name: Optional[str] = None
    call_operator_id: Optional[uuid.UUID] = None
    call_operator_name: Optional[str] = None
    technician_id: Optional[uuid.UUID] = None
    technician_name: Optional[str] = None
    team_lead_id: Optional[uuid.UUID] = None
    team_lead_name: Optional[str] = None
    super_admin_id: Optional[uuid.UUID] = None
    super_admin_name: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    created_by_name: Optional[str] = None

    call_notes: Optional[str] = None
    visit_notes: Optional[str] = None
    follow_up_date: Optional[date] = None
    rescheduled_date: Optional[date] = None
    rescheduled_by: Optional[str] = None
    reschedule_reason: Optional[str] = None
    scheduled_call_date: Optional[date] = None
    scheduled_call_time: Optional[str] = None
    scheduled_call_reason: Optional[str] = None
    call_later_count: int = 0
    last_call_later_date: Optional[date] = None
    last_call_later_reason: Optional[str] = None

    customer_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ImportResultOut(BaseModel):
    imported: int
    skipped_phones: List[str]


# ─────────────────────── Status ───────────────────────

class CallLaterIn(BaseModel):
    call_later_date: Optional[str] = None  # "YYYY-MM-DD"
    reason: Optional[str] = None
    call_time: Optional[str] = None


class StatusTransitionRequest(BaseModel):
    status: str
    notes: Optional[str] = None
    call_later: Optional[CallLaterIn] = None
    record_call: bool = False


class CallLogCreate(BaseModel):
    lead_id: Optional[uuid.UUID] = None
    customer_id: Optional[uuid.UUID] = None
    status: Optional[str] = None
    notes: Optional[str] = None


class CallLogOut(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    caller_name: Optional[str] = None
    lead_id: Optional[uuid.UUID] = None
    customer_id: Optional[uuid.UUID] = None
    status_at_call: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# ─────────────────────── Call later / scheduling ───────────────────────

class CallLaterRequest(CallLaterIn):
    notes: Optional[str] = None


class ScheduleCallRequest(BaseModel):
    call_date: Optional[str] = None
    call_time: Optional[str] = None
    reason: Optional[str] = None


class RescheduleRequest(BaseModel):
    new_date: Optional[str] = None
    reason: Optional[str] = None


class CallLaterLogOut(BaseModel):
    id: uuid.UUID
    lead_id: uuid.UUID
    call_operator_id: uuid.UUID
    call_operator_name: str
    call_later_date: date
    reason: str
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# ─────────────────────── Assignment ───────────────────────

class AssignRequest(BaseModel):
    user_id: uuid.UUID
    role: UserRole


class ReassignRequest(BaseModel):
    from_operator_id: Optional[uuid.UUID] = None
    to_operator_id: uuid.UUID


class ReassignToRoleRequest(BaseModel):
    """Admin hand-over to a salesman, call operator or technician."""
    user_id: uuid.UUID
    role: UserRole


class BulkAssignRequest(BaseModel):
    lead_ids: List[uuid.UUID] = Field(default_factory=list)
    user_id: uuid.UUID
    role: UserRole


class BulkReassignDeclinedRequest(BaseModel):
    lead_ids: List[uuid.UUID] = Field(default_factory=list)
    operator_id: uuid.UUID


class BulkResult(BaseModel):
    affected: int


# ─────────────────────── Duplicates / stats ───────────────────────

class DuplicateCheckRequest(BaseModel):
    phone_number: str
    customer_name: Optional[str] = None


class DuplicateLogOut(BaseModel):
    id: uuid.UUID
    attempted_phone_number: str
    attempted_customer_name: Optional[str] = None
    attempted_by_id: Optional[uuid.UUID] = None
    attempted_by_name: Optional[str] = None
    attempted_by_role: Optional[str] = None
    existing_lead_id: uuid.UUID
    existing_lead_customer_name: str
    existing_lead_phone_number: str
    existing_lead_status: str
    existing_lead_owner_name: Optional[str] = None
    existing_lead_owner_role: Optional[str] = None
    attempted_lead_data: Optional[Dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AnalyticsOut(BaseModel):
    total_leads: int
    completed_leads: int
    conversion_rate: float
    total_users: int
    active_users: int
    monthly_leads: int


class WorkStatsOut(BaseModel):
    total_leads: int
    leads_today: int
    leads_this_week: int
    completed_leads: int
    pending_leads: int
    last_activity: Optional[datetime] = None
