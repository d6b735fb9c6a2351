"""
Lead Routes
One endpoint per lead engine operation. Engine errors are mapped to HTTP
responses by the handler registered in main.py.

  POST   /api/leads/                          – create lead (duplicate-checked)
  POST   /api/leads/import                    – bulk import
  POST   /api/leads/duplicate-check           – check a phone number
  GET    /api/leads/                          – leads visible to the current user
  GET    /api/leads/search?phone=             – substring phone search
  GET    /api/leads/declined | /transit       – status lists
  GET    /api/leads/unassigned?scope=         – all | call_operator | technician
  GET    /api/leads/due-today                 – calls due for the current operator
  GET    /api/leads/analytics                 – dashboard totals
  GET    /api/leads/work-stats/{user_id}      – per-user counts
  GET    /api/leads/duplicate-logs            – blocked duplicate attempts
  GET    /api/leads/call-later-logs           – call-later history by operator
  POST   /api/leads/call-logs                 – log a call
  POST   /api/leads/bulk-assign               – assign many leads
  POST   /api/leads/bulk-reassign-declined    – revive declined leads
  GET    /api/leads/{id}                      – lead detail
  POST   /api/leads/{id}/status               – status transition
  POST   /api/leads/{id}/call-later           – schedule a call-later
  GET    /api/leads/{id}/call-later-logs      – call-later history
  GET    /api/leads/{id}/call-logs            – call history
  POST   /api/leads/{id}/schedule-call        – schedule a call
  POST   /api/leads/{id}/reschedule           – reschedule
  POST   /api/leads/{id}/assign               – assign to operator/technician
  POST   /api/leads/{id}/reassign             – move between operators
  POST   /api/leads/{id}/reassign-role        – admin reassignment
"""
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from fieldcrm.core.config import settings
from fieldcrm.core.deps import get_current_user, require_admin
from fieldcrm.database import get_db
from fieldcrm.models.user import AppUser
from fieldcrm.schemas.lead import (
    AnalyticsOut, AssignRequest, BulkAssignRequest, BulkReassignDeclinedRequest, BulkResult,
    CallLaterLogOut, CallLaterRequest, CallLogCreate, CallLogOut, DuplicateCheckRequest,
    DuplicateLogOut, ImportResultOut, LeadCreate, LeadImport, LeadOut, ReassignRequest, ReassignToRoleRequest,
    RescheduleRequest, ScheduleCallRequest, StatusTransitionRequest, WorkStatsOut,
)
from fieldcrm.services.assignment_engine import AssignmentEngine
from fieldcrm.services.call_later_scheduler import CallLaterScheduler
from fieldcrm.services.duplicate_detector import DuplicateDetector
from fieldcrm.services.errors import ValidationFailed
from fieldcrm.services.guards import require_lead
from fieldcrm.services.lead_intake import LeadIntakeService
from fieldcrm.services.lead_queries import LeadQueries
from fieldcrm.services.lead_store import LeadStore
from fieldcrm.services.notification_service import DatabaseNotificationSink
from fieldcrm.services.status_engine import CallLaterRequest as TransitionCallLater, StatusEngine

router = APIRouter(tags=["Leads"])
logger = logging.getLogger(__name__)


def _page_size(limit: Optional[int]) -> int:
    if not limit:
        return settings.DEFAULT_PAGE_SIZE
    return min(limit, settings.MAX_PAGE_SIZE)


# ═══════════════════════ INTAKE ═══════════════════════

@router.post("/", response_model=LeadOut, status_code=status.HTTP_201_CREATED)
def create_lead(
    payload: LeadCreate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user),
):
    return LeadIntakeService(LeadStore(db)).create_lead(payload.model_dump(), current_user)


@router.post("/import", response_model=ImportResultOut, status_code=status.HTTP_201_CREATED)
def import_leads(
    payload: LeadImport,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user),
):
    result = LeadIntakeService(LeadStore(db)).bulk_import(
        [row.model_dump() for row in payload.leads], current_user
    )
    return {"imported": len(result.imported), "skipped_phones": result.skipped_phones}


@router.post("/duplicate-check")
def check_duplicate(
    payload: DuplicateCheckRequest,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user),
):
    result = DuplicateDetector(LeadStore(db)).check_duplicate(
        payload.phone_number, payload.customer_name, current_user, payload.model_dump()
    )
    return result.describe()


# ═══════════════════════ LISTS ═══════════════════════

@router.get("/", response_model=List[LeadOut])
def list_leads(
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user),
):
    return LeadQueries(LeadStore(db)).visible_leads(current_user, limit=_page_size(limit))


@router.get("/search", response_model=List[LeadOut])
def search_leads(
    phone: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user),
):
    return LeadQueries(LeadStore(db)).search_by_phone(phone)


@router.get("/declined", response_model=List[LeadOut])
def declined_leads(db: Session = Depends(get_db), current_user: AppUser = Depends(get_current_user)):
    return LeadQueries(LeadStore(db)).declined_leads()


@router.get("/transit", response_model=List[LeadOut])
def transit_leads(db: Session = Depends(get_db), current_user: AppUser = Depends(get_current_user)):
    return LeadQueries(LeadStore(db)).transit_leads()


@router.get("/unassigned", response_model=List[LeadOut])
def unassigned_leads(
    scope: str = Query("all"),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user),
):
    engine = AssignmentEngine(LeadStore(db))
    if scope == "all":
        return engine.unassigned()
    if scope == "call_operator":
        return engine.unassigned_to_call_operators()
    if scope == "technician":
        return engine.unassigned_to_technicians()
    raise ValidationFailed("Scope must be one of: all, call_operator, technician.")


@router.get("/due-today", response_model=List[LeadOut])
def due_today(db: Session = Depends(get_db), current_user: AppUser = Depends(get_current_user)):
    return CallLaterScheduler(LeadStore(db)).due_today(current_user.id)


@router.get("/analytics", response_model=AnalyticsOut)
def analytics(db: Session = Depends(get_db), current_user: AppUser = Depends(require_admin)):
    return LeadQueries(LeadStore(db)).analytics()


@router.get("/work-stats/{user_id}", response_model=WorkStatsOut)
def work_stats(user_id: UUID, db: Session = Depends(get_db), current_user: AppUser = Depends(get_current_user)):
    return LeadQueries(LeadStore(db)).user_work_stats(user_id)


@router.get("/duplicate-logs", response_model=List[DuplicateLogOut])
def duplicate_logs(db: Session = Depends(get_db), current_user: AppUser = Depends(require_admin)):
    return LeadQueries(LeadStore(db)).duplicate_logs()


@router.get("/call-later-logs", response_model=List[CallLaterLogOut])
def call_later_logs_by_operator(
    operator_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user),
):
    return CallLaterScheduler(LeadStore(db)).history_by_operator(operator_id or current_user.id)


# ═══════════════════════ CALL LOGS ═══════════════════════

@router.post("/call-logs", response_model=CallLogOut, status_code=status.HTTP_201_CREATED)
def log_call(
    payload: CallLogCreate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user),
):
    return StatusEngine(LeadStore(db)).log_call(
        current_user,
        lead_id=payload.lead_id,
        customer_id=payload.customer_id,
        status=payload.status,
        notes=payload.notes,
    )


# ═══════════════════════ BULK ASSIGNMENT ═══════════════════════

@router.post("/bulk-assign", response_model=BulkResult)
def bulk_assign(
    payload: BulkAssignRequest,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_admin),
):
    engine = AssignmentEngine(LeadStore(db), DatabaseNotificationSink(db))
    return {"affected": engine.bulk_assign(payload.lead_ids, payload.user_id, payload.role, current_user)}


@router.post("/bulk-reassign-declined", response_model=BulkResult)
def bulk_reassign_declined(
    payload: BulkReassignDeclinedRequest,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_admin),
):
    engine = AssignmentEngine(LeadStore(db), DatabaseNotificationSink(db))
    return {"affected": engine.bulk_reassign_declined(payload.lead_ids, payload.operator_id, current_user)}


# ═══════════════════════ SINGLE LEAD ═══════════════════════

@router.get("/{lead_id}", response_model=LeadOut)
def get_lead(lead_id: UUID, db: Session = Depends(get_db), current_user: AppUser = Depends(get_current_user)):
    return require_lead(LeadStore(db), lead_id)


@router.post("/{lead_id}/status", response_model=LeadOut)
def transition_status(
    lead_id: UUID,
    payload: StatusTransitionRequest,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user),
):
    call_later = None
    if payload.call_later is not None:
        call_later = TransitionCallLater(
            call_later_date=payload.call_later.call_later_date,
            reason=payload.call_later.reason,
            call_time=payload.call_later.call_time,
        )
    return StatusEngine(LeadStore(db)).transition(
        lead_id,
        payload.status,
        current_user,
        notes=payload.notes,
        call_later=call_later,
        record_call=payload.record_call,
    )


@router.post("/{lead_id}/call-later", response_model=LeadOut)
def schedule_call_later(
    lead_id: UUID,
    payload: CallLaterRequest,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user),
):
    return CallLaterScheduler(LeadStore(db)).schedule_call_later(
        lead_id,
        payload.call_later_date,
        payload.reason,
        current_user,
        notes=payload.notes,
        call_time=payload.call_time,
    )


@router.get("/{lead_id}/call-later-logs", response_model=List[CallLaterLogOut])
def call_later_history(lead_id: UUID, db: Session = Depends(get_db), current_user: AppUser = Depends(get_current_user)):
    store = LeadStore(db)
    require_lead(store, lead_id)
    return CallLaterScheduler(store).history_for(lead_id)


@router.get("/{lead_id}/call-logs", response_model=List[CallLogOut])
def lead_call_logs(lead_id: UUID, db: Session = Depends(get_db), current_user: AppUser = Depends(get_current_user)):
    return LeadQueries(LeadStore(db)).call_logs_for(lead_id=lead_id)


@router.post("/{lead_id}/schedule-call", response_model=LeadOut)
def schedule_call(
    lead_id: UUID,
    payload: ScheduleCallRequest,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user),
):
    scheduler = CallLaterScheduler(LeadStore(db), DatabaseNotificationSink(db))
    return scheduler.schedule_call(lead_id, payload.call_date, payload.call_time, payload.reason, current_user)


@router.post("/{lead_id}/reschedule", response_model=LeadOut)
def reschedule(
    lead_id: UUID,
    payload: RescheduleRequest,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user),
):
    scheduler = CallLaterScheduler(LeadStore(db), DatabaseNotificationSink(db))
    return scheduler.reschedule(lead_id, payload.new_date, payload.reason, current_user.id, current_user)


@router.post("/{lead_id}/assign", response_model=LeadOut)
def assign_lead(
    lead_id: UUID,
    payload: AssignRequest,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user),
):
    engine = AssignmentEngine(LeadStore(db), DatabaseNotificationSink(db))
    return engine.assign(lead_id, payload.user_id, payload.role, current_user)


@router.post("/{lead_id}/reassign", response_model=LeadOut)
def reassign_lead(
    lead_id: UUID,
    payload: ReassignRequest,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user),
):
    engine = AssignmentEngine(LeadStore(db), DatabaseNotificationSink(db))
    return engine.reassign(lead_id, payload.from_operator_id, payload.to_operator_id, current_user)


@router.post("/{lead_id}/reassign-role", response_model=LeadOut)
def reassign_lead_to_role(
    lead_id: UUID,
    payload: ReassignToRoleRequest,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_admin),
):
    engine = AssignmentEngine(LeadStore(db), DatabaseNotificationSink(db))
    return engine.reassign_to_role(lead_id, payload.user_id, payload.role, current_user)
