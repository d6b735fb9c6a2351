"""
Read-side lead queries for dashboards and lists.

Every figure is computed by the store on each call; nothing is cached.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import or_

from fieldcrm.db.base import utcnow
from fieldcrm.models.lead import CallLog, DuplicateLeadLog, Lead, LeadStatus
from fieldcrm.models.user import ADMIN_ROLES, AppUser, UserRole
from fieldcrm.services.lead_store import LeadStore

logger = logging.getLogger(__name__)

_ROLE_SLOT = {
    UserRole.SALESMAN: Lead.salesman_id,
    UserRole.CALL_OPERATOR: Lead.call_operator_id,
    UserRole.TECHNICIAN: Lead.technician_id,
}

PENDING_STATUSES = (LeadStatus.NEW, LeadStatus.CONTACTED, LeadStatus.HOLD, LeadStatus.TRANSIT)


class LeadQueries:
    def __init__(self, store: LeadStore):
        self.store = store

    def leads_for_user(self, user_id: uuid.UUID, role: Union[UserRole, str], limit: Optional[int] = None) -> List[Lead]:
        """Leads in the slot that matches *role*. Roles without a lead slot get nothing."""
        column = _ROLE_SLOT.get(UserRole(role))
        if column is None:
            return []
        return self.store.select_leads(column == user_id, limit=limit)

    def visible_leads(self, user: AppUser, limit: Optional[int] = None) -> List[Lead]:
        if not user.is_active:
            logger.info(f"[QUERY] {user.name} is deactivated; no leads visible")
            return []
        if user.role in ADMIN_ROLES:
            return self.store.select_leads(limit=limit)
        return self.leads_for_user(user.id, user.role, limit=limit)

    def search_by_phone(self, term: str) -> List[Lead]:
        """Case-insensitive substring match over both phone fields."""
        needle = (term or "").strip()
        if not needle:
            return []
        pattern = f"%{needle}%"
        return self.store.select_leads(
            or_(Lead.phone_number.ilike(pattern), Lead.additional_phone.ilike(pattern))
        )

    def declined_leads(self) -> List[Lead]:
        return self.store.select_leads(Lead.status == LeadStatus.DECLINED)

    def transit_leads(self) -> List[Lead]:
        return self.store.select_leads(Lead.status == LeadStatus.TRANSIT)

    def call_logs_for(self, lead_id: Optional[uuid.UUID] = None, customer_id: Optional[uuid.UUID] = None) -> List[CallLog]:
        if lead_id is not None:
            return self.store.select_call_logs(CallLog.lead_id == lead_id)
        if customer_id is not None:
            return self.store.select_call_logs(CallLog.customer_id == customer_id)
        return []

    def duplicate_logs(self) -> List[DuplicateLeadLog]:
        return self.store.select_duplicate_logs()

    def analytics(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or utcnow()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        total = self.store.count_leads()
        completed = self.store.count_leads(Lead.status == LeadStatus.COMPLETED)
        return {
            "total_leads": total,
            "completed_leads": completed,
            "conversion_rate": round(completed / total * 100, 1) if total else 0.0,
            "total_users": self.store.count_users(),
            "active_users": self.store.count_users(AppUser.is_active.is_(True)),
            "monthly_leads": self.store.count_leads(Lead.created_at >= month_start),
        }

    def user_work_stats(self, user_id: uuid.UUID, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Counts over every lead where the user holds the salesman, call operator or technician slot."""
        now = now or utcnow()
        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        owned = or_(
            Lead.call_operator_id == user_id,
            Lead.technician_id == user_id,
            Lead.salesman_id == user_id,
        )
        last = self.store.last_lead_activity(owned)
        if last is not None and last.tzinfo is None:
            last = last.replace(tzinfo=timezone.utc)
        return {
            "total_leads": self.store.count_leads(owned),
            "leads_today": self.store.count_leads(owned, Lead.created_at >= day_start),
            "leads_this_week": self.store.count_leads(owned, Lead.created_at >= now - timedelta(days=7)),
            "completed_leads": self.store.count_leads(owned, Lead.status == LeadStatus.COMPLETED),
            "pending_leads": self.store.count_leads(owned, Lead.status.in_(PENDING_STATUSES)),
            "last_activity": last,
        }
