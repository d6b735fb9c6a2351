"""
Lead Store
Row-level access to the leads, customers, call_logs, call_later_logs and
duplicate_lead_logs tables. Engines never touch the session directly.

Writes are flushed, not committed: the calling engine commits once per
operation so each operation is a single unit of work.
"""
from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fieldcrm.db.base import utcnow
from fieldcrm.models.customer import Customer
from fieldcrm.models.lead import CallLaterLog, CallLog, DuplicateLeadLog, Lead
from fieldcrm.models.user import AppUser
from fieldcrm.services.errors import PersistenceError

logger = logging.getLogger(__name__)


class LeadStore:
    """Query/command interface over one SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, action: str, retryable: bool = False):
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"[STORE] Failed to {action}: {exc}")
            raise PersistenceError(f"Failed to {action}.", retryable=retryable, cause=exc) from exc

    # ── Reads ─────────────────────────────────────────────────────────────────

    def get_lead(self, lead_id: uuid.UUID) -> Optional[Lead]:
        with self._guard("load lead", retryable=True):
            return self.db.get(Lead, lead_id)

    def get_leads(self, lead_ids: Iterable[uuid.UUID]) -> List[Lead]:
        ids = list(lead_ids)
        if not ids:
            return []
        with self._guard("load leads", retryable=True):
            return list(self.db.scalars(select(Lead).where(Lead.id.in_(ids))))

    def get_user(self, user_id: uuid.UUID) -> Optional[AppUser]:
        with self._guard("load user", retryable=True):
            return self.db.get(AppUser, user_id)

    def get_customer(self, customer_pk: uuid.UUID) -> Optional[Customer]:
        with self._guard("load customer", retryable=True):
            return self.db.get(Customer, customer_pk)

    def get_customer_for_lead(self, lead_id: uuid.UUID) -> Optional[Customer]:
        with self._guard("load customer", retryable=True):
            return self.db.scalars(select(Customer).where(Customer.lead_id == lead_id)).first()

    def select_leads(self, *criteria, order_by: Optional[Sequence[Any]] = None, limit: Optional[int] = None) -> List[Lead]:
        stmt = select(Lead).where(*criteria)
        stmt = stmt.order_by(*(order_by or (Lead.created_at.desc(),)))
        if limit:
            stmt = stmt.limit(limit)
        with self._guard("query leads", retryable=True):
            return list(self.db.scalars(stmt))

    def count_leads(self, *criteria) -> int:
        stmt = select(func.count()).select_from(Lead).where(*criteria)
        with self._guard("count leads", retryable=True):
            return self.db.scalar(stmt) or 0

    def last_lead_activity(self, *criteria) -> Optional[datetime]:
        stmt = select(func.max(Lead.updated_at)).where(*criteria)
        with self._guard("read lead activity", retryable=True):
            return self.db.scalar(stmt)

    def select_users(self, *criteria) -> List[AppUser]:
        stmt = select(AppUser).where(*criteria).order_by(AppUser.name.asc())
        with self._guard("query users", retryable=True):
            return list(self.db.scalars(stmt))

    def count_users(self, *criteria) -> int:
        stmt = select(func.count()).select_from(AppUser).where(*criteria)
        with self._guard("count users", retryable=True):
            return self.db.scalar(stmt) or 0

    def find_by_phone(self, phone: str) -> Optional[Lead]:
        """Oldest lead whose primary or additional phone equals *phone*."""
        stmt = (
            select(Lead)
            .where(or_(Lead.phone_number == phone, Lead.additional_phone == phone))
            .order_by(Lead.created_at.asc())
            .limit(1)
        )
        with self._guard("look up duplicate leads", retryable=True):
            return self.db.scalars(stmt).first()

    def select_customers(self, *criteria) -> List[Customer]:
        stmt = select(Customer).where(*criteria).order_by(Customer.created_at.desc())
        with self._guard("query customers", retryable=True):
            return list(self.db.scalars(stmt))

    def customer_ids_with_prefix(self, prefix: str) -> List[str]:
        stmt = select(Customer.customer_id).where(Customer.customer_id.ilike(f"{prefix}%"))
        with self._guard("scan customer ids", retryable=True):
            return list(self.db.scalars(stmt))

    def select_call_later_logs(self, *criteria) -> List[CallLaterLog]:
        stmt = select(CallLaterLog).where(*criteria).order_by(CallLaterLog.created_at.desc())
        with self._guard("query call later logs", retryable=True):
            return list(self.db.scalars(stmt))

    def count_call_later_logs(self, *criteria) -> int:
        stmt = select(func.count()).select_from(CallLaterLog).where(*criteria)
        with self._guard("count call later logs", retryable=True):
            return self.db.scalar(stmt) or 0

    def select_call_logs(self, *criteria) -> List[CallLog]:
        stmt = select(CallLog).where(*criteria).order_by(CallLog.created_at.desc())
        with self._guard("query call logs", retryable=True):
            return list(self.db.scalars(stmt))

    def select_duplicate_logs(self) -> List[DuplicateLeadLog]:
        stmt = select(DuplicateLeadLog).order_by(DuplicateLeadLog.created_at.desc())
        with self._guard("query duplicate lead logs", retryable=True):
            return list(self.db.scalars(stmt))

    # ── Lead writes ───────────────────────────────────────────────────────────

    def insert_lead(self, **fields) -> Lead:
        lead = Lead(**fields)
        with self._guard("create lead"):
            self.db.add(lead)
            self.db.flush()
        return lead

    def insert_leads(self, rows: List[Dict[str, Any]]) -> List[Lead]:
        leads = [Lead(**row) for row in rows]
        with self._guard("import leads"):
            self.db.add_all(leads)
            self.db.flush()
        return leads

    def update_lead(self, lead: Lead, fields: Dict[str, Any]) -> Lead:
        with self._guard("update lead"):
            for name, value in fields.items():
                setattr(lead, name, value)
            lead.updated_at = utcnow()
            self.db.flush()
        return lead

    def update_leads_in(self, lead_ids: Iterable[uuid.UUID], fields: Dict[str, Any]) -> int:
        """Apply the same field values to every lead in *lead_ids* with one statement."""
        ids = list(lead_ids)
        if not ids:
            return 0
        stmt = (
            update(Lead)
            .where(Lead.id.in_(ids))
            .values(**fields, updated_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )
        with self._guard("update leads"):
            return self.db.execute(stmt).rowcount

    def update_lead_where(self, lead_id: uuid.UUID, criteria: Sequence[Any], fields: Dict[str, Any]) -> int:
        """Conditional update; returns 0 when the lead no longer matches *criteria*."""
        stmt = (
            update(Lead)
            .where(Lead.id == lead_id, *criteria)
            .values(**fields, updated_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )
        with self._guard("update lead"):
            return self.db.execute(stmt).rowcount

    # ── Customer writes ───────────────────────────────────────────────────────

    def insert_customer(self, **fields) -> Customer:
        customer = Customer(**fields)
        with self._guard("create customer"):
            self.db.add(customer)
            self.db.flush()
        return customer

    def update_customer(self, customer: Customer, fields: Dict[str, Any]) -> Customer:
        with self._guard("update customer"):
            for name, value in fields.items():
                setattr(customer, name, value)
            customer.updated_at = utcnow()
            self.db.flush()
        return customer

    # ── User writes ───────────────────────────────────────────────────────────

    def update_user(self, user: AppUser, fields: Dict[str, Any]) -> AppUser:
        with self._guard("update user"):
            for name, value in fields.items():
                setattr(user, name, value)
            user.updated_at = utcnow()
            self.db.flush()
        return user

    def delete_customer(self, customer: Customer) -> None:
        with self._guard("delete customer"):
            self.db.delete(customer)
            self.db.flush()

    # ── Log writes ────────────────────────────────────────────────────────────

    def insert_call_later_log(self, **fields) -> CallLaterLog:
        log = CallLaterLog(**fields)
        with self._guard("add call later log"):
            self.db.add(log)
            self.db.flush()
        return log

    def insert_call_log(self, **fields) -> CallLog:
        log = CallLog(**fields)
        with self._guard("add call log"):
            self.db.add(log)
            self.db.flush()
        return log

    def insert_duplicate_log(self, **fields) -> DuplicateLeadLog:
        log = DuplicateLeadLog(**fields)
        with self._guard("log duplicate lead attempt"):
            self.db.add(log)
            self.db.flush()
        return log

    # ── Unit of work ──────────────────────────────────────────────────────────

    def commit(self) -> None:
        with self._guard("save changes"):
            self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
