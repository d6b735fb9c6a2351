"""
Lead Model - Field-sales lead pipeline
Leads move from salesmen through call operators and technicians
to a completed (customer) state.
"""
from datetime import date, datetime
from sqlalchemy import String, Date, DateTime, Integer, Text, Uuid, ForeignKey, JSON, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from typing import Optional
import uuid
import enum

from fieldcrm.db.base import Base, TimestampMixin, utcnow


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class LeadStatus(str, enum.Enum):
    NEW = "new"
    RINGING = "ringing"
    CONTACTED = "contacted"
    HOLD = "hold"
    TRANSIT = "transit"
    DECLINED = "declined"
    COMPLETED = "completed"


class LeadLikelihood(str, enum.Enum):
    HOT = "hot"
    WARM = "warm"
    COLD = "cold"


class PropertyType(str, enum.Enum):
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    INDUSTRIAL = "industrial"


class Lead(TimestampMixin, Base):
    """
    Lead model - the central pipeline record.

    Assignment slots (salesman, call operator, technician, team lead,
    super admin) are independent nullable id/name pairs. A lead with a
    customer_id is completed and never leaves that state.
    """
    __tablename__ = "leads"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Contact
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    additional_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[str] = mapped_column(Text, nullable=False)

    # Classification
    property_type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType, name="property_type", values_callable=_enum_values),
        default=PropertyType.RESIDENTIAL,
        nullable=False,
    )
    likelihood: Mapped[LeadLikelihood] = mapped_column(
        SQLEnum(LeadLikelihood, name="lead_likelihood", values_callable=_enum_values),
        default=LeadLikelihood.WARM,
        nullable=False,
    )
    status: Mapped[LeadStatus] = mapped_column(
        SQLEnum(LeadStatus, name="lead_status", values_callable=_enum_values),
        default=LeadStatus.NEW,
        nullable=False,
        index=True,
    )

    # Assignment slots
    salesman_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("app_users.id"), nullable=True, index=True)
    salesman_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    call_operator_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("app_users.id"), nullable=True, index=True)
    call_operator_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    technician_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("app_users.id"), nullable=True, index=True)
    technician_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    team_lead_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("app_users.id"), nullable=True)
    team_lead_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    super_admin_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("app_users.id"), nullable=True)
    super_admin_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Provenance
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    created_by_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Workflow annotations
    call_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    visit_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    follow_up_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    rescheduled_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    rescheduled_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reschedule_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    scheduled_call_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True, index=True)
    # Legacy camelCase column kept so existing rows round-trip
    scheduled_call_time: Mapped[Optional[str]] = mapped_column("scheduledCallTime", String(16), nullable=True)
    scheduled_call_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    call_later_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_call_later_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    last_call_later_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Linkage
    customer_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("customers.id"), nullable=True, unique=True)

    def __repr__(self) -> str:
        return f"<Lead {self.customer_name} [{self.status.value}]>"


class CallLaterLog(Base):
    """Append-only record of a deferred follow-up request."""
    __tablename__ = "call_later_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    lead_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("leads.id"), nullable=False, index=True)
    call_operator_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("app_users.id"), nullable=False, index=True)
    call_operator_name: Mapped[str] = mapped_column(String(255), nullable=False)
    call_later_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class CallLog(Base):
    """Append-only record of a call made against a lead or a customer."""
    __tablename__ = "call_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("app_users.id"), nullable=False, index=True)
    caller_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    lead_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("leads.id"), nullable=True, index=True)
    customer_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("customers.id"), nullable=True, index=True)
    status_at_call: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class DuplicateLeadLog(Base):
    """Audit row written every time someone tries to create an existing lead."""
    __tablename__ = "duplicate_lead_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    attempted_phone_number: Mapped[str] = mapped_column(String(32), nullable=False)
    attempted_customer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    attempted_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    attempted_by_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    attempted_by_role: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    existing_lead_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("leads.id"), nullable=False, index=True)
    existing_lead_customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    existing_lead_phone_number: Mapped[str] = mapped_column(String(32), nullable=False)
    existing_lead_status: Mapped[str] = mapped_column(String(20), nullable=False)
    existing_lead_owner_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    existing_lead_owner_role: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    attempted_lead_data: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
