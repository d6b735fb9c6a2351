"""
Customer Model - converted leads
One customer row per converted lead, keyed by a business-readable id (RE001, CO002...)
"""
from datetime import date, datetime
from sqlalchemy import String, Date, DateTime, Boolean, Float, Text, Uuid, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from typing import Optional
import uuid
import enum

from fieldcrm.db.base import Base, TimestampMixin, utcnow
from fieldcrm.models.lead import PropertyType, _enum_values


class CustomerStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ProjectStatus(str, enum.Enum):
    AWAITING_FIRST_PAYMENT = "Awaiting 1st Payment"
    MATERIAL_DISTRIBUTION = "Material Distribution"
    AWAITING_SECOND_PAYMENT = "Awaiting 2nd Payment"
    WORK_IN_PROGRESS = "Work in Progress"
    METER_INSTALLATION = "Meter Installation"
    COMPLETED = "Completed"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    LOAN = "loan"


class LoanStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DISBURSED = "disbursed"
    REJECTED = "rejected"


class Customer(TimestampMixin, Base):
    """Customer record created exactly once per converted lead."""
    __tablename__ = "customers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    lead_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("leads.id", use_alter=True, name="fk_customers_lead_id"),
        unique=True, nullable=False,
    )

    # Contact (copied from the lead at conversion time)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(32), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    property_type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType, name="property_type", values_callable=_enum_values),
        nullable=False,
    )

    status: Mapped[CustomerStatus] = mapped_column(
        SQLEnum(CustomerStatus, name="customer_status", values_callable=_enum_values),
        default=CustomerStatus.ACTIVE,
        nullable=False,
    )
    project_status: Mapped[Optional[ProjectStatus]] = mapped_column(
        SQLEnum(ProjectStatus, name="project_status", values_callable=_enum_values),
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Electricity
    electricity_bill_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    average_electricity_usage: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    electricity_usage_unit: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)

    # Payment
    has_paid_first_installment: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    payment_method: Mapped[Optional[PaymentMethod]] = mapped_column(
        SQLEnum(PaymentMethod, name="payment_method", values_callable=_enum_values),
        nullable=True,
    )
    cash_bill_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Loan
    loan_provider: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    loan_amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    loan_account_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    loan_status: Mapped[Optional[LoanStatus]] = mapped_column(
        SQLEnum(LoanStatus, name="loan_status", values_callable=_enum_values),
        nullable=True,
    )
    loan_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Installation needs
    customer_needs: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    preferred_installation_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    special_requirements: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    converted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Customer {self.customer_id} {self.customer_name}>"
