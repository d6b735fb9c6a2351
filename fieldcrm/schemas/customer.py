"""
Customer Schemas
Conversion payload and customer responses. Conversion fields are loosely
typed on purpose: completeness is checked by the conversion engine so a
missing field comes back as a readable 400, not a 422.
"""
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel

from fieldcrm.models.customer import CustomerStatus, LoanStatus, PaymentMethod, ProjectStatus
from fieldcrm.models.lead import PropertyType


class ConversionRequest(BaseModel):
    """Payload of the customer conversion form."""
    lead_id: uuid.UUID
    email: Optional[str] = None
    electricity_bill_number: Optional[str] = None
    average_electricity_usage: Optional[float] = None
    electricity_usage_unit: Optional[str] = "kWh"
    has_paid_first_installment: bool = False
    payment_method: Optional[PaymentMethod] = None
    cash_bill_number: Optional[str] = None
    loan_provider: Optional[str] = None
    loan_amount: Optional[float] = None
    loan_account_number: Optional[str] = None
    loan_status: Optional[LoanStatus] = None
    loan_notes: Optional[str] = None
    customer_needs: Optional[str] = None
    preferred_installation_date: Optional[date] = None
    special_requirements: Optional[str] = None
    notes: Optional[str] = None


class CustomerOut(BaseModel):
    id: uuid.UUID
    customer_id: str
    lead_id: uuid.UUID
    customer_name: str
    phone_number: str
    email: Optional[str] = None
    address: str
    property_type: PropertyType
    status: CustomerStatus
    project_status: Optional[ProjectStatus] = None
    notes: Optional[str] = None
    electricity_bill_number: Optional[str] = None
    average_electricity_usage: Optional[float] = None
    electricity_usage_unit: Optional[str] = None
    has_paid_first_installment: bool
    payment_method: Optional[PaymentMethod] = None
    cash_bill_number: Optional[str] = None
    loan_provider: Optional[str] = None
    loan_amount: Optional[float] = None
    loan_account_number: Optional[str] = None
    loan_status: Optional[LoanStatus] = None
    loan_notes: Optional[str] = None
    customer_needs: Optional[str] = None
    preferred_installation_date: Optional[date] = None
    special_requirements: Optional[str] = None
    converted_at: datetime
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProjectStatusUpdate(BaseModel):
    project_status: ProjectStatus
