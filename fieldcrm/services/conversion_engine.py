"""
Customer Conversion Engine
Turns a qualified lead into a Customer record and completes the lead.

The customer insert and the lead update are one unit of work: either both
are committed or neither is visible. Request validation happens before the
engine touches the store.
"""
from __future__ import annotations

import logging
import math
import time
from typing import Optional, Union

from fieldcrm.core.config import settings
from fieldcrm.db.base import utcnow
from fieldcrm.models.customer import Customer, CustomerStatus, PaymentMethod
from fieldcrm.models.lead import Lead, LeadStatus, PropertyType
from fieldcrm.models.user import AppUser
from fieldcrm.schemas.customer import ConversionRequest
from fieldcrm.services.errors import ConversionFailed, PersistenceError, ValidationFailed
from fieldcrm.services.guards import require_actor, require_lead
from fieldcrm.services.lead_store import LeadStore
from fieldcrm.services.notification_service import NotificationSink, emit_safely, lead_completion_event

logger = logging.getLogger(__name__)

CUSTOMER_ID_PREFIXES = {
    PropertyType.RESIDENTIAL.value: "RE",
    PropertyType.COMMERCIAL.value: "CO",
    PropertyType.INDUSTRIAL.value: "IN",
}
FALLBACK_PREFIX = "CU"


def validate_conversion(request: ConversionRequest) -> None:
    """Reject incomplete conversion requests. Never touches the store."""
    if (
        not _filled(request.email)
        or not _filled(request.electricity_bill_number)
        or not _filled(request.customer_needs)
        or not _positive(request.average_electricity_usage)
    ):
        raise ValidationFailed(
            "Please fill in all required fields: email, electricity bill number, "
            "average electricity usage (greater than 0) and customer needs."
        )
    if request.has_paid_first_installment and not request.payment_method:
        raise ValidationFailed("Please select payment method if customer has paid first installment.")
    if request.payment_method == PaymentMethod.LOAN and (
        not _filled(request.loan_provider)
        or not _filled(request.loan_account_number)
        or not _positive(request.loan_amount)
    ):
        raise ValidationFailed("Please fill in all loan details.")


class ConversionEngine:
    def __init__(self, store: LeadStore, notifier: Optional[NotificationSink] = None):
        self.store = store
        self.notifier = notifier

    def convert(self, request: ConversionRequest, actor: Optional[AppUser]) -> Customer:
        actor = require_actor(actor)
        validate_conversion(request)

        lead = require_lead(self.store, request.lead_id)
        if lead.customer_id is not None or self.store.get_customer_for_lead(lead.id) is not None:
            raise ValidationFailed(f"Lead for {lead.customer_name} has already been converted to a customer.")

        code = self.generate_customer_id(lead.property_type)
        customer = self._apply(lead, request, code)

        logger.info(f"[CONVERT] Lead {lead.id} -> customer {code} by {actor.name}")
        if lead.salesman_id:
            emit_safely(self.notifier, [
                lead_completion_event(lead.salesman_id, lead.id, lead.customer_name, customer_code=code)
            ])
        return customer

    def generate_customer_id(self, property_type: Union[PropertyType, str, None]) -> str:
        """
        Next business id for the property type's prefix: RE/CO/IN, anything
        else CU, followed by the highest existing number + 1, zero-padded.
        Falls back to CU + the last six digits of the epoch millis when the
        existing ids cannot be read.
        """
        key = property_type.value if isinstance(property_type, PropertyType) else str(property_type or "")
        prefix = CUSTOMER_ID_PREFIXES.get(key.lower(), FALLBACK_PREFIX)
        try:
            existing = self.store.customer_ids_with_prefix(prefix)
        except PersistenceError as exc:
            fallback = f"{FALLBACK_PREFIX}{str(int(time.time() * 1000))[-6:]}"
            logger.error(f"[CONVERT] Could not generate customer id for {prefix}, using {fallback}: {exc}")
            return fallback

        numbers = []
        for value in existing:
            suffix = value[len(prefix):]
            if suffix.isdigit():
                numbers.append(int(suffix))
        next_number = max(numbers) + 1 if numbers else 1
        return f"{prefix}{str(next_number).zfill(settings.CUSTOMER_ID_WIDTH)}"

    def _apply(self, lead: Lead, request: ConversionRequest, code: str) -> Customer:
        lead_id, name = lead.id, lead.customer_name
        customer = None
        try:
            customer = self.store.insert_customer(
                customer_id=code,
                lead_id=lead.id,
                customer_name=lead.customer_name,
                phone_number=lead.phone_number,
                email=request.email.strip(),
                address=lead.address,
                property_type=lead.property_type,
                status=CustomerStatus.ACTIVE,
                notes=request.notes or f"Converted from lead on {utcnow().date().isoformat()}",
                electricity_bill_number=request.electricity_bill_number.strip(),
                average_electricity_usage=request.average_electricity_usage,
                electricity_usage_unit=request.electricity_usage_unit,
                has_paid_first_installment=bool(request.has_paid_first_installment),
                payment_method=request.payment_method,
                cash_bill_number=request.cash_bill_number,
                loan_provider=request.loan_provider,
                loan_amount=request.loan_amount,
                loan_account_number=request.loan_account_number,
                loan_status=request.loan_status,
                loan_notes=request.loan_notes,
                customer_needs=request.customer_needs.strip(),
                preferred_installation_date=request.preferred_installation_date,
                special_requirements=request.special_requirements,
                converted_at=utcnow(),
            )
            self.store.update_lead(lead, {"customer_id": customer.id, "status": LeadStatus.COMPLETED})
            self.store.commit()
        except PersistenceError as exc:
            self._compensate(customer)
            logger.error(f"[CONVERT] Conversion of lead {lead_id} failed: {exc}")
            raise ConversionFailed(f"Failed to convert lead for {name}: {exc.message}") from exc
        return customer

    def _compensate(self, customer: Optional[Customer]) -> None:
        """Delete a customer row that outlived the rolled-back lead update."""
        self.store.rollback()
        if customer is None or customer.id is None:
            return
        try:
            orphan = self.store.get_customer(customer.id)
            if orphan is not None:
                self.store.delete_customer(orphan)
                self.store.commit()
                logger.warning(f"[CONVERT] Removed orphaned customer {orphan.customer_id}")
        except PersistenceError as exc:
            logger.error(f"[CONVERT] Could not remove orphaned customer {customer.id}: {exc}")


def _filled(value: Optional[str]) -> bool:
    return bool(value and str(value).strip())


def _positive(value: Optional[float]) -> bool:
    """True for a finite number above zero; NaN and infinity are rejected."""
    return value is not None and math.isfinite(value) and value > 0
