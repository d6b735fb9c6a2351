import re
import uuid

import pytest

from fieldcrm.models.customer import Customer, PaymentMethod
from fieldcrm.models.lead import Lead, LeadStatus, PropertyType
from fieldcrm.models.notification import NotificationType
from fieldcrm.schemas.customer import ConversionRequest
from fieldcrm.services.conversion_engine import ConversionEngine, validate_conversion
from fieldcrm.services.errors import ConversionFailed, NotAuthenticated, NotFound, PersistenceError, ValidationFailed


def _request(lead_id, **overrides):
    data = {
        "lead_id": lead_id,
        "email": "jane@example.com",
        "electricity_bill_number": "EB-1001",
        "average_electricity_usage": 320.0,
        "customer_needs": "5kW rooftop system",
    }
    data.update(overrides)
    return ConversionRequest(**data)


def test_conversion_creates_customer_and_completes_lead(store, db, make_lead, technician):
    lead = make_lead(phone="555-2000", customer_name="Ravi Roof")

    customer = ConversionEngine(store).convert(_request(lead.id), technician)

    assert customer.customer_id == "RE001"
    assert customer.lead_id == lead.id
    assert customer.customer_name == "Ravi Roof"
    assert customer.phone_number == "555-2000"
    assert customer.address == lead.address
    assert customer.notes.startswith("Converted from lead on ")
    refreshed = store.get_lead(lead.id)
    assert refreshed.status == LeadStatus.COMPLETED
    assert refreshed.customer_id == customer.id
    assert db.query(Customer).count() == 1


def test_customer_ids_increase_per_prefix(store, make_lead, technician):
    engine = ConversionEngine(store)

    first = engine.convert(_request(make_lead().id), technician)
    second = engine.convert(_request(make_lead().id), technician)
    commercial = engine.convert(_request(make_lead(property_type=PropertyType.COMMERCIAL).id), technician)
    industrial = engine.convert(_request(make_lead(property_type=PropertyType.INDUSTRIAL).id), technician)

    assert [first.customer_id, second.customer_id] == ["RE001", "RE002"]
    assert commercial.customer_id == "CO001"
    assert industrial.customer_id == "IN001"


def test_customer_id_skips_past_gaps(store, make_lead, technician):
    engine = ConversionEngine(store)
    customer = engine.convert(_request(make_lead().id), technician)
    store.update_customer(customer, {"customer_id": "RE007"})
    store.commit()

    assert engine.generate_customer_id(PropertyType.RESIDENTIAL) == "RE008"
    assert engine.generate_customer_id("unknown") == "CU001"


def test_customer_id_falls_back_when_lookup_fails(store, monkeypatch):
    def broken_scan(prefix):
        raise PersistenceError("Failed to scan customer ids.")

    monkeypatch.setattr(store, "customer_ids_with_prefix", broken_scan)

    assert re.fullmatch(r"CU\d{6}", ConversionEngine(store).generate_customer_id(PropertyType.RESIDENTIAL))


def test_completed_iff_customer(store, db, make_lead, technician):
    leads = [make_lead() for _ in range(3)]
    ConversionEngine(store).convert(_request(leads[1].id), technician)

    for lead in db.query(Lead).all():
        assert (lead.status == LeadStatus.COMPLETED) == (lead.customer_id is not None)


@pytest.mark.parametrize("overrides", [
    {"average_electricity_usage": 0},
    {"average_electricity_usage": None},
    {"average_electricity_usage": float("nan")},
    {"average_electricity_usage": "nan"},
    {"average_electricity_usage": float("inf")},
    {"email": "  "},
    {"electricity_bill_number": None},
    {"customer_needs": ""},
    {"has_paid_first_installment": True},
    {"payment_method": PaymentMethod.LOAN, "loan_provider": "SunBank"},
    {"payment_method": PaymentMethod.LOAN, "loan_provider": "SunBank",
     "loan_account_number": "ACC-1", "loan_amount": 0},
    {"payment_method": PaymentMethod.LOAN, "loan_provider": "SunBank",
     "loan_account_number": "ACC-1", "loan_amount": float("nan")},
])
def test_incomplete_request_is_rejected_before_the_store(store, db, make_lead, technician, statement_counter, overrides):
    lead = make_lead()
    statement_counter.statements.clear()

    with pytest.raises(ValidationFailed):
        ConversionEngine(store).convert(_request(lead.id, **overrides), technician)

    assert statement_counter.count == 0
    assert db.query(Customer).count() == 0
    assert store.get_lead(lead.id).status == LeadStatus.NEW


def test_complete_loan_request_is_accepted():
    validate_conversion(_request(
        uuid.uuid4(),
        has_paid_first_installment=True,
        payment_method=PaymentMethod.LOAN,
        loan_provider="SunBank",
        loan_account_number="ACC-1",
        loan_amount=150000,
    ))


def test_usage_zero_message(store, make_lead, technician):
    lead = make_lead()

    with pytest.raises(ValidationFailed, match="Please fill in all required fields"):
        ConversionEngine(store).convert(_request(lead.id, average_electricity_usage=0), technician)


def test_lead_is_converted_only_once(store, db, make_lead, technician):
    lead = make_lead()
    engine = ConversionEngine(store)
    engine.convert(_request(lead.id), technician)

    with pytest.raises(ValidationFailed, match="already been converted"):
        engine.convert(_request(lead.id), technician)

    assert db.query(Customer).count() == 1


def test_missing_actor(store, make_lead):
    with pytest.raises(NotAuthenticated):
        ConversionEngine(store).convert(_request(make_lead().id), None)


def test_unknown_lead(store, technician):
    with pytest.raises(NotFound):
        ConversionEngine(store).convert(_request(uuid.uuid4()), technician)


def test_failed_lead_update_leaves_no_customer(store, db, make_lead, technician, sink, monkeypatch):
    lead = make_lead(customer_name="Petra Panel")

    def broken_update(lead, fields):
        raise PersistenceError("Failed to update lead.", retryable=True)

    monkeypatch.setattr(store, "update_lead", broken_update)

    with pytest.raises(ConversionFailed) as exc_info:
        ConversionEngine(store, sink).convert(_request(lead.id), technician)

    assert "Petra Panel" in exc_info.value.message
    assert db.query(Customer).count() == 0
    refreshed = db.get(Lead, lead.id)
    assert refreshed.status == LeadStatus.NEW
    assert refreshed.customer_id is None
    assert sink.events == []


def test_completion_notifies_salesman(store, make_lead, salesman, technician, sink):
    lead = make_lead(customer_name="Nia North")

    customer = ConversionEngine(store, sink).convert(_request(lead.id), technician)

    assert len(sink.events) == 1
    event = sink.events[0]
    assert event.target_user_id == salesman.id
    assert event.kind == NotificationType.LEAD_COMPLETED
    assert event.payload["customerId"] == customer.customer_id
    assert "Nia North" in event.message


def test_no_notification_without_salesman(store, make_lead, technician, sink):
    lead = make_lead(salesman_id=None, salesman_name=None)

    ConversionEngine(store, sink).convert(_request(lead.id), technician)

    assert sink.events == []
