import uuid
from datetime import date, timedelta

import pytest

from fieldcrm.models.lead import CallLaterLog, CallLog, LeadStatus
from fieldcrm.services.errors import NotAuthenticated, NotFound, ValidationFailed
from fieldcrm.services.status_engine import CallLaterRequest, StatusEngine


def test_any_status_to_any_status(store, make_lead, operator):
    lead = make_lead(status=LeadStatus.HOLD)
    engine = StatusEngine(store)

    for status in (LeadStatus.RINGING, LeadStatus.NEW, LeadStatus.TRANSIT, LeadStatus.CONTACTED, LeadStatus.HOLD):
        engine.transition(lead.id, status, operator)
        assert store.get_lead(lead.id).status == status


def test_contacted_with_notes_stamps_operator(store, make_lead, operator):
    lead = make_lead()

    updated = StatusEngine(store).transition(lead.id, "contacted", operator, notes="Interested in 5kW")

    assert updated.status == LeadStatus.CONTACTED
    assert updated.call_notes == "Interested in 5kW"
    assert updated.call_operator_id == operator.id
    assert updated.call_operator_name == operator.name


def test_contacted_without_notes_keeps_operator_slot(store, make_lead, operator):
    lead = make_lead()

    updated = StatusEngine(store).transition(lead.id, LeadStatus.CONTACTED, operator)

    assert updated.call_operator_id is None
    assert updated.call_notes is None


def test_transit_with_notes_sets_visit_notes(store, make_lead, technician):
    lead = make_lead(status=LeadStatus.CONTACTED)

    updated = StatusEngine(store).transition(lead.id, LeadStatus.TRANSIT, technician, notes="Roof checked")

    assert updated.visit_notes == "Roof checked"
    assert updated.call_notes is None


def test_hold_with_call_later_appends_log(store, db, make_lead, operator):
    lead = make_lead()
    tomorrow = date.today() + timedelta(days=1)

    updated = StatusEngine(store).transition(
        lead.id,
        LeadStatus.HOLD,
        operator,
        notes="Asked to call back",
        call_later=CallLaterRequest(call_later_date=tomorrow.isoformat(), reason="busy", call_time="10:30"),
    )

    assert updated.status == LeadStatus.HOLD
    assert updated.scheduled_call_date == tomorrow
    assert updated.scheduled_call_time == "10:30"
    assert updated.scheduled_call_reason == "busy"
    assert updated.call_later_count == 1
    log = db.query(CallLaterLog).filter(CallLaterLog.lead_id == lead.id).one()
    assert log.reason == "busy"
    assert log.call_operator_id == operator.id


def test_hold_without_reason_is_rejected(store, db, make_lead, operator):
    lead = make_lead()

    with pytest.raises(ValidationFailed):
        StatusEngine(store).transition(
            lead.id, LeadStatus.HOLD, operator,
            call_later=CallLaterRequest(call_later_date=date.today(), reason=""),
        )

    assert db.query(CallLaterLog).count() == 0
    assert store.get_lead(lead.id).status == LeadStatus.NEW


def test_completed_requires_conversion(store, make_lead, technician):
    lead = make_lead(status=LeadStatus.TRANSIT)

    with pytest.raises(ValidationFailed):
        StatusEngine(store).transition(lead.id, LeadStatus.COMPLETED, technician)

    assert store.get_lead(lead.id).status == LeadStatus.TRANSIT


def test_declined_lead_is_not_moved_directly(store, make_lead, operator):
    lead = make_lead(status=LeadStatus.DECLINED)

    with pytest.raises(ValidationFailed):
        StatusEngine(store).transition(lead.id, LeadStatus.NEW, operator)


def test_invalid_status_is_rejected(store, make_lead, operator):
    lead = make_lead()

    with pytest.raises(ValidationFailed):
        StatusEngine(store).transition(lead.id, "cancelled", operator)


def test_missing_lead_and_actor(store, make_lead, operator):
    with pytest.raises(NotFound):
        StatusEngine(store).transition(uuid.uuid4(), LeadStatus.RINGING, operator)

    lead = make_lead()
    with pytest.raises(NotAuthenticated):
        StatusEngine(store).transition(lead.id, LeadStatus.RINGING, None)


def test_transition_bumps_updated_at(store, make_lead, operator):
    lead = make_lead()
    before = lead.updated_at

    updated = StatusEngine(store).transition(lead.id, LeadStatus.RINGING, operator)

    assert updated.updated_at >= before


def test_record_call_writes_call_log(store, db, make_lead, operator):
    lead = make_lead()

    StatusEngine(store).transition(lead.id, LeadStatus.RINGING, operator, notes="No answer", record_call=True)

    log = db.query(CallLog).one()
    assert log.lead_id == lead.id
    assert log.user_id == operator.id
    assert log.status_at_call == "ringing"
    assert log.notes == "No answer"


def test_log_call_needs_exactly_one_target(store, make_lead, operator):
    lead = make_lead()
    engine = StatusEngine(store)

    with pytest.raises(ValidationFailed):
        engine.log_call(operator)
    with pytest.raises(ValidationFailed):
        engine.log_call(operator, lead_id=lead.id, customer_id=uuid.uuid4())
    with pytest.raises(NotFound):
        engine.log_call(operator, customer_id=uuid.uuid4())

    log = engine.log_call(operator, lead_id=lead.id, status="contacted", notes="Follow up next week")
    assert log.lead_id == lead.id
    assert log.customer_id is None
    assert log.caller_name == operator.name
