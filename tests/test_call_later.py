import uuid
from datetime import date, datetime, timedelta, timezone

import pytest

from fieldcrm.models.lead import CallLaterLog, LeadStatus
from fieldcrm.models.notification import NotificationType
from fieldcrm.models.user import UserRole
from fieldcrm.services.call_later_scheduler import CallLaterScheduler
from fieldcrm.services.errors import NotFound, ValidationFailed
from fieldcrm.services.lead_store import LeadStore

TODAY = date(2026, 10, 19)


def test_call_later_scenario(store, db, make_lead, operator):
    lead = make_lead(phone="555-0100", status=LeadStatus.NEW)
    tomorrow = date.today() + timedelta(days=1)

    updated = CallLaterScheduler(store).schedule_call_later(lead.id, tomorrow, "busy", operator)

    assert updated.status == LeadStatus.HOLD
    assert updated.scheduled_call_date == tomorrow
    logs = db.query(CallLaterLog).filter(CallLaterLog.lead_id == lead.id).all()
    assert len(logs) == 1
    assert logs[0].reason == "busy"


@pytest.mark.parametrize("calls", [1, 3])
def test_count_and_logs_grow_by_one_per_call(store, db, make_lead, operator, calls):
    lead = make_lead(call_later_count=2)
    scheduler = CallLaterScheduler(store)

    for i in range(calls):
        scheduler.schedule_call_later(lead.id, TODAY + timedelta(days=i), f"reason {i}", operator)

    refreshed = store.get_lead(lead.id)
    assert refreshed.call_later_count == 2 + calls
    assert db.query(CallLaterLog).filter(CallLaterLog.lead_id == lead.id).count() == calls
    assert refreshed.last_call_later_reason == f"reason {calls - 1}"
    assert refreshed.last_call_later_date == TODAY + timedelta(days=calls - 1)


def test_past_dates_are_allowed(store, make_lead, operator):
    lead = make_lead()

    updated = CallLaterScheduler(store).schedule_call_later(lead.id, "2020-01-15", "data entry fix", operator)

    assert updated.scheduled_call_date == date(2020, 1, 15)


@pytest.mark.parametrize("bad_date", ["", None, "2026-02-30", "next week"])
def test_invalid_dates_are_rejected(store, db, make_lead, operator, bad_date):
    lead = make_lead()

    with pytest.raises(ValidationFailed):
        CallLaterScheduler(store).schedule_call_later(lead.id, bad_date, "busy", operator)

    assert db.query(CallLaterLog).count() == 0


def test_reason_is_required(store, make_lead, operator):
    lead = make_lead()

    with pytest.raises(ValidationFailed):
        CallLaterScheduler(store).schedule_call_later(lead.id, TODAY, "  ", operator)


def test_unknown_lead(store, operator):
    with pytest.raises(NotFound):
        CallLaterScheduler(store).schedule_call_later(uuid.uuid4(), TODAY, "busy", operator)


def test_due_today(store, make_lead, operator, make_user):
    other = make_user(UserRole.CALL_OPERATOR)
    mine = dict(call_operator_id=operator.id, call_operator_name=operator.name)

    today = make_lead(scheduled_call_date=TODAY, status=LeadStatus.HOLD, **mine)
    ringing = make_lead(status=LeadStatus.RINGING, **mine)
    overdue = make_lead(scheduled_call_date=TODAY - timedelta(days=3), status=LeadStatus.NEW, **mine)
    make_lead(scheduled_call_date=TODAY - timedelta(days=3), status=LeadStatus.CONTACTED, **mine)
    make_lead(scheduled_call_date=TODAY + timedelta(days=1), status=LeadStatus.HOLD, **mine)
    make_lead(scheduled_call_date=TODAY, status=LeadStatus.HOLD,
              call_operator_id=other.id, call_operator_name=other.name)

    due = CallLaterScheduler(store).due_today(operator.id, today=TODAY)

    assert {lead.id for lead in due} == {today.id, ringing.id, overdue.id}


def test_history_for_lead_newest_first(store, db, make_lead, operator):
    lead = make_lead()
    other = make_lead()
    scheduler = CallLaterScheduler(store)
    scheduler.schedule_call_later(lead.id, TODAY, "first", operator)
    scheduler.schedule_call_later(lead.id, TODAY + timedelta(days=1), "second", operator)
    scheduler.schedule_call_later(other.id, TODAY, "elsewhere", operator)
    stamps = {
        "first": datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc),
        "second": datetime(2026, 10, 19, 11, 30, tzinfo=timezone.utc),
    }
    for log in db.query(CallLaterLog).filter(CallLaterLog.lead_id == lead.id):
        log.created_at = stamps[log.reason]
    db.commit()

    history = scheduler.history_for(lead.id)

    assert [log.reason for log in history] == ["second", "first"]
    assert len(scheduler.history_by_operator(operator.id)) == 3


def test_converted_lead_cannot_be_put_on_hold(store, make_lead, operator):
    lead = make_lead(status=LeadStatus.COMPLETED, customer_id=uuid.uuid4())

    with pytest.raises(ValidationFailed):
        CallLaterScheduler(store).schedule_call_later(lead.id, TODAY, "busy", operator)


def test_schedule_call_notifies_actor(store, db, make_lead, operator, sink):
    lead = make_lead()

    updated = CallLaterScheduler(store, sink).schedule_call(lead.id, TODAY, "14:00", "Customer at work", operator)

    assert updated.status == LeadStatus.HOLD
    assert updated.scheduled_call_time == "14:00"
    assert db.query(CallLaterLog).count() == 0
    assert [event.title for event in sink.events] == ["Call Scheduled"]
    assert sink.events[0].target_user_id == operator.id


def test_reschedule_notifies_rescheduler(store, make_lead, operator, sink):
    lead = make_lead(customer_name="Mary Major")

    updated = CallLaterScheduler(store, sink).reschedule(lead.id, "2026-11-02", "Site not ready", operator.id, operator)

    assert updated.rescheduled_date == date(2026, 11, 2)
    assert updated.reschedule_reason == "Site not ready"
    assert updated.status == LeadStatus.HOLD
    event = sink.events[0]
    assert event.kind == NotificationType.RESCHEDULE
    assert event.title == "Lead Rescheduled"
    assert "Mary Major" in event.message


@pytest.mark.parametrize("action", ["call_later", "schedule_call", "reschedule"])
def test_declined_lead_cannot_be_scheduled(store, db, make_lead, operator, sink, action):
    lead = make_lead(status=LeadStatus.DECLINED)
    scheduler = CallLaterScheduler(store, sink)

    with pytest.raises(ValidationFailed, match="Declined leads can only be revived"):
        if action == "call_later":
            scheduler.schedule_call_later(lead.id, TODAY, "busy", operator)
        elif action == "schedule_call":
            scheduler.schedule_call(lead.id, TODAY, "09:00", "busy", operator)
        else:
            scheduler.reschedule(lead.id, TODAY, "busy", operator.id, operator)

    refreshed = store.get_lead(lead.id)
    assert refreshed.status == LeadStatus.DECLINED
    assert refreshed.scheduled_call_date is None
    assert refreshed.rescheduled_date is None
    assert db.query(CallLaterLog).count() == 0
    assert sink.events == []


def test_call_later_count_is_incremented_by_the_store(store, session_factory, make_lead, operator):
    lead = make_lead(call_later_count=1)
    stale = store.get_lead(lead.id)

    other_session = session_factory()
    try:
        CallLaterScheduler(LeadStore(other_session)).schedule_call_later(lead.id, TODAY, "first", operator)
    finally:
        other_session.close()

    assert stale.call_later_count == 1
    CallLaterScheduler(store).schedule_call_later(lead.id, TODAY, "second", operator)

    assert store.get_lead(lead.id).call_later_count == 3
