from datetime import datetime, timedelta, timezone

from fieldcrm.models.customer import ProjectStatus
from fieldcrm.models.lead import LeadStatus
from fieldcrm.models.user import UserRole
from fieldcrm.schemas.customer import ConversionRequest
from fieldcrm.services.conversion_engine import ConversionEngine
from fieldcrm.services.customer_service import CustomerService
from fieldcrm.services.lead_queries import LeadQueries
from fieldcrm.services.status_engine import StatusEngine


def test_visible_leads_follow_role(store, make_lead, make_user, salesman, operator, team_lead):
    mine = make_lead(call_operator_id=operator.id, call_operator_name=operator.name)
    make_lead()
    queries = LeadQueries(store)

    assert [lead.id for lead in queries.visible_leads(operator)] == [mine.id]
    assert len(queries.visible_leads(salesman)) == 2
    assert len(queries.visible_leads(team_lead)) == 2
    assert queries.visible_leads(make_user(UserRole.CALL_OPERATOR, is_active=False)) == []


def test_leads_for_role_without_slot(store, make_lead, team_lead):
    make_lead()

    assert LeadQueries(store).leads_for_user(team_lead.id, UserRole.TEAM_LEAD) == []


def test_search_by_phone_matches_both_fields(store, make_lead):
    primary = make_lead(phone="0712345678")
    secondary = make_lead(phone="0799999999", additional_phone="0712340000")
    make_lead(phone="0788888888")
    queries = LeadQueries(store)

    assert {lead.id for lead in queries.search_by_phone("071234")} == {primary.id, secondary.id}
    assert queries.search_by_phone("   ") == []


def test_status_lists(store, make_lead):
    declined = make_lead(status=LeadStatus.DECLINED)
    transit = make_lead(status=LeadStatus.TRANSIT)
    make_lead(status=LeadStatus.NEW)
    queries = LeadQueries(store)

    assert [lead.id for lead in queries.declined_leads()] == [declined.id]
    assert [lead.id for lead in queries.transit_leads()] == [transit.id]


def test_analytics(store, make_lead, make_user):
    make_user(UserRole.CALL_OPERATOR, is_active=False)
    for status in (LeadStatus.COMPLETED, LeadStatus.NEW, LeadStatus.HOLD):
        make_lead(status=status)

    stats = LeadQueries(store).analytics()

    assert stats["total_leads"] == 3
    assert stats["completed_leads"] == 1
    assert stats["conversion_rate"] == 33.3
    assert stats["monthly_leads"] == 3
    assert stats["total_users"] == 2
    assert stats["active_users"] == 1


def test_analytics_on_empty_store(store):
    stats = LeadQueries(store).analytics()

    assert stats["total_leads"] == 0
    assert stats["conversion_rate"] == 0.0


def test_user_work_stats(store, make_lead, operator):
    slot = dict(call_operator_id=operator.id, call_operator_name=operator.name)
    make_lead(status=LeadStatus.NEW, **slot)
    make_lead(status=LeadStatus.HOLD, **slot)
    make_lead(status=LeadStatus.DECLINED, **slot)
    make_lead(status=LeadStatus.COMPLETED, **slot)
    make_lead()

    stats = LeadQueries(store).user_work_stats(operator.id)

    assert stats["total_leads"] == 4
    assert stats["leads_today"] == 4
    assert stats["leads_this_week"] == 4
    assert stats["completed_leads"] == 1
    assert stats["pending_leads"] == 2
    assert stats["last_activity"].tzinfo is not None


def test_user_work_stats_windows(store, make_lead, operator):
    make_lead(call_operator_id=operator.id)
    later = datetime.now(timezone.utc) + timedelta(days=10)

    stats = LeadQueries(store).user_work_stats(operator.id, now=later)

    assert stats["total_leads"] == 1
    assert stats["leads_today"] == 0
    assert stats["leads_this_week"] == 0


def test_user_without_leads(store, technician):
    stats = LeadQueries(store).user_work_stats(technician.id)

    assert stats["total_leads"] == 0
    assert stats["last_activity"] is None


def test_call_logs_by_lead_and_customer(store, make_lead, operator, technician):
    lead = make_lead()
    customer = ConversionEngine(store).convert(
        ConversionRequest(
            lead_id=lead.id,
            email="a@b.co",
            electricity_bill_number="EB-1",
            average_electricity_usage=100,
            customer_needs="Panels",
        ),
        technician,
    )
    engine = StatusEngine(store)
    engine.log_call(operator, lead_id=lead.id, notes="first call")
    engine.log_call(operator, customer_id=customer.id, notes="after sale")
    queries = LeadQueries(store)

    assert [log.notes for log in queries.call_logs_for(lead_id=lead.id)] == ["first call"]
    assert [log.notes for log in queries.call_logs_for(customer_id=customer.id)] == ["after sale"]
    assert queries.call_logs_for() == []


def test_customer_project_status(store, make_lead, technician):
    lead = make_lead()
    customer = ConversionEngine(store).convert(
        ConversionRequest(
            lead_id=lead.id,
            email="a@b.co",
            electricity_bill_number="EB-1",
            average_electricity_usage=100,
            customer_needs="Panels",
        ),
        technician,
    )
    service = CustomerService(store)

    updated = service.update_project_status(customer.id, "Material Distribution", technician)

    assert updated.project_status == ProjectStatus.MATERIAL_DISTRIBUTION
    assert [c.id for c in service.list_customers(ProjectStatus.MATERIAL_DISTRIBUTION)] == [customer.id]
    assert service.list_customers(ProjectStatus.COMPLETED) == []
