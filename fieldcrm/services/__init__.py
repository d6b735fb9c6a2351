from fieldcrm.services.assignment_engine import AssignmentEngine
from fieldcrm.services.call_later_scheduler import CallLaterScheduler
from fieldcrm.services.conversion_engine import ConversionEngine
from fieldcrm.services.customer_service import CustomerService
from fieldcrm.services.duplicate_detector import DuplicateDetector
from fieldcrm.services.lead_intake import LeadIntakeService
from fieldcrm.services.lead_queries import LeadQueries
from fieldcrm.services.lead_store import LeadStore
from fieldcrm.services.status_engine import StatusEngine
from fieldcrm.services.user_service import UserService

__all__ = [
    "AssignmentEngine",
    "CallLaterScheduler",
    "ConversionEngine",
    "CustomerService",
    "DuplicateDetector",
    "LeadIntakeService",
    "LeadQueries",
    "LeadStore",
    "StatusEngine",
    "UserService",
]
