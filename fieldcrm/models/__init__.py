# Import all models in dependency order so every table is registered with Base
from fieldcrm.models.user import AppUser, UserRole, ADMIN_ROLES
from fieldcrm.models.lead import (
    Lead, LeadStatus, LeadLikelihood, PropertyType,
    CallLaterLog, CallLog, DuplicateLeadLog,
)
from fieldcrm.models.customer import (
    Customer, CustomerStatus, ProjectStatus, PaymentMethod, LoanStatus,
)
from fieldcrm.models.notification import Notification, NotificationType

__all__ = [
    "AppUser",
    "UserRole",
    "ADMIN_ROLES",
    "Lead",
    "LeadStatus",
    "LeadLikelihood",
    "PropertyType",
    "CallLaterLog",
    "CallLog",
    "DuplicateLeadLog",
    "Customer",
    "CustomerStatus",
    "ProjectStatus",
    "PaymentMethod",
    "LoanStatus",
    "Notification",
    "NotificationType",
]
