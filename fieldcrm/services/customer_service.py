"""
Customer Service
Lists converted customers and tracks their installation project status.
"""
import logging
import uuid
from typing import List, Optional, Union

from fieldcrm.models.customer import Customer, ProjectStatus
from fieldcrm.models.user import AppUser
from fieldcrm.services.errors import NotFound, ValidationFailed
from fieldcrm.services.guards import require_actor
from fieldcrm.services.lead_store import LeadStore

logger = logging.getLogger(__name__)


class CustomerService:
    def __init__(self, store: LeadStore):
        self.store = store

    def list_customers(self, project_status: Optional[ProjectStatus] = None) -> List[Customer]:
        criteria = [Customer.project_status == project_status] if project_status else []
        return self.store.select_customers(*criteria)

    def get_customer(self, customer_pk: uuid.UUID) -> Customer:
        customer = self.store.get_customer(customer_pk)
        if customer is None:
            raise NotFound("Customer not found.")
        return customer

    def update_project_status(
        self,
        customer_pk: uuid.UUID,
        project_status: Union[ProjectStatus, str],
        actor: Optional[AppUser],
    ) -> Customer:
        actor = require_actor(actor)
        try:
            project_status = ProjectStatus(project_status)
        except ValueError:
            raise ValidationFailed(f"Invalid project status: {project_status}")

        customer = self.get_customer(customer_pk)
        self.store.update_customer(customer, {"project_status": project_status})
        self.store.commit()
        logger.info(f"[CUSTOMER] {customer.customer_id} project status -> {project_status.value} by {actor.name}")
        return customer
