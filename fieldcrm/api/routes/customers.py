"""
Customer Routes

  POST   /api/customers/convert                  – convert a lead to a customer
  GET    /api/customers/                         – list customers
  GET    /api/customers/{id}                     – customer detail
  PATCH  /api/customers/{id}/project-status      – update installation progress
  GET    /api/customers/{id}/call-logs           – call history
"""
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fieldcrm.core.deps import get_current_user
from fieldcrm.database import get_db
from fieldcrm.models.customer import ProjectStatus
from fieldcrm.models.user import AppUser
from fieldcrm.schemas.customer import ConversionRequest, CustomerOut, ProjectStatusUpdate
from fieldcrm.schemas.lead import CallLogOut
from fieldcrm.services.conversion_engine import ConversionEngine
from fieldcrm.services.customer_service import CustomerService
from fieldcrm.services.lead_queries import LeadQueries
from fieldcrm.services.lead_store import LeadStore
from fieldcrm.services.notification_service import DatabaseNotificationSink

router = APIRouter(tags=["Customers"])
logger = logging.getLogger(__name__)


@router.post("/convert", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
def convert_lead(
    payload: ConversionRequest,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user),
):
    engine = ConversionEngine(LeadStore(db), DatabaseNotificationSink(db))
    return engine.convert(payload, current_user)


@router.get("/", response_model=List[CustomerOut])
def list_customers(
    project_status: Optional[ProjectStatus] = None,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user),
):
    return CustomerService(LeadStore(db)).list_customers(project_status)


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: UUID, db: Session = Depends(get_db), current_user: AppUser = Depends(get_current_user)):
    return CustomerService(LeadStore(db)).get_customer(customer_id)


@router.patch("/{customer_id}/project-status", response_model=CustomerOut)
def update_project_status(
    customer_id: UUID,
    payload: ProjectStatusUpdate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user),
):
    return CustomerService(LeadStore(db)).update_project_status(customer_id, payload.project_status, current_user)


@router.get("/{customer_id}/call-logs", response_model=List[CallLogOut])
def customer_call_logs(customer_id: UUID, db: Session = Depends(get_db), current_user: AppUser = Depends(get_current_user)):
    return LeadQueries(LeadStore(db)).call_logs_for(customer_id=customer_id)
