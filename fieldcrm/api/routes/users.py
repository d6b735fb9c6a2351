"""
User Routes
Staff lookups for the assignment pickers and account activation.

  GET    /api/users/me            – the authenticated user
  GET    /api/users/?role=        – active users, optionally by role
  PATCH  /api/users/{id}/active   – activate or deactivate a user (admin)
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from fieldcrm.core.deps import get_current_user, require_admin
from fieldcrm.database import get_db
from fieldcrm.models.user import AppUser, UserRole
from fieldcrm.schemas.user import UserActiveUpdate, UserResponse
from fieldcrm.services.lead_store import LeadStore
from fieldcrm.services.user_service import UserService

router = APIRouter(tags=["Users"])


@router.get("/me", response_model=UserResponse)
def read_current_user(current_user: AppUser = Depends(get_current_user)):
    return current_user


@router.get("/", response_model=List[UserResponse])
def list_users(
    role: Optional[UserRole] = None,
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user),
):
    return UserService(LeadStore(db)).list_users(role, include_inactive)


@router.patch("/{user_id}/active", response_model=UserResponse)
def set_user_active(
    user_id: UUID,
    payload: UserActiveUpdate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_admin),
):
    return UserService(LeadStore(db)).set_active(user_id, payload.is_active, current_user)
