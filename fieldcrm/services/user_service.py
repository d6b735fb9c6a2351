"""
User Service
Staff lookups for the assignment pickers and account activation.

Deactivated users keep their leads but can no longer act or receive
assignments.
"""
import logging
import uuid
from typing import List, Optional

from fieldcrm.models.user import AppUser, UserRole
from fieldcrm.services.errors import NotFound, ValidationFailed
from fieldcrm.services.guards import require_actor
from fieldcrm.services.lead_store import LeadStore

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, store: LeadStore):
        self.store = store

    def list_users(self, role: Optional[UserRole] = None, include_inactive: bool = False) -> List[AppUser]:
        criteria = []
        if role is not None:
            criteria.append(AppUser.role == role)
        if not include_inactive:
            criteria.append(AppUser.is_active.is_(True))
        return self.store.select_users(*criteria)

    def set_active(self, user_id: uuid.UUID, is_active: bool, actor: Optional[AppUser]) -> AppUser:
        actor = require_actor(actor)
        if user_id == actor.id and not is_active:
            raise ValidationFailed("You cannot deactivate your own account.")

        user = self.store.get_user(user_id)
        if user is None:
            raise NotFound("User not found.")

        self.store.update_user(user, {"is_active": is_active})
        self.store.commit()
        state = "activated" if is_active else "deactivated"
        logger.info(f"[USERS] {user.name} {state} by {actor.name}")
        return user
