"""
App User Model - field-sales staff
Mirrors the app_users table the mobile client authenticates against
"""
from enum import Enum
from sqlalchemy import String, Boolean, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Uuid
import uuid

from fieldcrm.db.base import Base, TimestampMixin


class UserRole(str, Enum):
    SALESMAN = "salesman"
    CALL_OPERATOR = "call_operator"
    TECHNICIAN = "technician"
    TEAM_LEAD = "team_lead"
    SUPER_ADMIN = "super_admin"


# Roles that see every lead regardless of slot ownership
ADMIN_ROLES = (UserRole.TEAM_LEAD, UserRole.SUPER_ADMIN)


class AppUser(TimestampMixin, Base):
    """
    Staff member who owns or works leads.

    Only active users may act on leads or receive assignments.
    """
    __tablename__ = "app_users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    phone: Mapped[str] = mapped_column(String(32), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        default=UserRole.SALESMAN,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<AppUser {self.name} ({self.role.value})>"
