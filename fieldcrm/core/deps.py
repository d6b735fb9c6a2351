import logging
import uuid
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from fieldcrm.core.security import decode_access_token
from fieldcrm.database import get_db
from fieldcrm.models.user import ADMIN_ROLES, AppUser, UserRole

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> AppUser:
    """
    Resolve the acting user from the bearer token.
    Returns 401 if the token is missing or invalid, or the user is unknown or deactivated.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    payload = decode_access_token(credentials.credentials)
    if not payload or payload.get("sub") is None:
        raise credentials_exception

    try:
        user_id = uuid.UUID(str(payload["sub"]))
    except ValueError:
        logger.warning(f"Token 'sub' is not a user id: {payload['sub']}")
        raise credentials_exception

    user = db.get(AppUser, user_id)
    if user is None:
        logger.warning(f"User not found in database: {user_id}")
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Your account has been deactivated. Please contact your administrator.",
        )
    return user


def require_role(*roles: UserRole):
    async def role_checker(user: AppUser = Depends(get_current_user)) -> AppUser:
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user
    return role_checker


require_admin = require_role(*ADMIN_ROLES)
