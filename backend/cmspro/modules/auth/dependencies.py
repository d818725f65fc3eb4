from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Callable, Optional

from cmspro.core.database import get_db
from cmspro.core.exceptions import UnauthenticatedError, ForbiddenError
from cmspro.core.logging_config import set_user_id
from cmspro.core.security import decode_token
from cmspro.core.types import is_valid_uuid
from cmspro.models.user import User, UserRole

# auto_error=False so a missing header goes through our 401 instead of FastAPI's 403
security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user"""
    if not credentials or not credentials.credentials:
        raise UnauthenticatedError()

    payload = decode_token(credentials.credentials)

    user_id = payload.get("sub")
    if not is_valid_uuid(user_id):
        raise UnauthenticatedError("Invalid token payload")

    result = await db.execute(
        select(User).where(User.id == user_id)
    )
    user = result.scalar_one_or_none()

    if not user:
        raise UnauthenticatedError("User not found")

    request.state.user = user
    set_user_id(str(user.id))
    return user


def require_roles(*roles: UserRole) -> Callable:
    """
    Dependency factory restricting a route to the given roles.

    Usage:
        @router.get("/stats")
        async def stats(user: User = Depends(require_roles(UserRole.ADMINISTRATOR))):
            ...
    """
    allowed = frozenset(roles)

    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise ForbiddenError(
                f"User role {UserRole(current_user.role).value} is not authorized to access this route"
            )
        return current_user

    return checker


get_current_admin = require_roles(UserRole.ADMINISTRATOR)
