from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Forbidden, Unauthorized
from app.core.security import ACCESS, token_user_id
from app.db.session import get_db
from app.models.user import User, UserRole

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None:
        raise Unauthorized("Access denied. No token.")
    user_id = token_user_id(credentials.credentials, ACCESS)
    if user_id is None:
        raise Unauthorized("Invalid token.")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise Unauthorized("User not found")
    return user


def require_roles(*roles: UserRole) -> Callable:
    allowed = {UserRole(r) for r in roles}

    async def _guard(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise Forbidden("Access denied. Insufficient role.")
        return user

    return _guard


get_current_moderator = require_roles(UserRole.moderator, UserRole.admin)
get_current_admin = require_roles(UserRole.admin)
