# src/auth/dependencies.py

from typing import Callable
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
import jwt

from src.common.config import settings
from src.common.database.database import get_db_session
from src.common.utils.global_messages import GlobalMessages
from src.models.models import User, UserRole

bearer_scheme = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session)
) -> User:
    """
    Dependency to retrieve the current user based on the JWT token provided in the Authorization header.
    """
    token = credentials.credentials

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=GlobalMessages.COULD_NOT_VALIDATE,
        headers={"WWW-Authenticate": "Bearer"}
    )
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        subject: str = payload.get("sub")
        if subject is None:
            raise credentials_exception
        user_id = UUID(subject)
    except (jwt.InvalidTokenError, ValueError):
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalars().first()
    if user is None:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=GlobalMessages.ACCOUNT_DEACTIVATED
        )
    return user


def require_roles(*roles: UserRole) -> Callable:
    """
    Build a dependency that only lets users with one of the given roles through.

    Usage: ``current_user: User = Depends(require_roles(UserRole.OWNER))``
    """
    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=GlobalMessages.INSUFFICIENT_ROLE
            )
        return current_user

    return role_checker


require_owner = require_roles(UserRole.OWNER)
require_staff = require_roles(UserRole.OWNER, UserRole.RECEPTIONIST)
