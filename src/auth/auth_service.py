# src/auth/auth_service.py

import logging
from datetime import datetime, timedelta, timezone
from typing import Tuple
from uuid import UUID

from fastapi import HTTPException, status, BackgroundTasks
import jwt
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession
from passlib.context import CryptContext

from src.common.config import settings
from src.common.utils.email_service import send_password_reset_otp
from src.common.utils.global_messages import GlobalMessages
from src.common.utils.otp import generate_otp, get_otp_expiry, is_expired
from src.models.models import User, UserRole
from src.auth import schemas

logger = logging.getLogger(__name__)

# Initialize the password context (bcrypt)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify that the provided password matches the hashed password."""
    return pwd_context.verify(plain_password, hashed_password)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: timedelta = None) -> str:
    """Create a JWT token including an expiration date."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta if expires_delta else timedelta(minutes=15))
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return encoded_jwt


async def get_user_by_email(email: str, db: AsyncSession):
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalars().first()


async def authenticate_user(email: str, password: str, db: AsyncSession) -> User:
    """Attempt to retrieve the user by email and verify the password."""
    user = await get_user_by_email(email, db)

    if not user or not verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=GlobalMessages.INVALID_CREDENTIALS,
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=GlobalMessages.ACCOUNT_DEACTIVATED,
        )
    return user


async def login_user(email: str, password: str, db: AsyncSession) -> Tuple[User, str]:
    """Authenticate a user and return user with JWT access token."""
    user = await authenticate_user(email, password, db)

    user.last_login = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(user)

    access_token = create_access_token(
        data={"sub": str(user.id), "role": user.role.value},
        expires_delta=timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)
    )
    logger.info("User %s logged in", user.id)
    return user, access_token


async def change_password(
    user: User,
    current_password: str,
    new_password: str,
    db: AsyncSession
) -> bool:
    """
    Verify the current password and update to new password.
    Returns True if successful, False if current password is incorrect.
    """
    if not verify_password(current_password, user.password_hash):
        return False

    user.password_hash = hash_password(new_password)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return True


async def process_forgot_password(
    email: str,
    db: AsyncSession,
    background_tasks: BackgroundTasks
) -> bool:
    """
    Issue a reset OTP to an owner account.
    Always returns True to prevent email enumeration.
    """
    user = await get_user_by_email(email, db)

    if user and user.role == UserRole.OWNER and user.is_active:
        otp = generate_otp(6)
        user.reset_otp = hash_password(otp)
        user.reset_otp_expires = get_otp_expiry(settings.OTP_EXPIRATION_MINUTES)
        await db.commit()

        background_tasks.add_task(send_password_reset_otp, user.email, user.name, otp)
        logger.info("Password reset code issued for user %s", user.id)

    return True


async def reset_password(
    email: str,
    otp: str,
    new_password: str,
    db: AsyncSession
) -> bool:
    """Verify the reset OTP and update the owner's password."""
    user = await get_user_by_email(email, db)
    if not user or not user.reset_otp or not user.reset_otp_expires:
        return False
    if is_expired(user.reset_otp_expires) or not verify_password(otp, user.reset_otp):
        return False

    user.password_hash = hash_password(new_password)
    user.reset_otp = None
    user.reset_otp_expires = None
    await db.commit()
    logger.info("Password reset completed for user %s", user.id)
    return True


# ============================================================================
# RECEPTIONIST MANAGEMENT (owner only)
# ============================================================================

async def get_receptionist(user_id: UUID, db: AsyncSession) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalars().first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=GlobalMessages.USER_NOT_FOUND)
    if user.role != UserRole.RECEPTIONIST:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=GlobalMessages.RECEPTIONIST_ONLY)
    return user


async def create_receptionist(request: schemas.ReceptionistCreateRequest, db: AsyncSession) -> User:
    if await get_user_by_email(request.email, db):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=GlobalMessages.ACCOUNT_ALREADY_EXISTS
        )

    user = User(
        email=request.email.lower(),
        password_hash=hash_password(request.password),
        name=request.name,
        mobile=request.mobile,
        role=UserRole.RECEPTIONIST,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Receptionist %s created", user.id)
    return user


async def list_receptionists(db: AsyncSession) -> schemas.ReceptionistListResponse:
    result = await db.execute(
        select(User).where(User.role == UserRole.RECEPTIONIST).order_by(User.name)
    )
    users = [schemas.UserResponse.model_validate(u) for u in result.scalars().all()]
    return schemas.ReceptionistListResponse(receptionists=users, total=len(users))


async def set_receptionist_active(user_id: UUID, is_active: bool, db: AsyncSession) -> User:
    user = await get_receptionist(user_id, db)
    user.is_active = is_active
    await db.commit()
    await db.refresh(user)
    logger.info("Receptionist %s %s", user.id, "activated" if is_active else "deactivated")
    return user


async def reset_receptionist_password(user_id: UUID, new_password: str, db: AsyncSession) -> User:
    user = await get_receptionist(user_id, db)
    user.password_hash = hash_password(new_password)
    await db.commit()
    await db.refresh(user)
    return user


async def delete_receptionist(user_id: UUID, db: AsyncSession) -> None:
    user = await get_receptionist(user_id, db)
    await db.delete(user)
    await db.commit()
    logger.info("Receptionist %s deleted", user_id)
