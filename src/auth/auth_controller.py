# src/auth/auth_controller.py

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user, require_owner
from src.common.database.database import get_db_session
from src.common.utils.global_messages import GlobalMessages
from src.auth import auth_service, schemas
from src.models.models import User

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=schemas.LoginResponse)
async def login(
    credentials: schemas.LoginRequest,
    db: AsyncSession = Depends(get_db_session)
):
    """
    Authenticate a staff member and return an access token.

    - **email**: User's email address
    - **password**: User's password
    """
    user, access_token = await auth_service.login_user(
        email=credentials.email,
        password=credentials.password,
        db=db
    )

    return schemas.LoginResponse(
        access_token=access_token,
        user=schemas.UserResponse.model_validate(user)
    )


@router.get("/me", response_model=schemas.UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's account."""
    return schemas.UserResponse.model_validate(current_user)


@router.post("/change-password", response_model=schemas.ChangePasswordResponse)
async def change_password(
    change_req: schemas.ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session)
):
    """
    Change the current user's password.

    - **current_password**: Current password
    - **new_password**: New password (minimum 8 characters)
    - **confirm_new_password**: Password confirmation
    """
    success = await auth_service.change_password(
        user=current_user,
        current_password=change_req.current_password,
        new_password=change_req.new_password,
        db=db
    )

    if not success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=GlobalMessages.CURRENT_PASSWORD_INCORRECT
        )

    return schemas.ChangePasswordResponse()


@router.post("/forgot-password", response_model=schemas.ForgotPasswordResponse)
async def forgot_password(
    request: schemas.ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db_session)
):
    """
    Request a password reset code (owner accounts only).

    Always returns the same message to prevent email enumeration.
    """
    await auth_service.process_forgot_password(
        email=request.email,
        db=db,
        background_tasks=background_tasks
    )

    return schemas.ForgotPasswordResponse()


@router.post("/reset-password", response_model=schemas.ResetPasswordResponse)
async def reset_password(
    payload: schemas.ResetPasswordRequest,
    db: AsyncSession = Depends(get_db_session)
):
    """
    Reset the owner's password using the emailed code.

    - **email**: Account email address
    - **otp**: 6-digit reset code
    - **new_password**: New password (minimum 8 characters)
    """
    success = await auth_service.reset_password(
        email=payload.email,
        otp=payload.otp,
        new_password=payload.new_password,
        db=db
    )

    if not success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=GlobalMessages.INVALID_OR_EXPIRED_OTP
        )

    return schemas.ResetPasswordResponse()


# ============================================================================
# RECEPTIONISTS (owner only)
# ============================================================================

@router.post("/receptionists", response_model=schemas.UserResponse, status_code=status.HTTP_201_CREATED)
async def create_receptionist(
    request: schemas.ReceptionistCreateRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    user = await auth_service.create_receptionist(request, db)
    return schemas.UserResponse.model_validate(user)


@router.get("/receptionists", response_model=schemas.ReceptionistListResponse)
async def list_receptionists(
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    return await auth_service.list_receptionists(db)


@router.patch("/receptionists/{user_id}/status", response_model=schemas.ReceptionistActionResponse)
async def set_receptionist_status(
    user_id: UUID,
    request: schemas.ReceptionistStatusRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    """Activate or deactivate a receptionist account."""
    user = await auth_service.set_receptionist_active(user_id, request.is_active, db)
    return schemas.ReceptionistActionResponse(
        message="Receptionist activated." if user.is_active else "Receptionist deactivated.",
        user=schemas.UserResponse.model_validate(user)
    )


@router.post("/receptionists/{user_id}/reset-password", response_model=schemas.ReceptionistActionResponse)
async def reset_receptionist_password(
    user_id: UUID,
    request: schemas.ReceptionistPasswordResetRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    user = await auth_service.reset_receptionist_password(user_id, request.new_password, db)
    return schemas.ReceptionistActionResponse(
        message=GlobalMessages.PASSWORD_UPDATED,
        user=schemas.UserResponse.model_validate(user)
    )


@router.delete("/receptionists/{user_id}", response_model=schemas.ReceptionistActionResponse)
async def delete_receptionist(
    user_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    await auth_service.delete_receptionist(user_id, db)
    return schemas.ReceptionistActionResponse(message="Receptionist deleted.")
