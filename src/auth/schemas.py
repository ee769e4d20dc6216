# src/auth/schemas.py

from datetime import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator
from fastapi import HTTPException

from src.models.models import UserRole


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    """Staff account as returned by the API."""
    id: UUID
    email: EmailStr
    name: str
    mobile: Optional[str] = None
    role: UserRole
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ForgotPasswordResponse(BaseModel):
    message: str = "If an owner account with this email exists, a reset code has been sent."


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    otp: Annotated[str, Field(min_length=6, max_length=6)]
    new_password: Annotated[str, Field(min_length=8)]
    confirm_new_password: Annotated[str, Field(min_length=8)]

    @model_validator(mode="after")
    def check_passwords_match(self):
        if self.new_password != self.confirm_new_password:
            raise HTTPException(
                status_code=400,
                detail="New password and confirmation do not match."
            )
        return self


class ResetPasswordResponse(BaseModel):
    message: str = "Password reset successful."


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)
    confirm_new_password: str = Field(..., min_length=8)

    @model_validator(mode="after")
    def check_passwords_match(self):
        if self.new_password != self.confirm_new_password:
            raise HTTPException(
                status_code=400,
                detail="New password and confirmation do not match."
            )
        if self.new_password == self.current_password:
            raise HTTPException(
                status_code=400,
                detail="New password cannot be the same as the current password."
            )
        return self


class ChangePasswordResponse(BaseModel):
    message: str = "Password changed successfully."


# ============================================================================
# RECEPTIONIST MANAGEMENT
# ============================================================================

class ReceptionistCreateRequest(BaseModel):
    name: str = Field(..., min_length=2)
    email: EmailStr
    mobile: Optional[str] = None
    password: str = Field(..., min_length=8)


class ReceptionistListResponse(BaseModel):
    receptionists: List[UserResponse]
    total: int


class ReceptionistStatusRequest(BaseModel):
    is_active: bool


class ReceptionistPasswordResetRequest(BaseModel):
    new_password: str = Field(..., min_length=8)


class ReceptionistActionResponse(BaseModel):
    message: str
    user: Optional[UserResponse] = None
