# src/modules/doctors/schemas.py
"""Doctors module Pydantic schemas."""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field
from uuid import UUID


class DoctorCreateRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    specialization: Optional[str] = None
    mobile: Optional[str] = Field(default=None, max_length=20)
    experience: Optional[str] = None
    email: Optional[EmailStr] = None
    qualification: Optional[str] = None


class DoctorUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=200)
    specialization: Optional[str] = None
    mobile: Optional[str] = Field(default=None, max_length=20)
    experience: Optional[str] = None
    email: Optional[EmailStr] = None
    qualification: Optional[str] = None
    is_active: Optional[bool] = None


class DoctorResponse(BaseModel):
    id: UUID
    name: str
    specialization: Optional[str] = None
    mobile: Optional[str] = None
    experience: Optional[str] = None
    email: Optional[str] = None
    qualification: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DoctorListResponse(BaseModel):
    doctors: List[DoctorResponse]
    total: int


class DoctorDeleteResponse(BaseModel):
    message: str = "Doctor deleted successfully"
