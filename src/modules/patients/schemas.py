# src/modules/patients/schemas.py
"""Patients module Pydantic schemas."""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field
from uuid import UUID

from src.models.models import PatientStatus, VisitType


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class PatientCreateRequest(BaseModel):
    reg_no: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=2, max_length=200)
    age: Optional[int] = Field(default=None, ge=0, le=150)
    mobile: Optional[str] = Field(default=None, max_length=20)
    visit_type: Optional[VisitType] = None
    referred_dr: Optional[str] = None
    remark: Optional[str] = None
    assigned_doctor_id: Optional[UUID] = None


class PatientUpdateRequest(BaseModel):
    """Demographic fields only; status follows the patient's packages."""
    name: Optional[str] = Field(default=None, min_length=2, max_length=200)
    age: Optional[int] = Field(default=None, ge=0, le=150)
    mobile: Optional[str] = Field(default=None, max_length=20)
    visit_type: Optional[VisitType] = None
    referred_dr: Optional[str] = None
    remark: Optional[str] = None
    assigned_doctor_id: Optional[UUID] = None


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class PatientResponse(BaseModel):
    id: UUID
    reg_no: str
    name: str
    age: Optional[int] = None
    mobile: Optional[str] = None
    visit_type: Optional[VisitType] = None
    referred_dr: Optional[str] = None
    remark: Optional[str] = None
    assigned_doctor_id: Optional[UUID] = None
    status: PatientStatus
    released_sessions: int = 0
    carry_amount: float = 0
    created_by_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    # Computed at read time
    attended_sessions_count: int = 0
    paid_amount: float = 0
    total_amount: float = 0
    remaining_amount: float = 0

    class Config:
        from_attributes = True


class PatientListResponse(BaseModel):
    patients: List[PatientResponse]
    total: int
    page: int
    per_page: int


class PatientStatsResponse(BaseModel):
    total: int
    active: int
    no_package: int
    discharged: int


class PatientDeleteResponse(BaseModel):
    message: str = "Patient deleted successfully"
