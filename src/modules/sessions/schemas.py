# src/modules/sessions/schemas.py
"""Sessions module Pydantic schemas."""

from typing import Optional, List
from datetime import date, datetime
from pydantic import BaseModel
from uuid import UUID

from src.models.models import ShiftType, VisitType


class SessionCreateRequest(BaseModel):
    """Attendance of one treatment session."""
    patient_id: UUID
    doctor_id: Optional[UUID] = None
    package_id: Optional[UUID] = None
    session_date: date
    shift: Optional[ShiftType] = None
    visit_type: Optional[VisitType] = None
    remarks: Optional[str] = None


class SessionUpdateRequest(BaseModel):
    """Corrections to a recorded session. The package link never changes."""
    doctor_id: Optional[UUID] = None
    session_date: Optional[date] = None
    shift: Optional[ShiftType] = None
    visit_type: Optional[VisitType] = None
    remarks: Optional[str] = None


class SessionResponse(BaseModel):
    id: UUID
    patient_id: UUID
    doctor_id: Optional[UUID] = None
    package_id: Optional[UUID] = None
    session_date: date
    shift: Optional[ShiftType] = None
    visit_type: Optional[VisitType] = None
    remarks: Optional[str] = None
    created_by_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    # Package state right after this session was recorded
    package_used_sessions: Optional[int] = None
    package_completed: bool = False

    class Config:
        from_attributes = True


class SessionListResponse(BaseModel):
    sessions: List[SessionResponse]
    total: int
    page: int
    per_page: int


class SessionDeleteResponse(BaseModel):
    message: str = "Session deleted successfully"
