# src/modules/packages/schemas.py
"""Packages module Pydantic schemas."""

from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field
from uuid import UUID

from src.models.models import PackageStatus, VisitType


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class PackageCreateRequest(BaseModel):
    """Purchase of a new treatment package for a patient."""
    package_name: Optional[str] = None
    assigned_doctor_id: Optional[UUID] = None
    visit_type: Optional[VisitType] = None
    original_amount: Decimal
    discount_amount: Decimal = Decimal("0")
    total_sessions: int


class PackageUpdateRequest(BaseModel):
    """Partial update; financial fields trigger a recalculation."""
    package_name: Optional[str] = None
    assigned_doctor_id: Optional[UUID] = None
    visit_type: Optional[VisitType] = None
    original_amount: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    total_sessions: Optional[int] = None
    status: Optional[PackageStatus] = None


class PackageCloseRequest(BaseModel):
    """Staff action that ends a package early or marks it complete."""
    status: PackageStatus = PackageStatus.CLOSED
    reason: Optional[str] = Field(default=None, max_length=1000)


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class PackageResponse(BaseModel):
    """Package with its ledger figures."""

    id: UUID
    patient_id: UUID
    assigned_doctor_id: Optional[UUID] = None
    package_name: Optional[str] = None
    visit_type: Optional[VisitType] = None
    original_amount: float
    discount_amount: float
    total_amount: float
    total_sessions: int
    per_session_amount: float
    released_sessions: int
    carry_amount: float
    used_sessions: int
    remaining_sessions: int
    remaining_release_sessions: int
    status: PackageStatus
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    closed_by_id: Optional[UUID] = None
    close_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PackageListResponse(BaseModel):
    packages: List[PackageResponse]
    total: int


class PackageDeleteResponse(BaseModel):
    message: str = "Package deleted successfully"
