# src/modules/payments/schemas.py
"""Payments module Pydantic schemas."""

from typing import Optional, List, Dict
from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel
from uuid import UUID

from src.models.models import PaymentMode


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class PaymentCreateRequest(BaseModel):
    patient_id: UUID
    session_id: Optional[UUID] = None
    amount_paid: Decimal
    payment_mode: PaymentMode = PaymentMode.CASH
    remarks: Optional[str] = None
    payment_date: date


class PaymentUpdateRequest(BaseModel):
    """Administrative correction. Amounts and allocation are not editable."""
    payment_mode: Optional[PaymentMode] = None
    remarks: Optional[str] = None
    payment_date: Optional[date] = None


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class PaymentResponse(BaseModel):
    id: UUID
    patient_id: UUID
    session_id: Optional[UUID] = None
    package_id: Optional[UUID] = None
    amount_paid: float
    payment_mode: PaymentMode
    remarks: Optional[str] = None
    payment_date: date
    remaining_amount: float
    sessions_released: int = 0
    created_by_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentListResponse(BaseModel):
    payments: List[PaymentResponse]
    total: int


class PaymentDeleteResponse(BaseModel):
    message: str = "Payment deleted successfully"


class TotalPaidResponse(BaseModel):
    patient_id: UUID
    total_paid: float


class DailyRevenue(BaseModel):
    date: str
    amount: float


class RevenueStatsResponse(BaseModel):
    total_revenue: float
    revenue_by_mode: Dict[str, float]
    daily_revenue: List[DailyRevenue]
