# src/modules/payments/payments_controller.py
"""Payments controller with API routes."""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import get_db_session
from src.auth.dependencies import require_owner, require_staff
from src.models.models import User, PaymentMode

from . import payments_service as service
from .schemas import (
    PaymentCreateRequest, PaymentUpdateRequest, PaymentResponse, PaymentListResponse,
    PaymentDeleteResponse, TotalPaidResponse, RevenueStatsResponse
)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("", response_model=PaymentResponse, status_code=201)
async def create_payment(
    request: PaymentCreateRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    """Record a payment and release the sessions it covers on the active package."""
    return await service.create_payment(db, request, current_user)


@router.get("", response_model=PaymentListResponse)
async def list_payments(
    patient_id: Optional[UUID] = Query(None),
    payment_mode: Optional[PaymentMode] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.list_payments(db, patient_id, payment_mode, start_date, end_date)


# ============================================================================
# RANGE AND REVENUE (must come before /{payment_id} routes)
# ============================================================================

@router.get("/range", response_model=PaymentListResponse)
async def get_payments_by_range(
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.find_by_date_range(db, start_date, end_date)


@router.get("/revenue", response_model=RevenueStatsResponse)
async def get_revenue_stats(
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    return await service.get_revenue_stats(db, start_date, end_date)


@router.get("/patient/{patient_id}/total", response_model=TotalPaidResponse)
async def get_patient_total_paid(
    patient_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.get_patient_total_paid(db, patient_id)


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.get_payment(db, payment_id)


@router.put("/{payment_id}", response_model=PaymentResponse)
async def update_payment(
    payment_id: UUID,
    request: PaymentUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.update_payment(db, payment_id, request)


@router.delete("/{payment_id}", response_model=PaymentDeleteResponse)
async def delete_payment(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    return await service.delete_payment(db, payment_id)
