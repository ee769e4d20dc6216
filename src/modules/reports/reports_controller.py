# src/modules/reports/reports_controller.py
"""Reports controller with API routes."""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import get_db_session
from src.auth.dependencies import require_owner, require_staff
from src.models.models import User

from . import reports_service as service
from .schemas import (
    RevenueGranularity, ExportType, DashboardStatsResponse, DoctorStatsResponse,
    PaymentModeBreakdownResponse, RevenueSeriesResponse, PendingPaymentsResponse,
    PatientHistoryResponse, ExportResponse
)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/dashboard", response_model=DashboardStatsResponse)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.get_dashboard_stats(db)


@router.get("/doctor-wise", response_model=DoctorStatsResponse)
async def get_doctor_wise_stats(
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    return await service.get_doctor_wise_stats(db, start_date, end_date)


@router.get("/payment-modes", response_model=PaymentModeBreakdownResponse)
async def get_payment_mode_breakdown(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    return await service.get_payment_mode_breakdown(db, start_date, end_date)


@router.get("/revenue", response_model=RevenueSeriesResponse)
async def get_revenue_series(
    granularity: RevenueGranularity = Query(RevenueGranularity.DAY),
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    return await service.get_revenue_series(db, granularity, start_date, end_date)


@router.get("/pending-payments", response_model=PendingPaymentsResponse)
async def get_pending_payments(
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    return await service.get_pending_payments(db)


@router.get("/patient-history/{patient_id}", response_model=PatientHistoryResponse)
async def get_patient_history(
    patient_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.get_patient_history(db, patient_id)


@router.get("/export", response_model=ExportResponse)
async def export_data(
    type: ExportType = Query(...),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    """Flat rows for an external report renderer."""
    return await service.export_data(db, type, start_date, end_date)
