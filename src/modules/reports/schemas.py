# src/modules/reports/schemas.py
"""Reports module Pydantic schemas."""

from typing import Any, Dict, Optional, List
from datetime import date
from pydantic import BaseModel, Field
from uuid import UUID
from enum import Enum

from src.modules.packages.schemas import PackageResponse
from src.modules.patients.schemas import PatientResponse
from src.modules.payments.schemas import PaymentResponse
from src.modules.sessions.schemas import SessionResponse


class RevenueGranularity(str, Enum):
    DAY = "day"
    MONTH = "month"
    YEAR = "year"


class ExportType(str, Enum):
    PATIENTS = "patients"
    SESSIONS = "sessions"
    PAYMENTS = "payments"


# ============================================================================
# DASHBOARD
# ============================================================================

class PatientCounts(BaseModel):
    total: int = 0
    active: int = 0
    no_package: int = 0
    discharged: int = 0


class RevenueSummary(BaseModel):
    total: float = 0
    today: float = 0
    monthly: float = 0


class DashboardStatsResponse(BaseModel):
    patients: PatientCounts = Field(default_factory=PatientCounts)
    revenue: RevenueSummary = Field(default_factory=RevenueSummary)
    total_doctors: int = 0
    active_packages: int = 0
    sessions_today: int = 0


# ============================================================================
# ROLLUPS
# ============================================================================

class DoctorStats(BaseModel):
    doctor_id: UUID
    doctor_name: str
    patient_count: int = 0
    session_count: int = 0
    revenue: float = 0


class DoctorStatsResponse(BaseModel):
    start_date: date
    end_date: date
    doctors: List[DoctorStats] = []


class PaymentModeBreakdownResponse(BaseModel):
    revenue_by_mode: Dict[str, float]
    total: float


class RevenuePoint(BaseModel):
    period: str
    amount: float


class RevenueSeriesResponse(BaseModel):
    granularity: RevenueGranularity
    points: List[RevenuePoint] = []
    total: float = 0


class PendingPayment(BaseModel):
    patient_id: UUID
    reg_no: str
    name: str
    mobile: Optional[str] = None
    total_amount: float
    paid_amount: float
    pending_amount: float


class PendingPaymentsResponse(BaseModel):
    patients: List[PendingPayment] = []
    total_pending: float = 0


class PatientHistoryResponse(BaseModel):
    patient: PatientResponse
    packages: List[PackageResponse]
    sessions: List[SessionResponse]
    payments: List[PaymentResponse]
    total_paid: float
    remaining_amount: float


class ExportResponse(BaseModel):
    type: ExportType
    rows: List[Dict[str, Any]]
    count: int
