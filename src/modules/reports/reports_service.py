# src/modules/reports/reports_service.py
"""Reports service: read-only rollups over packages, sessions and payments."""

import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Any, Awaitable, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, func, and_, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.utils.exceptions import InvalidArgumentError
from src.models.models import (
    Patient, PatientStatus, PatientPackage, PackageStatus,
    Doctor, TreatmentSession, Payment, PaymentMode
)
from src.modules.doctors.doctors_service import count_doctors
from src.modules.packages.ledger import ZERO, q2, remaining_amount, to_decimal
from src.modules.packages.packages_service import list_patient_packages
from src.modules.patients.patients_service import attach_stats, get_patient, get_total_paid, get_total_due
from src.modules.payments.payments_service import list_payments
from src.modules.payments.schemas import PaymentResponse
from src.modules.sessions.schemas import SessionResponse
from .schemas import (
    RevenueGranularity, ExportType, PatientCounts, RevenueSummary, DashboardStatsResponse,
    DoctorStats, DoctorStatsResponse, PaymentModeBreakdownResponse, RevenuePoint,
    RevenueSeriesResponse, PendingPayment, PendingPaymentsResponse,
    PatientHistoryResponse, ExportResponse
)

logger = logging.getLogger(__name__)

PERIOD_FORMATS = {
    RevenueGranularity.DAY: "%Y-%m-%d",
    RevenueGranularity.MONTH: "%Y-%m",
    RevenueGranularity.YEAR: "%Y",
}


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise InvalidArgumentError("Start date cannot be after end date.")


async def _safe(db: AsyncSession, section: str, pending: Awaitable, default):
    """Await one report section; a failed query yields the section's empty value."""
    try:
        return await pending
    except SQLAlchemyError:
        await db.rollback()
        logger.warning("Report section %s failed, returning empty value", section, exc_info=True)
        return default


async def _sum_payments(db: AsyncSession, start_date: Optional[date] = None, end_date: Optional[date] = None) -> float:
    query = select(func.coalesce(func.sum(Payment.amount_paid), 0))
    if start_date:
        query = query.where(Payment.payment_date >= start_date)
    if end_date:
        query = query.where(Payment.payment_date <= end_date)
    return float(q2(to_decimal(await db.scalar(query))))


# ============================================================================
# DASHBOARD
# ============================================================================

async def _patient_counts(db: AsyncSession) -> PatientCounts:
    result = await db.execute(
        select(Patient.status, func.count(Patient.id)).group_by(Patient.status)
    )
    counts = {status: count for status, count in result.all()}
    return PatientCounts(
        total=sum(counts.values()),
        active=counts.get(PatientStatus.ACTIVE, 0),
        no_package=counts.get(PatientStatus.NO_PACKAGE, 0),
        discharged=counts.get(PatientStatus.DISCHARGED, 0),
    )


async def _revenue_summary(db: AsyncSession, today: date) -> RevenueSummary:
    return RevenueSummary(
        total=await _sum_payments(db),
        today=await _sum_payments(db, start_date=today, end_date=today),
        monthly=await _sum_payments(db, start_date=today.replace(day=1), end_date=today),
    )


async def _active_packages(db: AsyncSession) -> int:
    return await db.scalar(
        select(func.count(PatientPackage.id)).where(PatientPackage.status == PackageStatus.ACTIVE)
    ) or 0


async def _sessions_on(db: AsyncSession, day: date) -> int:
    return await db.scalar(
        select(func.count(TreatmentSession.id)).where(TreatmentSession.session_date == day)
    ) or 0


async def get_dashboard_stats(db: AsyncSession, today: Optional[date] = None) -> DashboardStatsResponse:
    """Headline numbers for the owner's dashboard. Each section fails independently."""
    today = today or date.today()
    return DashboardStatsResponse(
        patients=await _safe(db, "patients", _patient_counts(db), PatientCounts()),
        revenue=await _safe(db, "revenue", _revenue_summary(db, today), RevenueSummary()),
        total_doctors=await _safe(db, "doctors", count_doctors(db), 0),
        active_packages=await _safe(db, "active_packages", _active_packages(db), 0),
        sessions_today=await _safe(db, "sessions_today", _sessions_on(db, today), 0),
    )


# ============================================================================
# ROLLUPS
# ============================================================================

async def _doctor_rows(db: AsyncSession, start_date: date, end_date: date) -> List[DoctorStats]:
    in_range = and_(
        TreatmentSession.doctor_id == Doctor.id,
        TreatmentSession.session_date >= start_date,
        TreatmentSession.session_date <= end_date,
    )
    result = await db.execute(
        select(
            Doctor.id,
            Doctor.name,
            func.count(func.distinct(TreatmentSession.patient_id)),
            func.count(TreatmentSession.id),
        )
        .outerjoin(TreatmentSession, in_range)
        .where(Doctor.deleted_at.is_(None))
        .group_by(Doctor.id, Doctor.name)
        .order_by(Doctor.name)
    )
    rows = result.all()

    # Revenue is summed separately so one session with several payments
    # does not inflate the session counts above.
    revenue_result = await db.execute(
        select(TreatmentSession.doctor_id, func.sum(Payment.amount_paid))
        .join(TreatmentSession, Payment.session_id == TreatmentSession.id)
        .where(TreatmentSession.session_date >= start_date)
        .where(TreatmentSession.session_date <= end_date)
        .group_by(TreatmentSession.doctor_id)
    )
    revenue = {doctor_id: to_decimal(amount) for doctor_id, amount in revenue_result.all()}

    return [
        DoctorStats(
            doctor_id=doctor_id,
            doctor_name=name,
            patient_count=patient_count or 0,
            session_count=session_count or 0,
            revenue=float(q2(revenue.get(doctor_id, ZERO))),
        )
        for doctor_id, name, patient_count, session_count in rows
    ]


async def get_doctor_wise_stats(db: AsyncSession, start_date: date, end_date: date) -> DoctorStatsResponse:
    _check_range(start_date, end_date)
    return DoctorStatsResponse(
        start_date=start_date,
        end_date=end_date,
        doctors=await _safe(db, "doctor_wise", _doctor_rows(db, start_date, end_date), []),
    )


async def _mode_totals(db: AsyncSession, start_date: Optional[date], end_date: Optional[date]) -> Dict[str, float]:
    query = select(Payment.payment_mode, func.sum(Payment.amount_paid)).group_by(Payment.payment_mode)
    if start_date:
        query = query.where(Payment.payment_date >= start_date)
    if end_date:
        query = query.where(Payment.payment_date <= end_date)
    result = await db.execute(query)

    totals = {mode.value: 0.0 for mode in PaymentMode}
    for mode, amount in result.all():
        if mode is not None:
            totals[mode.value] = float(q2(to_decimal(amount)))
    return totals


async def get_payment_mode_breakdown(
    db: AsyncSession,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None
) -> PaymentModeBreakdownResponse:
    _check_range(start_date, end_date)
    by_mode = await _safe(
        db, "payment_modes", _mode_totals(db, start_date, end_date),
        {mode.value: 0.0 for mode in PaymentMode}
    )
    return PaymentModeBreakdownResponse(
        revenue_by_mode=by_mode,
        total=float(q2(sum((to_decimal(v) for v in by_mode.values()), ZERO))),
    )


async def _series_points(
    db: AsyncSession,
    granularity: RevenueGranularity,
    start_date: date,
    end_date: date
) -> List[RevenuePoint]:
    result = await db.execute(
        select(Payment.payment_date, Payment.amount_paid)
        .where(Payment.payment_date >= start_date)
        .where(Payment.payment_date <= end_date)
    )

    fmt = PERIOD_FORMATS[granularity]
    buckets = defaultdict(lambda: ZERO)
    for payment_date, amount in result.all():
        buckets[payment_date.strftime(fmt)] += to_decimal(amount)

    return [
        RevenuePoint(period=period, amount=float(q2(amount)))
        for period, amount in sorted(buckets.items())
    ]


async def get_revenue_series(
    db: AsyncSession,
    granularity: RevenueGranularity,
    start_date: date,
    end_date: date
) -> RevenueSeriesResponse:
    """Revenue bucketed by day, month or year. Empty periods are omitted."""
    _check_range(start_date, end_date)
    points = await _safe(db, "revenue_series", _series_points(db, granularity, start_date, end_date), [])
    return RevenueSeriesResponse(
        granularity=granularity,
        points=points,
        total=float(q2(sum((to_decimal(p.amount) for p in points), ZERO))),
    )


async def _pending_rows(db: AsyncSession) -> List[PendingPayment]:
    due_result = await db.execute(
        select(PatientPackage.patient_id, func.sum(PatientPackage.total_amount))
        .group_by(PatientPackage.patient_id)
    )
    due = {pid: to_decimal(amount) for pid, amount in due_result.all()}
    if not due:
        return []

    paid_result = await db.execute(
        select(Payment.patient_id, func.sum(Payment.amount_paid))
        .where(Payment.patient_id.in_(list(due)))
        .group_by(Payment.patient_id)
    )
    paid = {pid: to_decimal(amount) for pid, amount in paid_result.all()}

    pending_ids = [pid for pid, total in due.items() if remaining_amount(total, paid.get(pid, ZERO)) > ZERO]
    if not pending_ids:
        return []

    patients = await db.execute(select(Patient).where(Patient.id.in_(pending_ids)))
    rows = []
    for patient in patients.scalars().all():
        total = due[patient.id]
        patient_paid = paid.get(patient.id, ZERO)
        rows.append(PendingPayment(
            patient_id=patient.id,
            reg_no=patient.reg_no,
            name=patient.name,
            mobile=patient.mobile,
            total_amount=float(q2(total)),
            paid_amount=float(q2(patient_paid)),
            pending_amount=float(remaining_amount(total, patient_paid)),
        ))
    rows.sort(key=lambda row: (-row.pending_amount, row.name))
    return rows


async def get_pending_payments(db: AsyncSession) -> PendingPaymentsResponse:
    """Patients who still owe money across their packages, largest balance first."""
    rows = await _safe(db, "pending_payments", _pending_rows(db), [])
    return PendingPaymentsResponse(
        patients=rows,
        total_pending=float(q2(sum((to_decimal(r.pending_amount) for r in rows), ZERO))),
    )


# ============================================================================
# PATIENT HISTORY AND EXPORT
# ============================================================================

async def get_patient_history(db: AsyncSession, patient_id: UUID) -> PatientHistoryResponse:
    patient = await get_patient(db, patient_id)
    packages = await list_patient_packages(db, patient_id)

    sessions_result = await db.execute(
        select(TreatmentSession)
        .where(TreatmentSession.patient_id == patient_id)
        .order_by(desc(TreatmentSession.session_date), desc(TreatmentSession.created_at))
    )
    payments = await list_payments(db, patient_id=patient_id)

    total_paid = await get_total_paid(db, patient_id)
    total_due = await get_total_due(db, patient_id)

    return PatientHistoryResponse(
        patient=patient,
        packages=packages.packages,
        sessions=[SessionResponse.model_validate(s) for s in sessions_result.scalars().all()],
        payments=payments.payments,
        total_paid=float(q2(total_paid)),
        remaining_amount=float(remaining_amount(total_due, total_paid)),
    )


async def _export_patients(db: AsyncSession, start_date: Optional[date], end_date: Optional[date]) -> List[Dict[str, Any]]:
    query = select(Patient)
    if start_date:
        query = query.where(Patient.created_at >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.where(Patient.created_at < datetime.combine(end_date + timedelta(days=1), time.min))
    result = await db.execute(query.order_by(Patient.reg_no))

    patients = await attach_stats(db, list(result.scalars().all()))
    return [p.model_dump(mode="json") for p in patients]


async def _export_sessions(db: AsyncSession, start_date: Optional[date], end_date: Optional[date]) -> List[Dict[str, Any]]:
    query = (
        select(TreatmentSession, Patient.name, Patient.reg_no, Doctor.name)
        .join(Patient, TreatmentSession.patient_id == Patient.id)
        .outerjoin(Doctor, TreatmentSession.doctor_id == Doctor.id)
    )
    if start_date:
        query = query.where(TreatmentSession.session_date >= start_date)
    if end_date:
        query = query.where(TreatmentSession.session_date <= end_date)
    result = await db.execute(query.order_by(TreatmentSession.session_date))

    rows = []
    for treatment_session, patient_name, reg_no, doctor_name in result.all():
        row = SessionResponse.model_validate(treatment_session).model_dump(mode="json")
        row.update(patient_name=patient_name, reg_no=reg_no, doctor_name=doctor_name)
        rows.append(row)
    return rows


async def _export_payments(db: AsyncSession, start_date: Optional[date], end_date: Optional[date]) -> List[Dict[str, Any]]:
    query = (
        select(Payment, Patient.name, Patient.reg_no)
        .join(Patient, Payment.patient_id == Patient.id)
    )
    if start_date:
        query = query.where(Payment.payment_date >= start_date)
    if end_date:
        query = query.where(Payment.payment_date <= end_date)
    result = await db.execute(query.order_by(Payment.payment_date))

    rows = []
    for payment, patient_name, reg_no in result.all():
        row = PaymentResponse.model_validate(payment).model_dump(mode="json")
        row.update(patient_name=patient_name, reg_no=reg_no)
        rows.append(row)
    return rows


EXPORTERS = {
    ExportType.PATIENTS: _export_patients,
    ExportType.SESSIONS: _export_sessions,
    ExportType.PAYMENTS: _export_payments,
}


async def export_data(
    db: AsyncSession,
    export_type: ExportType,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None
) -> ExportResponse:
    """Flat rows for an external renderer, optionally limited to a date range."""
    _check_range(start_date, end_date)
    rows = await EXPORTERS[export_type](db, start_date, end_date)
    return ExportResponse(type=export_type, rows=rows, count=len(rows))
