# src/modules/payments/payments_service.py
"""Payments service: recording money received and allocating it to sessions."""

import logging
from collections import defaultdict
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import ledger_transaction
from src.common.utils.exceptions import NotFoundError, InvalidArgumentError
from src.models.models import User, Payment, PaymentMode
from src.modules.packages.ledger import ZERO, q2, remaining_amount, to_decimal
from src.modules.packages.packages_service import apply_payment, find_active_package
from src.modules.patients.patients_service import find_patient, get_total_due, get_total_paid
from src.modules.patients.projection import mirror_ledger_fields
from src.modules.sessions.sessions_service import find_session
from .schemas import (
    PaymentCreateRequest, PaymentUpdateRequest, PaymentResponse, PaymentListResponse,
    PaymentDeleteResponse, TotalPaidResponse, DailyRevenue, RevenueStatsResponse
)

logger = logging.getLogger(__name__)


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise InvalidArgumentError("Start date cannot be after end date.")


async def find_payment(db: AsyncSession, payment_id: UUID) -> Payment:
    result = await db.execute(select(Payment).where(Payment.id == payment_id))
    payment = result.scalar_one_or_none()
    if not payment:
        raise NotFoundError(f"Payment with ID {payment_id} not found")
    return payment


async def create_payment(
    db: AsyncSession,
    request: PaymentCreateRequest,
    current_user: Optional[User] = None
) -> PaymentResponse:
    """
    Record a payment and release the sessions it pays for.

    pool = carry + amount; every whole per-session amount in the pool releases
    a session on the patient's active package and the rest is carried. The
    payment stores the patient's outstanding balance at this moment as a
    snapshot. Without an active package the money is recorded unallocated.
    """
    amount = q2(request.amount_paid)
    if amount <= ZERO:
        raise InvalidArgumentError("Payment amount must be greater than zero.")

    async with ledger_transaction(db, "create_payment", patient_id=str(request.patient_id)):
        patient = await find_patient(db, request.patient_id, lock=True)

        if request.session_id:
            treatment_session = await find_session(db, request.session_id)
            if treatment_session.patient_id != patient.id:
                raise InvalidArgumentError("Session does not belong to this patient.")

        package = await find_active_package(db, patient.id, lock=True)
        sessions_released = 0
        if package is not None:
            allocation = apply_payment(package, amount)
            sessions_released = allocation.sessions_released
        mirror_ledger_fields(patient, package)

        total_due = await get_total_due(db, patient.id)
        already_paid = await get_total_paid(db, patient.id)

        payment = Payment(
            patient_id=patient.id,
            session_id=request.session_id,
            package_id=package.id if package is not None else None,
            created_by_id=current_user.id if current_user else None,
            amount_paid=amount,
            payment_mode=request.payment_mode,
            remarks=request.remarks or "",
            payment_date=request.payment_date,
            remaining_amount=remaining_amount(total_due, already_paid + amount),
            sessions_released=sessions_released,
        )
        db.add(payment)

    await db.refresh(payment)
    logger.info(
        "Payment %s of %s for patient %s released %s session(s)",
        payment.id, amount, patient.id, sessions_released
    )
    return PaymentResponse.model_validate(payment)


async def list_payments(
    db: AsyncSession,
    patient_id: Optional[UUID] = None,
    payment_mode: Optional[PaymentMode] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None
) -> PaymentListResponse:
    _check_range(start_date, end_date)

    query = select(Payment)
    if patient_id:
        query = query.where(Payment.patient_id == patient_id)
    if payment_mode:
        query = query.where(Payment.payment_mode == payment_mode)
    if start_date:
        query = query.where(Payment.payment_date >= start_date)
    if end_date:
        query = query.where(Payment.payment_date <= end_date)

    result = await db.execute(query.order_by(desc(Payment.payment_date), desc(Payment.created_at)))
    payments = [PaymentResponse.model_validate(p) for p in result.scalars().all()]
    return PaymentListResponse(payments=payments, total=len(payments))


async def find_by_date_range(db: AsyncSession, start_date: date, end_date: date) -> PaymentListResponse:
    return await list_payments(db, start_date=start_date, end_date=end_date)


async def get_payment(db: AsyncSession, payment_id: UUID) -> PaymentResponse:
    return PaymentResponse.model_validate(await find_payment(db, payment_id))


async def update_payment(
    db: AsyncSession,
    payment_id: UUID,
    request: PaymentUpdateRequest
) -> PaymentResponse:
    """Correct mode, remarks or date. Allocation is never re-run."""
    payment = await find_payment(db, payment_id)
    for key, value in request.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(payment, key, value)
    await db.commit()
    await db.refresh(payment)
    return PaymentResponse.model_validate(payment)


async def delete_payment(db: AsyncSession, payment_id: UUID) -> PaymentDeleteResponse:
    """Remove a payment record. Sessions it released stay released."""
    payment = await find_payment(db, payment_id)
    await db.delete(payment)
    await db.commit()
    logger.info("Payment %s deleted", payment_id)
    return PaymentDeleteResponse()


async def get_patient_total_paid(db: AsyncSession, patient_id: UUID) -> TotalPaidResponse:
    await find_patient(db, patient_id)
    return TotalPaidResponse(patient_id=patient_id, total_paid=float(await get_total_paid(db, patient_id)))


async def get_revenue_stats(db: AsyncSession, start_date: date, end_date: date) -> RevenueStatsResponse:
    """Revenue for a date range: total, per payment mode and per day."""
    _check_range(start_date, end_date)

    result = await db.execute(
        select(Payment.payment_date, Payment.payment_mode, Payment.amount_paid)
        .where(Payment.payment_date >= start_date)
        .where(Payment.payment_date <= end_date)
    )

    total = ZERO
    by_mode = {mode.value: ZERO for mode in PaymentMode}
    by_day = defaultdict(lambda: ZERO)
    for payment_date, mode, amount in result.all():
        amount = to_decimal(amount)
        total += amount
        by_mode[(mode or PaymentMode.CASH).value] += amount
        by_day[payment_date.isoformat()] += amount

    return RevenueStatsResponse(
        total_revenue=float(q2(total)),
        revenue_by_mode={mode: float(q2(amount)) for mode, amount in by_mode.items()},
        daily_revenue=[
            DailyRevenue(date=day, amount=float(q2(amount)))
            for day, amount in sorted(by_day.items())
        ],
    )
