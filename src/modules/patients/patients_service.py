# src/modules/patients/patients_service.py
"""Patients service: registration, lookup and read-time balances."""

import logging
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, func, or_, delete, desc
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import ledger_transaction
from src.common.utils.exceptions import NotFoundError, InvalidArgumentError, InvalidStateError
from src.models.models import (
    User, UserRole, Patient, PatientStatus, PatientPackage, TreatmentSession, Payment
)
from src.modules.doctors.doctors_service import find_doctor
from src.modules.packages.ledger import remaining_amount, to_decimal
from .schemas import (
    PatientCreateRequest, PatientUpdateRequest, PatientResponse,
    PatientListResponse, PatientStatsResponse, PatientDeleteResponse
)

logger = logging.getLogger(__name__)


def _is_receptionist(user: Optional[User]) -> bool:
    return user is not None and user.role == UserRole.RECEPTIONIST


async def find_patient(db: AsyncSession, patient_id: UUID, lock: bool = False) -> Patient:
    """Load a patient row, optionally locked for update, or raise NotFoundError."""
    query = select(Patient).where(Patient.id == patient_id)
    if lock:
        query = query.with_for_update()
    result = await db.execute(query)
    patient = result.scalar_one_or_none()
    if not patient:
        raise NotFoundError(f"Patient with ID {patient_id} not found")
    return patient


async def get_total_due(db: AsyncSession, patient_id: UUID):
    """Sum of total_amount over every package the patient has bought."""
    total = await db.scalar(
        select(func.coalesce(func.sum(PatientPackage.total_amount), 0))
        .where(PatientPackage.patient_id == patient_id)
    )
    return to_decimal(total)


async def get_total_paid(db: AsyncSession, patient_id: UUID):
    total = await db.scalar(
        select(func.coalesce(func.sum(Payment.amount_paid), 0))
        .where(Payment.patient_id == patient_id)
    )
    return to_decimal(total)


async def attach_stats(db: AsyncSession, patients: List[Patient]) -> List[PatientResponse]:
    """Attach session counts and balances to a page of patients."""
    if not patients:
        return []

    ids = [p.id for p in patients]

    sessions_result = await db.execute(
        select(TreatmentSession.patient_id, func.count(TreatmentSession.id))
        .where(TreatmentSession.patient_id.in_(ids))
        .group_by(TreatmentSession.patient_id)
    )
    session_counts: Dict[UUID, int] = {pid: count for pid, count in sessions_result.all()}

    paid_result = await db.execute(
        select(Payment.patient_id, func.sum(Payment.amount_paid))
        .where(Payment.patient_id.in_(ids))
        .group_by(Payment.patient_id)
    )
    paid = {pid: to_decimal(amount) for pid, amount in paid_result.all()}

    due_result = await db.execute(
        select(PatientPackage.patient_id, func.sum(PatientPackage.total_amount))
        .where(PatientPackage.patient_id.in_(ids))
        .group_by(PatientPackage.patient_id)
    )
    due = {pid: to_decimal(amount) for pid, amount in due_result.all()}

    responses = []
    for patient in patients:
        response = PatientResponse.model_validate(patient)
        patient_paid = paid.get(patient.id, to_decimal(0))
        patient_due = due.get(patient.id, to_decimal(0))
        response.attended_sessions_count = session_counts.get(patient.id, 0)
        response.paid_amount = float(patient_paid)
        response.total_amount = float(patient_due)
        response.remaining_amount = float(remaining_amount(patient_due, patient_paid))
        responses.append(response)
    return responses


async def create_patient(
    db: AsyncSession,
    request: PatientCreateRequest,
    current_user: Optional[User] = None
) -> PatientResponse:
    """Register a patient. They start without packages."""
    async with ledger_transaction(db, "create_patient", reg_no=request.reg_no):
        existing = await db.execute(select(Patient).where(Patient.reg_no == request.reg_no))
        if existing.scalar_one_or_none():
            raise InvalidArgumentError("A patient with this registration number already exists.")

        if request.assigned_doctor_id:
            await find_doctor(db, request.assigned_doctor_id)

        patient = Patient(
            **request.model_dump(),
            status=PatientStatus.NO_PACKAGE,
            released_sessions=0,
            carry_amount=to_decimal(0),
            created_by_id=current_user.id if current_user else None,
        )
        db.add(patient)

    await db.refresh(patient)
    logger.info("Patient %s registered (%s)", patient.id, patient.reg_no)
    return (await attach_stats(db, [patient]))[0]


async def list_patients(
    db: AsyncSession,
    current_user: Optional[User] = None,
    status: Optional[PatientStatus] = None,
    search: Optional[str] = None,
    page: int = 1,
    per_page: int = 20
) -> PatientListResponse:
    """List patients. Receptionists only ever see active patients."""
    query = select(Patient)

    if _is_receptionist(current_user):
        query = query.where(Patient.status == PatientStatus.ACTIVE)
    elif status is not None:
        query = query.where(Patient.status == status)

    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(or_(
            Patient.name.ilike(pattern),
            Patient.reg_no.ilike(pattern),
            Patient.mobile.ilike(pattern),
        ))

    total = await db.scalar(select(func.count()).select_from(query.subquery())) or 0

    query = query.order_by(desc(Patient.created_at), Patient.name)
    query = query.offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)

    return PatientListResponse(
        patients=await attach_stats(db, list(result.scalars().all())),
        total=total,
        page=page,
        per_page=per_page
    )


async def get_patient(
    db: AsyncSession,
    patient_id: UUID,
    current_user: Optional[User] = None
) -> PatientResponse:
    patient = await find_patient(db, patient_id)
    if _is_receptionist(current_user) and patient.status != PatientStatus.ACTIVE:
        raise NotFoundError(f"Patient with ID {patient_id} not found")
    return (await attach_stats(db, [patient]))[0]


async def update_patient(
    db: AsyncSession,
    patient_id: UUID,
    request: PatientUpdateRequest,
    current_user: Optional[User] = None
) -> PatientResponse:
    async with ledger_transaction(db, "update_patient", patient_id=str(patient_id)):
        patient = await find_patient(db, patient_id, lock=True)
        if _is_receptionist(current_user) and patient.status != PatientStatus.ACTIVE:
            raise NotFoundError(f"Patient with ID {patient_id} not found")

        data = request.model_dump(exclude_unset=True)
        if data.get("assigned_doctor_id"):
            await find_doctor(db, data["assigned_doctor_id"])

        for key, value in data.items():
            if value is not None:
                setattr(patient, key, value)

    await db.refresh(patient)
    return (await attach_stats(db, [patient]))[0]


async def delete_patient(db: AsyncSession, patient_id: UUID) -> PatientDeleteResponse:
    """Remove a patient who has no attendance or payment history."""
    async with ledger_transaction(db, "delete_patient", patient_id=str(patient_id)):
        patient = await find_patient(db, patient_id, lock=True)

        sessions = await db.scalar(
            select(func.count(TreatmentSession.id)).where(TreatmentSession.patient_id == patient_id)
        )
        payments = await db.scalar(
            select(func.count(Payment.id)).where(Payment.patient_id == patient_id)
        )
        if sessions or payments:
            raise InvalidStateError("Cannot delete patient. There are associated sessions or payments.")

        await db.execute(delete(PatientPackage).where(PatientPackage.patient_id == patient_id))
        await db.delete(patient)

    logger.info("Patient %s deleted", patient_id)
    return PatientDeleteResponse()


async def get_patient_stats(db: AsyncSession) -> PatientStatsResponse:
    result = await db.execute(
        select(Patient.status, func.count(Patient.id)).group_by(Patient.status)
    )
    counts = {status: count for status, count in result.all()}
    return PatientStatsResponse(
        total=sum(counts.values()),
        active=counts.get(PatientStatus.ACTIVE, 0),
        no_package=counts.get(PatientStatus.NO_PACKAGE, 0),
        discharged=counts.get(PatientStatus.DISCHARGED, 0),
    )
