# src/modules/sessions/sessions_service.py
"""Sessions service: attendance logging and session consumption."""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import select, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import ledger_transaction
from src.common.utils.exceptions import NotFoundError, InvalidArgumentError
from src.models.models import User, TreatmentSession
from src.modules.doctors.doctors_service import find_doctor
from src.modules.packages.packages_service import consume_session, find_active_package, find_package
from src.modules.patients.patients_service import find_patient
from src.modules.patients.projection import project_patient_status
from .schemas import (
    SessionCreateRequest, SessionUpdateRequest, SessionResponse,
    SessionListResponse, SessionDeleteResponse
)

logger = logging.getLogger(__name__)


async def find_session(db: AsyncSession, session_id: UUID) -> TreatmentSession:
    result = await db.execute(select(TreatmentSession).where(TreatmentSession.id == session_id))
    treatment_session = result.scalar_one_or_none()
    if not treatment_session:
        raise NotFoundError(f"Session with ID {session_id} not found")
    return treatment_session


async def record_session(
    db: AsyncSession,
    request: SessionCreateRequest,
    current_user: Optional[User] = None
) -> SessionResponse:
    """
    Record an attended session and debit it from a package.

    The package is the one given explicitly or, failing that, the patient's
    active package; without either the session is stored unlinked. The
    patient row is locked before the package row, the same order payments
    take, so two concurrent recordings cannot both pass the released-sessions
    check.
    """
    async with ledger_transaction(db, "record_session", patient_id=str(request.patient_id)):
        await find_patient(db, request.patient_id, lock=True)
        if request.doctor_id:
            await find_doctor(db, request.doctor_id)

        if request.package_id:
            package = await find_package(db, request.package_id)
            if package.patient_id != request.patient_id:
                raise InvalidArgumentError("Package does not belong to this patient.")
            package = await find_package(db, request.package_id, lock=True)
        else:
            package = await find_active_package(db, request.patient_id, lock=True)

        completed = False
        if package is not None:
            completed = consume_session(package)

        treatment_session = TreatmentSession(
            patient_id=request.patient_id,
            doctor_id=request.doctor_id,
            package_id=package.id if package is not None else None,
            session_date=request.session_date,
            shift=request.shift,
            visit_type=request.visit_type,
            remarks=request.remarks,
            created_by_id=current_user.id if current_user else None,
        )
        db.add(treatment_session)
        await db.flush()

        # Keeps the patient's mirror fields current; flips status on completion
        await project_patient_status(db, request.patient_id)

    await db.refresh(treatment_session)
    logger.info(
        "Session %s recorded for patient %s (package %s%s)",
        treatment_session.id, request.patient_id,
        package.id if package is not None else "none",
        ", completed" if completed else ""
    )

    response = SessionResponse.model_validate(treatment_session)
    if package is not None:
        response.package_used_sessions = package.used_sessions
        response.package_completed = completed
    return response


async def list_sessions(
    db: AsyncSession,
    patient_id: Optional[UUID] = None,
    doctor_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = 1,
    per_page: int = 20
) -> SessionListResponse:
    if start_date and end_date and start_date > end_date:
        raise InvalidArgumentError("Start date cannot be after end date.")

    query = select(TreatmentSession)
    if patient_id:
        query = query.where(TreatmentSession.patient_id == patient_id)
    if doctor_id:
        query = query.where(TreatmentSession.doctor_id == doctor_id)
    if start_date:
        query = query.where(TreatmentSession.session_date >= start_date)
    if end_date:
        query = query.where(TreatmentSession.session_date <= end_date)

    total = await db.scalar(select(func.count()).select_from(query.subquery())) or 0

    query = query.order_by(desc(TreatmentSession.session_date), desc(TreatmentSession.created_at))
    query = query.offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)

    return SessionListResponse(
        sessions=[SessionResponse.model_validate(s) for s in result.scalars().all()],
        total=total,
        page=page,
        per_page=per_page
    )


async def get_session(db: AsyncSession, session_id: UUID) -> SessionResponse:
    return SessionResponse.model_validate(await find_session(db, session_id))


async def update_session(
    db: AsyncSession,
    session_id: UUID,
    request: SessionUpdateRequest
) -> SessionResponse:
    treatment_session = await find_session(db, session_id)
    data = request.model_dump(exclude_unset=True)
    if data.get("doctor_id"):
        await find_doctor(db, data["doctor_id"])

    for key, value in data.items():
        if value is not None or key in ("doctor_id", "remarks"):
            setattr(treatment_session, key, value)

    await db.commit()
    await db.refresh(treatment_session)
    return SessionResponse.model_validate(treatment_session)


async def delete_session(db: AsyncSession, session_id: UUID) -> SessionDeleteResponse:
    """Delete the attendance record; the package's used count is not given back."""
    treatment_session = await find_session(db, session_id)
    await db.delete(treatment_session)
    await db.commit()
    logger.info("Session %s deleted", session_id)
    return SessionDeleteResponse()


async def count_sessions_by_package(db: AsyncSession, package_id: UUID) -> int:
    return await db.scalar(
        select(func.count(TreatmentSession.id)).where(TreatmentSession.package_id == package_id)
    ) or 0
