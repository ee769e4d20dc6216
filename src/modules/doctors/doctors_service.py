# src/modules/doctors/doctors_service.py
"""Doctors service: roster CRUD with soft delete."""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.utils.exceptions import NotFoundError
from src.models.models import Doctor
from .schemas import (
    DoctorCreateRequest, DoctorUpdateRequest, DoctorResponse,
    DoctorListResponse, DoctorDeleteResponse
)

logger = logging.getLogger(__name__)


async def find_doctor(db: AsyncSession, doctor_id: UUID) -> Doctor:
    """Load a doctor that has not been deleted, or raise NotFoundError."""
    result = await db.execute(
        select(Doctor)
        .where(Doctor.id == doctor_id)
        .where(Doctor.deleted_at.is_(None))
    )
    doctor = result.scalar_one_or_none()
    if not doctor:
        raise NotFoundError(f"Doctor with ID {doctor_id} not found")
    return doctor


async def create_doctor(db: AsyncSession, request: DoctorCreateRequest) -> DoctorResponse:
    doctor = Doctor(**request.model_dump(), is_active=True)
    db.add(doctor)
    await db.commit()
    await db.refresh(doctor)
    logger.info("Doctor %s created", doctor.id)
    return DoctorResponse.model_validate(doctor)


async def list_doctors(db: AsyncSession, active_only: bool = False) -> DoctorListResponse:
    query = select(Doctor).where(Doctor.deleted_at.is_(None))
    if active_only:
        query = query.where(Doctor.is_active == True)
    result = await db.execute(query.order_by(Doctor.name))
    doctors = [DoctorResponse.model_validate(d) for d in result.scalars().all()]
    return DoctorListResponse(doctors=doctors, total=len(doctors))


async def get_doctor(db: AsyncSession, doctor_id: UUID) -> DoctorResponse:
    return DoctorResponse.model_validate(await find_doctor(db, doctor_id))


async def update_doctor(db: AsyncSession, doctor_id: UUID, request: DoctorUpdateRequest) -> DoctorResponse:
    doctor = await find_doctor(db, doctor_id)
    for key, value in request.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(doctor, key, value)
    await db.commit()
    await db.refresh(doctor)
    return DoctorResponse.model_validate(doctor)


async def delete_doctor(db: AsyncSession, doctor_id: UUID) -> DoctorDeleteResponse:
    """Soft delete: the doctor keeps their history but leaves the roster."""
    doctor = await find_doctor(db, doctor_id)
    doctor.deleted_at = datetime.now(timezone.utc)
    doctor.is_active = False
    await db.commit()
    logger.info("Doctor %s soft deleted", doctor_id)
    return DoctorDeleteResponse()


async def count_doctors(db: AsyncSession) -> int:
    return await db.scalar(select(func.count(Doctor.id)).where(Doctor.deleted_at.is_(None))) or 0
