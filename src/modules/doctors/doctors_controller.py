# src/modules/doctors/doctors_controller.py
"""Doctors controller with API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import get_db_session
from src.auth.dependencies import require_owner, require_staff
from src.models.models import User

from . import doctors_service as service
from .schemas import (
    DoctorCreateRequest, DoctorUpdateRequest, DoctorResponse,
    DoctorListResponse, DoctorDeleteResponse
)

router = APIRouter(prefix="/doctors", tags=["Doctors"])


@router.post("", response_model=DoctorResponse, status_code=201)
async def create_doctor(
    request: DoctorCreateRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    return await service.create_doctor(db, request)


@router.get("", response_model=DoctorListResponse)
async def list_doctors(
    active_only: bool = Query(False, description="Only doctors marked active"),
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.list_doctors(db, active_only)


@router.get("/{doctor_id}", response_model=DoctorResponse)
async def get_doctor(
    doctor_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.get_doctor(db, doctor_id)


@router.put("/{doctor_id}", response_model=DoctorResponse)
async def update_doctor(
    doctor_id: UUID,
    request: DoctorUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    return await service.update_doctor(db, doctor_id, request)


@router.delete("/{doctor_id}", response_model=DoctorDeleteResponse)
async def delete_doctor(
    doctor_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    """Soft delete. Past sessions keep their doctor reference."""
    return await service.delete_doctor(db, doctor_id)
