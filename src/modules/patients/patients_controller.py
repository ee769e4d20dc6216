# src/modules/patients/patients_controller.py
"""Patients controller with API routes."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import get_db_session
from src.auth.dependencies import require_owner, require_staff
from src.models.models import User, PatientStatus

from . import patients_service as service
from .schemas import (
    PatientCreateRequest, PatientUpdateRequest, PatientResponse,
    PatientListResponse, PatientStatsResponse, PatientDeleteResponse
)

router = APIRouter(prefix="/patients", tags=["Patients"])


@router.post("", response_model=PatientResponse, status_code=201)
async def create_patient(
    request: PatientCreateRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.create_patient(db, request, current_user)


@router.get("", response_model=PatientListResponse)
async def list_patients(
    status: Optional[PatientStatus] = Query(None, description="Filter by status (owner only)"),
    search: Optional[str] = Query(None, description="Match name, registration number or mobile"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    """List patients. Receptionists only see active patients."""
    return await service.list_patients(db, current_user, status, search, page, per_page)


# Must come before /{patient_id}
@router.get("/stats", response_model=PatientStatsResponse)
async def get_patient_stats(
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    return await service.get_patient_stats(db)


@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.get_patient(db, patient_id, current_user)


@router.put("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: UUID,
    request: PatientUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.update_patient(db, patient_id, request, current_user)


@router.delete("/{patient_id}", response_model=PatientDeleteResponse)
async def delete_patient(
    patient_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    return await service.delete_patient(db, patient_id)
