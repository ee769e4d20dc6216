# src/modules/packages/packages_controller.py
"""Packages controller with API routes."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import get_db_session
from src.auth.dependencies import require_owner, require_staff
from src.models.models import User

from . import packages_service as service
from .schemas import (
    PackageCreateRequest, PackageUpdateRequest, PackageCloseRequest,
    PackageResponse, PackageListResponse, PackageDeleteResponse
)

router = APIRouter(prefix="/packages", tags=["Packages"])


# ============================================================================
# PER-PATIENT ENDPOINTS
# ============================================================================

@router.post("/patient/{patient_id}", response_model=PackageResponse, status_code=201)
async def create_package(
    patient_id: UUID,
    request: PackageCreateRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    """Sell a package. Refused while the patient already has an active one."""
    return await service.create_package(db, patient_id, request, current_user)


@router.get("/patient/{patient_id}", response_model=PackageListResponse)
async def list_patient_packages(
    patient_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.list_patient_packages(db, patient_id)


@router.get("/patient/{patient_id}/active", response_model=Optional[PackageResponse])
async def get_active_package(
    patient_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.get_active_package(db, patient_id)


# ============================================================================
# SINGLE PACKAGE ENDPOINTS
# ============================================================================

@router.get("/{package_id}", response_model=PackageResponse)
async def get_package(
    package_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.get_package(db, package_id)


@router.put("/{package_id}", response_model=PackageResponse)
async def update_package(
    package_id: UUID,
    request: PackageUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.update_package(db, package_id, request, current_user)


@router.put("/{package_id}/close", response_model=PackageResponse)
async def close_package(
    package_id: UUID,
    request: PackageCloseRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.close_package(db, package_id, request, current_user)


@router.delete("/{package_id}", response_model=PackageDeleteResponse)
async def delete_package(
    package_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    return await service.delete_package(db, package_id)
