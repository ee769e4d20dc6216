# src/modules/sessions/sessions_controller.py
"""Sessions controller with API routes."""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import get_db_session
from src.auth.dependencies import require_owner, require_staff
from src.models.models import User

from . import sessions_service as service
from .schemas import (
    SessionCreateRequest, SessionUpdateRequest, SessionResponse,
    SessionListResponse, SessionDeleteResponse
)

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.post("", response_model=SessionResponse, status_code=201)
async def record_session(
    request: SessionCreateRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    """Record attendance and debit one released session from the package."""
    return await service.record_session(db, request, current_user)


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    patient_id: Optional[UUID] = Query(None),
    doctor_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.list_sessions(db, patient_id, doctor_id, start_date, end_date, page, per_page)


@router.get("/package/{package_id}/count")
async def count_sessions_by_package(
    package_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return {"package_id": package_id, "count": await service.count_sessions_by_package(db, package_id)}


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.get_session(db, session_id)


@router.put("/{session_id}", response_model=SessionResponse)
async def update_session(
    session_id: UUID,
    request: SessionUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_staff)
):
    return await service.update_session(db, session_id, request)


@router.delete("/{session_id}", response_model=SessionDeleteResponse)
async def delete_session(
    session_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_owner)
):
    return await service.delete_session(db, session_id)
