# src/modules/packages/packages_service.py
"""Packages service: package lifecycle and the ledger mutations on it."""

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import ledger_transaction
from src.common.utils.exceptions import NotFoundError, InvalidArgumentError, InvalidStateError
from src.models.models import (
    User, PatientPackage, PackageStatus, TERMINAL_PACKAGE_STATUSES
)
from src.modules.doctors.doctors_service import find_doctor
from src.modules.patients.patients_service import find_patient
from src.modules.patients.projection import project_patient_status
from .ledger import Allocation, ZERO, allocate_payment, compute_totals, release_from_pool
from .schemas import (
    PackageCreateRequest, PackageUpdateRequest, PackageCloseRequest,
    PackageResponse, PackageListResponse, PackageDeleteResponse
)

logger = logging.getLogger(__name__)

FINANCIAL_FIELDS = ("original_amount", "discount_amount", "total_sessions")


# ============================================================================
# LEDGER STEPS (operate on a loaded, locked row inside a transaction)
# ============================================================================

def mark_terminal(
    package: PatientPackage,
    status: PackageStatus,
    reason: Optional[str] = None,
    closed_by_id: Optional[UUID] = None
) -> None:
    now = datetime.now(timezone.utc)
    package.status = status
    package.closed_at = now
    package.end_date = now
    if reason is not None:
        package.close_reason = reason
    if closed_by_id is not None:
        package.closed_by_id = closed_by_id


def consume_session(package: PatientPackage) -> bool:
    """
    Debit one released session. Returns True when this use completed the package.
    """
    if package.status != PackageStatus.ACTIVE:
        raise InvalidStateError(f"Package is {package.status.value}; no sessions can be recorded against it.")
    if package.used_sessions >= package.released_sessions:
        raise InvalidStateError("No released sessions available")

    package.used_sessions += 1

    if package.used_sessions >= package.total_sessions:
        mark_terminal(package, PackageStatus.COMPLETED)
        logger.info("Package %s completed after %s sessions", package.id, package.used_sessions)
        return True
    return False


def apply_payment(package: PatientPackage, amount_paid) -> Allocation:
    """Fold a payment into the package's carry and released sessions."""
    if package.status != PackageStatus.ACTIVE:
        raise InvalidStateError(f"Package is {package.status.value}; payments cannot be allocated to it.")
    allocation = allocate_payment(
        amount_paid,
        package.per_session_amount,
        package.released_sessions,
        package.carry_amount,
        package.total_sessions,
    )
    package.released_sessions = allocation.released_sessions
    package.carry_amount = allocation.carry_amount
    return allocation


# ============================================================================
# LOOKUPS
# ============================================================================

async def find_package(db: AsyncSession, package_id: UUID, lock: bool = False) -> PatientPackage:
    query = select(PatientPackage).where(PatientPackage.id == package_id)
    if lock:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    package = result.scalar_one_or_none()
    if not package:
        raise NotFoundError(f"Package with ID {package_id} not found")
    return package


async def find_active_package(
    db: AsyncSession,
    patient_id: UUID,
    lock: bool = False
) -> Optional[PatientPackage]:
    """The patient's active package, newest first should several exist."""
    query = (
        select(PatientPackage)
        .where(PatientPackage.patient_id == patient_id)
        .where(PatientPackage.status == PackageStatus.ACTIVE)
        .order_by(desc(PatientPackage.created_at))
        .limit(1)
    )
    if lock:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def lock_package(db: AsyncSession, package_id: UUID) -> PatientPackage:
    """
    Lock the owning patient, then the package. Every ledger write takes the
    patient row first.
    """
    package = await find_package(db, package_id)
    await find_patient(db, package.patient_id, lock=True)
    return await find_package(db, package_id, lock=True)


# ============================================================================
# OPERATIONS
# ============================================================================

async def create_package(
    db: AsyncSession,
    patient_id: UUID,
    request: PackageCreateRequest,
    current_user: Optional[User] = None
) -> PackageResponse:
    """Sell a package to a patient. Nothing is released until it is paid for."""
    async with ledger_transaction(db, "create_package", patient_id=str(patient_id)):
        await find_patient(db, patient_id, lock=True)
        if request.assigned_doctor_id:
            await find_doctor(db, request.assigned_doctor_id)

        if await find_active_package(db, patient_id):
            raise InvalidStateError("Patient already has an active package. Close it before adding a new one.")

        totals = compute_totals(request.original_amount, request.discount_amount, request.total_sessions)

        package = PatientPackage(
            patient_id=patient_id,
            assigned_doctor_id=request.assigned_doctor_id,
            package_name=request.package_name,
            visit_type=request.visit_type,
            original_amount=totals.original_amount,
            discount_amount=totals.discount_amount,
            total_amount=totals.total_amount,
            total_sessions=totals.total_sessions,
            per_session_amount=totals.per_session_amount,
            released_sessions=0,
            carry_amount=ZERO,
            used_sessions=0,
            status=PackageStatus.ACTIVE,
            start_date=datetime.now(timezone.utc),
        )
        if totals.per_session_amount == ZERO:
            package.released_sessions = release_from_pool(ZERO, ZERO, 0, totals.total_sessions).released_sessions

        db.add(package)
        await db.flush()
        await project_patient_status(db, patient_id)

    await db.refresh(package)
    logger.info(
        "Package %s created for patient %s: %s sessions at %s",
        package.id, patient_id, package.total_sessions, package.per_session_amount
    )
    return PackageResponse.model_validate(package)


async def list_patient_packages(db: AsyncSession, patient_id: UUID) -> PackageListResponse:
    await find_patient(db, patient_id)
    result = await db.execute(
        select(PatientPackage)
        .where(PatientPackage.patient_id == patient_id)
        .order_by(desc(PatientPackage.created_at))
    )
    packages = [PackageResponse.model_validate(p) for p in result.scalars().all()]
    return PackageListResponse(packages=packages, total=len(packages))


async def get_active_package(db: AsyncSession, patient_id: UUID) -> Optional[PackageResponse]:
    await find_patient(db, patient_id)
    package = await find_active_package(db, patient_id)
    return PackageResponse.model_validate(package) if package else None


async def get_package(db: AsyncSession, package_id: UUID) -> PackageResponse:
    return PackageResponse.model_validate(await find_package(db, package_id))


async def update_package(
    db: AsyncSession,
    package_id: UUID,
    request: PackageUpdateRequest,
    current_user: Optional[User] = None
) -> PackageResponse:
    """
    Apply a partial update. Changing the price or session count recalculates
    total and per-session amounts from the merged values and re-normalises the
    carry; a status change closes the package and re-projects the patient.
    """
    data = request.model_dump(exclude_unset=True)
    new_status = data.pop("status", None)

    async with ledger_transaction(db, "update_package", package_id=str(package_id)):
        package = await lock_package(db, package_id)
        terminal = package.status in TERMINAL_PACKAGE_STATUSES
        financial = {k: data[k] for k in FINANCIAL_FIELDS if data.get(k) is not None}

        if terminal and (financial or (new_status and new_status != package.status)):
            raise InvalidStateError(f"Package is already {package.status.value}.")
        if new_status == PackageStatus.ACTIVE and package.status != PackageStatus.ACTIVE:
            raise InvalidStateError("A closed or completed package cannot be reopened.")

        if data.get("assigned_doctor_id"):
            await find_doctor(db, data["assigned_doctor_id"])
        for key in ("package_name", "visit_type", "assigned_doctor_id"):
            if key in data:
                setattr(package, key, data[key])

        if financial:
            totals = compute_totals(
                financial.get("original_amount", package.original_amount),
                financial.get("discount_amount", package.discount_amount),
                financial.get("total_sessions", package.total_sessions),
            )
            if totals.total_sessions < package.released_sessions:
                raise InvalidArgumentError("Total sessions cannot be less than the sessions already released.")

            package.original_amount = totals.original_amount
            package.discount_amount = totals.discount_amount
            package.total_amount = totals.total_amount
            package.total_sessions = totals.total_sessions
            package.per_session_amount = totals.per_session_amount

            allocation = release_from_pool(
                package.carry_amount,
                totals.per_session_amount,
                package.released_sessions,
                totals.total_sessions,
            )
            package.released_sessions = allocation.released_sessions
            package.carry_amount = allocation.carry_amount

            if package.used_sessions >= package.total_sessions:
                mark_terminal(package, PackageStatus.COMPLETED)

        if new_status in TERMINAL_PACKAGE_STATUSES and package.status == PackageStatus.ACTIVE:
            mark_terminal(
                package, new_status,
                closed_by_id=current_user.id if current_user else None
            )

        await db.flush()
        await project_patient_status(db, package.patient_id)

    await db.refresh(package)
    return PackageResponse.model_validate(package)


async def close_package(
    db: AsyncSession,
    package_id: UUID,
    request: PackageCloseRequest,
    closed_by: Optional[User] = None
) -> PackageResponse:
    """Close or complete a package by hand. Terminal packages stay untouched."""
    if request.status not in TERMINAL_PACKAGE_STATUSES:
        raise InvalidArgumentError("A package can only be closed as completed or closed.")

    async with ledger_transaction(db, "close_package", package_id=str(package_id)):
        package = await lock_package(db, package_id)
        if package.status in TERMINAL_PACKAGE_STATUSES:
            raise InvalidStateError(f"Package is already {package.status.value}.")

        mark_terminal(
            package, request.status,
            reason=request.reason,
            closed_by_id=closed_by.id if closed_by else None
        )
        await db.flush()
        await project_patient_status(db, package.patient_id)

    await db.refresh(package)
    logger.info("Package %s %s by %s", package_id, request.status.value, closed_by.id if closed_by else "system")
    return PackageResponse.model_validate(package)


async def delete_package(db: AsyncSession, package_id: UUID) -> PackageDeleteResponse:
    async with ledger_transaction(db, "delete_package", package_id=str(package_id)):
        package = await lock_package(db, package_id)
        patient_id = package.patient_id
        await db.delete(package)
        await db.flush()
        await project_patient_status(db, patient_id)

    logger.info("Package %s deleted; patient %s re-projected", package_id, patient_id)
    return PackageDeleteResponse()
