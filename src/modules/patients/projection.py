# src/modules/patients/projection.py
"""Keeps the patient's denormalised status and ledger mirror in line with their packages."""

import logging
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.utils.exceptions import NotFoundError
from src.models.models import Patient, PatientPackage, PackageStatus, PatientStatus
from src.modules.packages.ledger import ZERO

logger = logging.getLogger(__name__)


def derive_status(package_statuses: Iterable[PackageStatus]) -> PatientStatus:
    """no_package without packages, active with any active package, discharged otherwise."""
    statuses = list(package_statuses)
    if not statuses:
        return PatientStatus.NO_PACKAGE
    if PackageStatus.ACTIVE in statuses:
        return PatientStatus.ACTIVE
    return PatientStatus.DISCHARGED


def mirror_ledger_fields(patient: Patient, package: Optional[PatientPackage]) -> None:
    """Copy the active package's released sessions and carry onto the patient row."""
    if package is not None and package.status == PackageStatus.ACTIVE:
        patient.released_sessions = package.released_sessions
        patient.carry_amount = package.carry_amount
    else:
        patient.released_sessions = 0
        patient.carry_amount = ZERO


async def project_patient_status(db: AsyncSession, patient_id: UUID) -> PatientStatus:
    """
    Recompute and store the patient's status from the packages they own.

    Idempotent. Runs inside the caller's transaction and only flushes, so the
    caller's commit or rollback decides whether the new status sticks.
    """
    result = await db.execute(select(Patient).where(Patient.id == patient_id).with_for_update())
    patient = result.scalar_one_or_none()
    if not patient:
        raise NotFoundError(f"Patient with ID {patient_id} not found")

    packages_result = await db.execute(
        select(PatientPackage)
        .where(PatientPackage.patient_id == patient_id)
        .order_by(PatientPackage.created_at.desc())
    )
    packages = packages_result.scalars().all()

    new_status = derive_status(pkg.status for pkg in packages)
    active = next((pkg for pkg in packages if pkg.status == PackageStatus.ACTIVE), None)

    if patient.status != new_status:
        logger.info("Patient %s status %s -> %s", patient_id, patient.status.value, new_status.value)
    patient.status = new_status
    mirror_ledger_fields(patient, active)

    await db.flush()
    return new_status
