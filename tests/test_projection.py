from uuid import uuid4

import pytest

from src.common.utils.exceptions import NotFoundError
from src.models.models import PackageStatus, PatientStatus
from src.modules.packages.packages_service import close_package, delete_package
from src.modules.packages.schemas import PackageCloseRequest
from src.modules.patients.patients_service import get_patient
from src.modules.patients.projection import derive_status, project_patient_status


@pytest.mark.parametrize("statuses,expected", [
    ([], PatientStatus.NO_PACKAGE),
    ([PackageStatus.ACTIVE], PatientStatus.ACTIVE),
    ([PackageStatus.CLOSED, PackageStatus.ACTIVE], PatientStatus.ACTIVE),
    ([PackageStatus.COMPLETED], PatientStatus.DISCHARGED),
    ([PackageStatus.COMPLETED, PackageStatus.CLOSED], PatientStatus.DISCHARGED),
])
def test_derive_status(statuses, expected):
    assert derive_status(statuses) == expected


async def test_projection_is_idempotent(db, make_patient, make_package):
    patient = await make_patient()
    await make_package(patient.id)

    first = await project_patient_status(db, patient.id)
    second = await project_patient_status(db, patient.id)
    await db.commit()

    assert first == second == PatientStatus.ACTIVE


async def test_projection_for_missing_patient(db):
    with pytest.raises(NotFoundError):
        await project_patient_status(db, uuid4())


async def test_status_follows_every_lifecycle_step(db, owner, make_patient, make_package, pay):
    patient = await make_patient()
    assert patient.status == PatientStatus.NO_PACKAGE

    first = await make_package(patient.id)
    await pay(patient.id, 1200)
    assert (await get_patient(db, patient.id)).status == PatientStatus.ACTIVE

    await close_package(db, first.id, PackageCloseRequest(reason="Paused"), owner)
    closed = await get_patient(db, patient.id)
    assert closed.status == PatientStatus.DISCHARGED
    # Mirror fields reset once nothing is active
    assert closed.released_sessions == 0
    assert closed.carry_amount == 0

    second = await make_package(patient.id, original="2000", discount="0", sessions=4)
    assert (await get_patient(db, patient.id)).status == PatientStatus.ACTIVE

    await delete_package(db, second.id)
    assert (await get_patient(db, patient.id)).status == PatientStatus.DISCHARGED

    await delete_package(db, first.id)
    assert (await get_patient(db, patient.id)).status == PatientStatus.NO_PACKAGE
