from contextlib import contextmanager

import pytest
from sqlalchemy import event

from src.models.models import PackageStatus
from src.modules.packages.packages_service import close_package, delete_package, update_package
from src.modules.packages.schemas import PackageCloseRequest, PackageUpdateRequest


@contextmanager
def locked_rows(db):
    """Collect the entity name of every SELECT ... FOR UPDATE issued on ``db``."""
    locks = []

    def on_execute(state):
        if state.is_select and state.statement._for_update_arg is not None:
            locks.append(state.all_mappers[0].class_.__name__)

    event.listen(db.sync_session, "do_orm_execute", on_execute)
    try:
        yield locks
    finally:
        event.remove(db.sync_session, "do_orm_execute", on_execute)


def assert_patient_locked_first(locks):
    assert "Patient" in locks
    if "PatientPackage" in locks:
        assert locks.index("Patient") < locks.index("PatientPackage")


async def test_payment_locks_patient_before_package(db, make_patient, make_package, pay):
    patient = await make_patient()
    await make_package(patient.id)

    with locked_rows(db) as locks:
        await pay(patient.id, 1200)

    assert_patient_locked_first(locks)
    assert "PatientPackage" in locks


async def test_session_locks_patient_before_package(db, make_patient, make_package, pay, attend):
    patient = await make_patient()
    package = await make_package(patient.id)
    await pay(patient.id, 1000)

    with locked_rows(db) as locks:
        await attend(patient.id)
    assert_patient_locked_first(locks)
    assert "PatientPackage" in locks

    with locked_rows(db) as locks:
        await attend(patient.id, package_id=package.id)
    assert_patient_locked_first(locks)
    assert "PatientPackage" in locks


@pytest.mark.parametrize("operation", ["update", "close", "delete"])
async def test_package_changes_lock_patient_before_package(db, make_patient, make_package, operation):
    patient = await make_patient()
    package = await make_package(patient.id)

    with locked_rows(db) as locks:
        if operation == "update":
            await update_package(db, package.id, PackageUpdateRequest(package_name="Knee rehab"))
        elif operation == "close":
            await close_package(db, package.id, PackageCloseRequest(status=PackageStatus.CLOSED))
        else:
            await delete_package(db, package.id)

    assert_patient_locked_first(locks)
    assert "PatientPackage" in locks
