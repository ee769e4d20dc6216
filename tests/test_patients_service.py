from uuid import uuid4

import pytest

from src.common.utils.exceptions import InvalidArgumentError, InvalidStateError, NotFoundError
from src.models.models import PatientStatus
from src.modules.patients import patients_service
from src.modules.patients.schemas import PatientUpdateRequest


async def test_duplicate_registration_number_is_rejected(make_patient):
    await make_patient(reg_no="PT-100")
    with pytest.raises(InvalidArgumentError):
        await make_patient("Someone Else", reg_no="PT-100")


async def test_patient_balances_are_computed_at_read_time(db, make_patient, make_package, pay, attend):
    patient = await make_patient()
    await make_package(patient.id, original="3000", discount="0", sessions=6)
    await pay(patient.id, 1000)
    await attend(patient.id)

    fetched = await patients_service.get_patient(db, patient.id)

    assert fetched.attended_sessions_count == 1
    assert fetched.total_amount == 3000
    assert fetched.paid_amount == 1000
    assert fetched.remaining_amount == 2000


async def test_receptionist_only_sees_active_patients(db, receptionist, make_patient, make_package):
    active = await make_patient("Asha")
    waiting = await make_patient("Vikram")
    await make_package(active.id)

    listing = await patients_service.list_patients(db, receptionist)
    assert [p.id for p in listing.patients] == [active.id]

    with pytest.raises(NotFoundError):
        await patients_service.get_patient(db, waiting.id, receptionist)


async def test_owner_can_filter_and_search(db, owner, make_patient, make_package):
    asha = await make_patient("Asha Menon", mobile="9876500001")
    await make_patient("Vikram Rao")
    await make_package(asha.id)

    no_package = await patients_service.list_patients(db, owner, status=PatientStatus.NO_PACKAGE)
    assert [p.name for p in no_package.patients] == ["Vikram Rao"]

    found = await patients_service.list_patients(db, owner, search="98765")
    assert found.total == 1
    assert found.patients[0].id == asha.id


async def test_update_patient_details(db, owner, doctor, make_patient):
    patient = await make_patient()
    updated = await patients_service.update_patient(
        db, patient.id, PatientUpdateRequest(age=51, assigned_doctor_id=doctor.id), owner
    )
    assert updated.age == 51
    assert updated.assigned_doctor_id == doctor.id
    assert updated.status == PatientStatus.NO_PACKAGE


async def test_delete_refused_when_history_exists(db, make_patient, make_package, pay):
    patient = await make_patient()
    await make_package(patient.id)
    await pay(patient.id, 500)

    with pytest.raises(InvalidStateError):
        await patients_service.delete_patient(db, patient.id)


async def test_delete_removes_patient_and_packages(db, make_patient, make_package):
    patient = await make_patient()
    await make_package(patient.id)

    await patients_service.delete_patient(db, patient.id)

    with pytest.raises(NotFoundError):
        await patients_service.get_patient(db, patient.id)


async def test_patient_stats(db, owner, make_patient, make_package):
    await make_patient("Asha")
    active = await make_patient("Vikram")
    await make_package(active.id)

    stats = await patients_service.get_patient_stats(db)

    assert stats.total == 2
    assert stats.active == 1
    assert stats.no_package == 1
    assert stats.discharged == 0


async def test_unknown_patient(db):
    with pytest.raises(NotFoundError):
        await patients_service.get_patient(db, uuid4())
