from datetime import date, timedelta
from uuid import uuid4

import pytest

from src.common.utils.exceptions import InvalidArgumentError, InvalidStateError, NotFoundError
from src.models.models import PackageStatus, PatientStatus, ShiftType
from src.modules.packages.packages_service import close_package, get_package
from src.modules.packages.schemas import PackageCloseRequest
from src.modules.patients.patients_service import get_patient
from src.modules.sessions import sessions_service
from src.modules.sessions.schemas import SessionUpdateRequest


async def test_session_consumes_a_released_session(db, doctor, make_patient, make_package, pay, attend):
    patient = await make_patient()
    package = await make_package(patient.id)
    await pay(patient.id, 1000)

    visit = await attend(patient.id, doctor_id=doctor.id, shift=ShiftType.MORNING)

    assert visit.package_id == package.id
    assert visit.package_used_sessions == 1
    assert visit.package_completed is False
    refreshed = await get_package(db, package.id)
    assert refreshed.used_sessions == 1
    assert refreshed.remaining_release_sessions == 1
    assert refreshed.remaining_sessions == 8


async def test_session_without_released_budget_is_rejected(db, make_patient, make_package, pay, attend):
    patient = await make_patient()
    package = await make_package(patient.id)
    await pay(patient.id, 1000)
    await attend(patient.id)
    await attend(patient.id)

    with pytest.raises(InvalidStateError, match="No released sessions available"):
        await attend(patient.id)

    refreshed = await get_package(db, package.id)
    assert refreshed.used_sessions == 2
    listing = await sessions_service.list_sessions(db, patient_id=patient.id)
    assert listing.total == 2


async def test_last_session_completes_package_and_discharges(db, make_patient, make_package, pay, attend):
    patient = await make_patient()
    package = await make_package(patient.id, original="5000", discount="500", sessions=9)
    await pay(patient.id, 4500)

    for day in range(8):
        visit = await attend(patient.id, on=date(2026, 1, 1) + timedelta(days=day))
        assert visit.package_completed is False

    last = await attend(patient.id, on=date(2026, 1, 9))

    assert last.package_completed is True
    assert last.package_used_sessions == 9
    refreshed = await get_package(db, package.id)
    assert refreshed.status == PackageStatus.COMPLETED
    assert refreshed.end_date is not None
    assert (await get_patient(db, patient.id)).status == PatientStatus.DISCHARGED


async def test_explicit_package_of_another_patient_is_rejected(make_patient, make_package, attend):
    owner_of_package = await make_patient("Asha")
    other = await make_patient("Vikram")
    package = await make_package(owner_of_package.id, original="0", discount="0", sessions=3)

    with pytest.raises(InvalidArgumentError):
        await attend(other.id, package_id=package.id)


async def test_explicit_closed_package_is_rejected(db, owner, make_patient, make_package, attend):
    patient = await make_patient()
    package = await make_package(patient.id, original="0", discount="0", sessions=3)
    await close_package(db, package.id, PackageCloseRequest(), owner)

    with pytest.raises(InvalidStateError):
        await attend(patient.id, package_id=package.id)


async def test_unknown_doctor_is_not_found(make_patient, make_package, attend):
    patient = await make_patient()
    await make_package(patient.id, original="0", discount="0", sessions=3)

    with pytest.raises(NotFoundError):
        await attend(patient.id, doctor_id=uuid4())


async def test_session_without_package_is_stored_unlinked(make_patient, attend):
    patient = await make_patient()
    visit = await attend(patient.id)
    assert visit.package_id is None
    assert visit.package_used_sessions is None


async def test_delete_session_does_not_give_the_session_back(db, make_patient, make_package, attend):
    patient = await make_patient()
    package = await make_package(patient.id, original="0", discount="0", sessions=3)
    visit = await attend(patient.id)

    await sessions_service.delete_session(db, visit.id)

    assert (await get_package(db, package.id)).used_sessions == 1
    assert await sessions_service.count_sessions_by_package(db, package.id) == 0


async def test_update_session_changes_details_only(db, doctor, make_patient, make_package, attend):
    patient = await make_patient()
    package = await make_package(patient.id, original="0", discount="0", sessions=3)
    visit = await attend(patient.id)

    updated = await sessions_service.update_session(
        db, visit.id, SessionUpdateRequest(doctor_id=doctor.id, shift=ShiftType.EVENING, remarks="Ultrasound")
    )

    assert updated.doctor_id == doctor.id
    assert updated.shift == ShiftType.EVENING
    assert updated.package_id == package.id
    assert (await get_package(db, package.id)).used_sessions == 1


async def test_list_sessions_filters_by_doctor_and_dates(db, doctor, make_patient, make_package, attend):
    patient = await make_patient()
    await make_package(patient.id, original="0", discount="0", sessions=5)
    await attend(patient.id, on=date(2026, 2, 1), doctor_id=doctor.id)
    await attend(patient.id, on=date(2026, 2, 10))
    await attend(patient.id, on=date(2026, 3, 1), doctor_id=doctor.id)

    by_doctor = await sessions_service.list_sessions(db, doctor_id=doctor.id)
    assert by_doctor.total == 2

    february = await sessions_service.list_sessions(
        db, start_date=date(2026, 2, 1), end_date=date(2026, 2, 28)
    )
    assert [s.session_date for s in february.sessions] == [date(2026, 2, 10), date(2026, 2, 1)]

    with pytest.raises(InvalidArgumentError):
        await sessions_service.list_sessions(db, start_date=date(2026, 3, 1), end_date=date(2026, 2, 1))
