from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from src.common.utils.exceptions import InvalidArgumentError, NotFoundError
from src.models.models import PaymentMode
from src.modules.packages.packages_service import get_package
from src.modules.patients.patients_service import get_patient
from src.modules.payments import payments_service
from src.modules.payments.schemas import PaymentUpdateRequest


async def test_payment_releases_sessions_and_carries_remainder(db, make_patient, make_package, pay):
    patient = await make_patient()
    package = await make_package(patient.id, original="5000", discount="500", sessions=9)

    payment = await pay(patient.id, 1200)

    assert payment.sessions_released == 2
    assert payment.package_id == package.id
    assert payment.remaining_amount == 3300

    refreshed = await get_package(db, package.id)
    assert refreshed.released_sessions == 2
    assert refreshed.carry_amount == 200

    mirrored = await get_patient(db, patient.id)
    assert mirrored.released_sessions == 2
    assert mirrored.carry_amount == 200
    assert mirrored.paid_amount == 1200
    assert mirrored.remaining_amount == 3300


async def test_successive_payments_use_the_carry(db, make_patient, make_package, pay):
    patient = await make_patient()
    package = await make_package(patient.id, original="5000", discount="500", sessions=9)

    await pay(patient.id, 1200)
    second = await pay(patient.id, 300)

    assert second.sessions_released == 1
    assert second.remaining_amount == 3000
    refreshed = await get_package(db, package.id)
    assert refreshed.released_sessions == 3
    assert refreshed.carry_amount == 0


async def test_overpayment_caps_release_and_clears_carry(db, make_patient, make_package, pay):
    patient = await make_patient()
    package = await make_package(patient.id, original="5000", discount="500", sessions=9)

    payment = await pay(patient.id, 4800)

    assert payment.sessions_released == 9
    assert payment.remaining_amount == 0
    refreshed = await get_package(db, package.id)
    assert refreshed.released_sessions == 9
    assert refreshed.carry_amount == 0


@pytest.mark.parametrize("amount", [0, -100])
async def test_non_positive_payment_is_rejected(db, make_patient, make_package, pay, amount):
    patient = await make_patient()
    await make_package(patient.id)

    with pytest.raises(InvalidArgumentError):
        await pay(patient.id, amount)

    listing = await payments_service.list_payments(db, patient_id=patient.id)
    assert listing.total == 0


async def test_payment_without_active_package_is_recorded_unallocated(db, make_patient, pay):
    patient = await make_patient()

    payment = await pay(patient.id, 500)

    assert payment.package_id is None
    assert payment.sessions_released == 0
    assert payment.remaining_amount == 0
    mirrored = await get_patient(db, patient.id)
    assert mirrored.released_sessions == 0
    assert mirrored.carry_amount == 0


async def test_payment_for_unknown_patient_is_not_found(pay):
    with pytest.raises(NotFoundError):
        await pay(uuid4(), 100)


async def test_session_must_belong_to_the_paying_patient(make_patient, make_package, pay, attend):
    first = await make_patient("Asha")
    second = await make_patient("Vikram")
    await make_package(first.id, original="0", discount="0", sessions=2)
    await make_package(second.id)
    visit = await attend(first.id)

    with pytest.raises(InvalidArgumentError):
        await pay(second.id, 500, session_id=visit.id)


async def test_update_payment_does_not_reallocate(db, make_patient, make_package, pay):
    patient = await make_patient()
    package = await make_package(patient.id)
    payment = await pay(patient.id, 1200)

    updated = await payments_service.update_payment(
        db, payment.id, PaymentUpdateRequest(payment_mode=PaymentMode.UPI, remarks="corrected")
    )

    assert updated.payment_mode == PaymentMode.UPI
    assert updated.remarks == "corrected"
    assert updated.amount_paid == 1200
    assert (await get_package(db, package.id)).released_sessions == 2


async def test_delete_payment_keeps_released_sessions(db, make_patient, make_package, pay):
    patient = await make_patient()
    package = await make_package(patient.id)
    payment = await pay(patient.id, 1000)

    await payments_service.delete_payment(db, payment.id)

    with pytest.raises(NotFoundError):
        await payments_service.get_payment(db, payment.id)
    assert (await get_package(db, package.id)).released_sessions == 2


async def test_list_filters_and_date_range(db, make_patient, make_package, pay):
    patient = await make_patient()
    await make_package(patient.id)
    await pay(patient.id, 500, mode=PaymentMode.CASH, on=date(2026, 3, 1))
    await pay(patient.id, 500, mode=PaymentMode.CARD, on=date(2026, 3, 15))
    await pay(patient.id, 500, mode=PaymentMode.UPI, on=date(2026, 4, 2))

    march = await payments_service.find_by_date_range(db, date(2026, 3, 1), date(2026, 3, 31))
    assert march.total == 2
    assert [p.payment_date for p in march.payments] == [date(2026, 3, 15), date(2026, 3, 1)]

    cards = await payments_service.list_payments(db, payment_mode=PaymentMode.CARD)
    assert cards.total == 1

    with pytest.raises(InvalidArgumentError):
        await payments_service.find_by_date_range(db, date(2026, 4, 1), date(2026, 3, 1))


async def test_revenue_stats_has_every_mode_and_sorted_days(db, make_patient, make_package, pay):
    patient = await make_patient()
    await make_package(patient.id)
    await pay(patient.id, 700, mode=PaymentMode.CASH, on=date(2026, 5, 2))
    await pay(patient.id, 300, mode=PaymentMode.CASH, on=date(2026, 5, 1))
    await pay(patient.id, 250.50, mode=PaymentMode.UPI, on=date(2026, 5, 2))

    stats = await payments_service.get_revenue_stats(db, date(2026, 5, 1), date(2026, 5, 31))

    assert stats.total_revenue == 1250.50
    assert stats.revenue_by_mode == {"cash": 1000.0, "card": 0.0, "upi": 250.50}
    assert [d.date for d in stats.daily_revenue] == ["2026-05-01", "2026-05-02"]
    assert stats.daily_revenue[1].amount == 950.50


async def test_patient_total_paid(db, make_patient, make_package, pay):
    patient = await make_patient()
    await make_package(patient.id)
    await pay(patient.id, Decimal("100.25"))
    await pay(patient.id, Decimal("99.75"))

    total = await payments_service.get_patient_total_paid(db, patient.id)
    assert total.total_paid == 200
