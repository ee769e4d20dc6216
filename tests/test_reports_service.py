from datetime import date

from sqlalchemy.exc import OperationalError

from src.models.models import PaymentMode
from src.modules.packages.packages_service import close_package
from src.modules.packages.schemas import PackageCloseRequest
from src.modules.reports import reports_service
from src.modules.reports.schemas import ExportType, RevenueGranularity

TODAY = date(2026, 6, 15)


async def test_dashboard_counts_and_revenue(db, owner, doctor, make_patient, make_package, pay, attend):
    asha = await make_patient("Asha")
    vikram = await make_patient("Vikram")
    await make_patient("Neha")
    await make_package(asha.id)
    second = await make_package(vikram.id, original="0", discount="0", sessions=2)
    await close_package(db, second.id, PackageCloseRequest(), owner)

    await pay(asha.id, 1000, on=date(2026, 1, 10))
    await pay(asha.id, 500, on=date(2026, 6, 1))
    await pay(asha.id, 250, on=TODAY)
    await attend(asha.id, on=TODAY, doctor_id=doctor.id)

    stats = await reports_service.get_dashboard_stats(db, today=TODAY)

    assert stats.patients.total == 3
    assert stats.patients.active == 1
    assert stats.patients.discharged == 1
    assert stats.patients.no_package == 1
    assert stats.revenue.total == 1750
    assert stats.revenue.monthly == 750
    assert stats.revenue.today == 250
    assert stats.total_doctors == 1
    assert stats.active_packages == 1
    assert stats.sessions_today == 1


async def test_failed_section_degrades_to_default(db):
    async def broken():
        raise OperationalError("SELECT 1", {}, Exception("connection lost"))

    assert await reports_service._safe(db, "broken", broken(), 0) == 0


async def test_doctor_wise_stats(db, doctor, make_patient, make_package, pay, attend):
    asha = await make_patient("Asha")
    vikram = await make_patient("Vikram")
    await make_package(asha.id, original="0", discount="0", sessions=5)
    await make_package(vikram.id, original="0", discount="0", sessions=5)

    visit = await attend(asha.id, on=date(2026, 3, 2), doctor_id=doctor.id)
    await attend(asha.id, on=date(2026, 3, 3), doctor_id=doctor.id)
    await attend(vikram.id, on=date(2026, 3, 4), doctor_id=doctor.id)
    await attend(vikram.id, on=date(2026, 4, 1), doctor_id=doctor.id)
    await pay(asha.id, 400, on=date(2026, 3, 2), session_id=visit.id)

    report = await reports_service.get_doctor_wise_stats(db, date(2026, 3, 1), date(2026, 3, 31))

    assert len(report.doctors) == 1
    row = report.doctors[0]
    assert row.doctor_id == doctor.id
    assert row.session_count == 3
    assert row.patient_count == 2
    assert row.revenue == 400


async def test_payment_mode_breakdown(db, make_patient, make_package, pay):
    patient = await make_patient()
    await make_package(patient.id)
    await pay(patient.id, 300, mode=PaymentMode.CARD)
    await pay(patient.id, 200, mode=PaymentMode.CARD)
    await pay(patient.id, 100, mode=PaymentMode.CASH)

    breakdown = await reports_service.get_payment_mode_breakdown(db)

    assert breakdown.revenue_by_mode == {"cash": 100.0, "card": 500.0, "upi": 0.0}
    assert breakdown.total == 600


async def test_revenue_series_by_month(db, make_patient, make_package, pay):
    patient = await make_patient()
    await make_package(patient.id)
    await pay(patient.id, 100, on=date(2026, 1, 5))
    await pay(patient.id, 150, on=date(2026, 1, 20))
    await pay(patient.id, 400, on=date(2026, 3, 1))

    series = await reports_service.get_revenue_series(
        db, RevenueGranularity.MONTH, date(2026, 1, 1), date(2026, 12, 31)
    )

    assert [(p.period, p.amount) for p in series.points] == [("2026-01", 250.0), ("2026-03", 400.0)]
    assert series.total == 650

    yearly = await reports_service.get_revenue_series(
        db, RevenueGranularity.YEAR, date(2026, 1, 1), date(2026, 12, 31)
    )
    assert [(p.period, p.amount) for p in yearly.points] == [("2026", 650.0)]


async def test_pending_payments_largest_first(db, make_patient, make_package, pay):
    small = await make_patient("Asha")
    large = await make_patient("Vikram")
    settled = await make_patient("Neha")
    await make_package(small.id, original="1000", discount="0", sessions=2)
    await make_package(large.id, original="5000", discount="0", sessions=10)
    await make_package(settled.id, original="800", discount="0", sessions=2)
    await pay(small.id, 600)
    await pay(settled.id, 800)

    pending = await reports_service.get_pending_payments(db)

    assert [p.name for p in pending.patients] == ["Vikram", "Asha"]
    assert pending.patients[0].pending_amount == 5000
    assert pending.patients[1].pending_amount == 400
    assert pending.total_pending == 5400


async def test_patient_history(db, make_patient, make_package, pay, attend):
    patient = await make_patient()
    await make_package(patient.id, original="2000", discount="0", sessions=4)
    await pay(patient.id, 1000)
    await attend(patient.id)

    history = await reports_service.get_patient_history(db, patient.id)

    assert history.patient.id == patient.id
    assert len(history.packages) == 1
    assert len(history.sessions) == 1
    assert len(history.payments) == 1
    assert history.total_paid == 1000
    assert history.remaining_amount == 1000


async def test_export_payments_rows_are_plain_dicts(db, make_patient, make_package, pay):
    patient = await make_patient("Asha", reg_no="PT-7")
    await make_package(patient.id)
    await pay(patient.id, 500, mode=PaymentMode.UPI, on=date(2026, 2, 2))
    await pay(patient.id, 500, on=date(2026, 5, 5))

    export = await reports_service.export_data(db, ExportType.PAYMENTS, date(2026, 2, 1), date(2026, 2, 28))

    assert export.count == 1
    row = export.rows[0]
    assert row["reg_no"] == "PT-7"
    assert row["patient_name"] == "Asha"
    assert row["payment_mode"] == "upi"
    assert row["payment_date"] == "2026-02-02"


async def test_export_patients_and_sessions(db, doctor, make_patient, make_package, attend):
    patient = await make_patient("Asha")
    await make_package(patient.id, original="0", discount="0", sessions=2)
    await attend(patient.id, doctor_id=doctor.id, on=date(2026, 2, 2))

    patients = await reports_service.export_data(db, ExportType.PATIENTS)
    sessions = await reports_service.export_data(db, ExportType.SESSIONS)

    assert patients.count == 1
    assert patients.rows[0]["status"] == "active"
    assert sessions.rows[0]["doctor_name"] == doctor.name
