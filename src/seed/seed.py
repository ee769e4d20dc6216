# src/seed/seed.py
"""
Database seed script for a fresh clinic install.
Creates the owner account and a few doctors when they are missing.

Usage:
    python -m src.seed.seed

Options:
    --owner-email       Owner login email (default: owner@physioclinic.in)
    --owner-password    Owner password (default: ChangeMe123)
    --demo              Also register a demo patient with a package and a payment
"""

import asyncio
import argparse
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.auth_service import hash_password
from src.common.config import settings
from src.common.database.database import async_session, engine
from src.common.utils.logger import setup_logging
from src.models.models import Base, User, UserRole, Doctor, Patient, PaymentMode
from src.modules.packages.packages_service import create_package
from src.modules.packages.schemas import PackageCreateRequest
from src.modules.patients.patients_service import create_patient
from src.modules.patients.schemas import PatientCreateRequest
from src.modules.payments.payments_service import create_payment
from src.modules.payments.schemas import PaymentCreateRequest


# ============================================================================
# SAMPLE DATA
# ============================================================================

SAMPLE_DOCTORS = [
    {"name": "Dr. Meera Shah", "specialization": "Orthopaedic Physiotherapy", "qualification": "MPT (Ortho)", "experience": "8 years"},
    {"name": "Dr. Arjun Rao", "specialization": "Neuro Physiotherapy", "qualification": "MPT (Neuro)", "experience": "5 years"},
    {"name": "Dr. Kavya Iyer", "specialization": "Sports Rehabilitation", "qualification": "BPT", "experience": "3 years"},
]


async def seed_owner(session: AsyncSession, email: str, password: str) -> User:
    result = await session.execute(select(User).where(User.email == email.lower()))
    owner = result.scalars().first()
    if owner:
        print(f"Owner {email} already exists, skipping")
        return owner

    owner = User(
        email=email.lower(),
        password_hash=hash_password(password),
        name="Clinic Owner",
        role=UserRole.OWNER,
        is_active=True,
    )
    session.add(owner)
    await session.commit()
    await session.refresh(owner)
    print(f"Created owner {email}")
    return owner


async def seed_doctors(session: AsyncSession) -> None:
    result = await session.execute(select(Doctor.name))
    existing = set(result.scalars().all())

    created = 0
    for data in SAMPLE_DOCTORS:
        if data["name"] in existing:
            continue
        session.add(Doctor(**data, is_active=True))
        created += 1
    await session.commit()
    print(f"Created {created} doctor(s)")


async def seed_demo_patient(session: AsyncSession, owner: User) -> None:
    result = await session.execute(select(Patient).where(Patient.reg_no == "DEMO-001"))
    if result.scalars().first():
        print("Demo patient already exists, skipping")
        return

    patient = await create_patient(
        session,
        PatientCreateRequest(reg_no="DEMO-001", name="Demo Patient", age=42, mobile="9000000001"),
        owner,
    )
    await create_package(
        session,
        patient.id,
        PackageCreateRequest(
            package_name="Knee rehab (10 sessions)",
            original_amount=Decimal("5000"),
            discount_amount=Decimal("500"),
            total_sessions=10,
        ),
        owner,
    )
    await create_payment(
        session,
        PaymentCreateRequest(
            patient_id=patient.id,
            amount_paid=Decimal("1350"),
            payment_mode=PaymentMode.UPI,
            payment_date=date.today(),
        ),
        owner,
    )
    print("Created demo patient DEMO-001 with a package and an opening payment")


async def main(args: argparse.Namespace) -> None:
    setup_logging()

    if settings.APP_ENV == "development":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        try:
            owner = await seed_owner(session, args.owner_email, args.owner_password)
            await seed_doctors(session)
            if args.demo:
                await seed_demo_patient(session, owner)
        except Exception:
            await session.rollback()
            raise
        finally:
            await engine.dispose()

    print("Seeding complete")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the clinic database")
    parser.add_argument("--owner-email", default="owner@physioclinic.in")
    parser.add_argument("--owner-password", default="ChangeMe123")
    parser.add_argument("--demo", action="store_true")
    asyncio.run(main(parser.parse_args()))
