import os

os.environ.setdefault("APP_ENV", "test")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DEBUG"] = "false"

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.auth.auth_service import hash_password
from src.models.models import Base, User, UserRole, Doctor, PaymentMode
from src.modules.packages.packages_service import create_package
from src.modules.packages.schemas import PackageCreateRequest
from src.modules.patients.patients_service import create_patient
from src.modules.patients.schemas import PatientCreateRequest
from src.modules.payments.payments_service import create_payment
from src.modules.payments.schemas import PaymentCreateRequest
from src.modules.sessions.sessions_service import record_session
from src.modules.sessions.schemas import SessionCreateRequest


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine):
    session_factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


async def _make_user(db, role: UserRole, email: str, password: str = "password123") -> User:
    user = User(
        email=email,
        password_hash=hash_password(password),
        name=email.split("@")[0].title(),
        role=role,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def owner(db):
    return await _make_user(db, UserRole.OWNER, "owner@physioclinic.in")


@pytest.fixture
async def receptionist(db):
    return await _make_user(db, UserRole.RECEPTIONIST, "desk@physioclinic.in")


@pytest.fixture
async def doctor(db):
    doctor = Doctor(name="Dr. Meera Shah", specialization="Orthopaedic", is_active=True)
    db.add(doctor)
    await db.commit()
    await db.refresh(doctor)
    return doctor


@pytest.fixture
def make_patient(db, owner):
    counter = {"n": 0}

    async def _make(name: str = "Ravi Kumar", **fields):
        counter["n"] += 1
        request = PatientCreateRequest(reg_no=fields.pop("reg_no", f"REG-{counter['n']:03d}"), name=name, **fields)
        return await create_patient(db, request, owner)

    return _make


@pytest.fixture
def make_package(db, owner):
    async def _make(patient_id, original="5000", discount="500", sessions=9, **fields):
        request = PackageCreateRequest(
            original_amount=Decimal(original),
            discount_amount=Decimal(discount),
            total_sessions=sessions,
            **fields,
        )
        return await create_package(db, patient_id, request, owner)

    return _make


@pytest.fixture
def pay(db, owner):
    async def _pay(patient_id, amount, mode=PaymentMode.CASH, on=None, **fields):
        request = PaymentCreateRequest(
            patient_id=patient_id,
            amount_paid=Decimal(str(amount)),
            payment_mode=mode,
            payment_date=on or date.today(),
            **fields,
        )
        return await create_payment(db, request, owner)

    return _pay


@pytest.fixture
def attend(db, owner):
    async def _attend(patient_id, on=None, **fields):
        request = SessionCreateRequest(patient_id=patient_id, session_date=on or date.today(), **fields)
        return await record_session(db, request, owner)

    return _attend
