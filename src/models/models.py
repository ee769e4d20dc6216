# src/models/models.py

import uuid
import enum
from decimal import Decimal

from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, ForeignKey, Index, Integer,
    Numeric, String, Text, DateTime,
    Enum as SAEnum,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class UserRole(enum.Enum):
    OWNER = "owner"
    RECEPTIONIST = "receptionist"


class PatientStatus(enum.Enum):
    ACTIVE = "active"
    NO_PACKAGE = "no_package"
    DISCHARGED = "discharged"


class PackageStatus(enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CLOSED = "closed"


class PaymentMode(enum.Enum):
    CASH = "cash"
    CARD = "card"
    UPI = "upi"


class ShiftType(enum.Enum):
    MORNING = "morning"
    EVENING = "evening"


class VisitType(enum.Enum):
    CLINIC = "clinic"
    HOME = "home"


TERMINAL_PACKAGE_STATUSES = (PackageStatus.COMPLETED, PackageStatus.CLOSED)


# ============================================================================
# STAFF
# ============================================================================

class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(200), nullable=False)
    mobile = Column(String(20), nullable=True)
    role = Column(SAEnum(UserRole), nullable=False, default=UserRole.RECEPTIONIST)
    is_active = Column(Boolean, default=True, nullable=False)
    reset_otp = Column(String(255), nullable=True)
    reset_otp_expires = Column(DateTime(timezone=True), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role.value})>"


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    name = Column(String(200), nullable=False)
    specialization = Column(String(200), nullable=True)
    mobile = Column(String(20), nullable=True)
    experience = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    qualification = Column(String(200), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Doctor(id={self.id}, name={self.name})>"


# ============================================================================
# PATIENTS AND PACKAGES
# ============================================================================

class Patient(Base):
    __tablename__ = "patients"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    reg_no = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    age = Column(Integer, nullable=True)
    mobile = Column(String(20), nullable=True)
    visit_type = Column(SAEnum(VisitType), nullable=True)
    referred_dr = Column(String(200), nullable=True)
    remark = Column(Text, nullable=True)
    assigned_doctor_id = Column(UUID(as_uuid=True), ForeignKey("doctors.id", ondelete="SET NULL"), nullable=True)
    # Derived from the patient's packages; written only by the status projection
    status = Column(SAEnum(PatientStatus), nullable=False, default=PatientStatus.NO_PACKAGE)
    # Mirror of the active package's ledger, kept for older clients
    released_sessions = Column(Integer, nullable=False, default=0)
    carry_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    created_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Patient(id={self.id}, reg_no={self.reg_no}, status={self.status.value})>"


class PatientPackage(Base):
    __tablename__ = "patient_packages"
    __table_args__ = (
        CheckConstraint("total_sessions >= 1", name="ck_package_total_sessions_positive"),
        CheckConstraint("used_sessions >= 0", name="ck_package_used_sessions_non_negative"),
        CheckConstraint("used_sessions <= released_sessions", name="ck_package_used_within_released"),
        CheckConstraint("released_sessions <= total_sessions", name="ck_package_released_within_total"),
        Index("ix_patient_packages_patient_status", "patient_id", "status"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    patient_id = Column(UUID(as_uuid=True), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False)
    assigned_doctor_id = Column(UUID(as_uuid=True), ForeignKey("doctors.id", ondelete="SET NULL"), nullable=True)
    package_name = Column(String(200), nullable=True)
    visit_type = Column(SAEnum(VisitType), nullable=True)
    original_amount = Column(Numeric(10, 2), nullable=False)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    total_amount = Column(Numeric(10, 2), nullable=False)
    total_sessions = Column(Integer, nullable=False)
    per_session_amount = Column(Numeric(10, 2), nullable=False)
    released_sessions = Column(Integer, nullable=False, default=0)
    carry_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    used_sessions = Column(Integer, nullable=False, default=0)
    status = Column(SAEnum(PackageStatus), nullable=False, default=PackageStatus.ACTIVE)
    start_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    end_date = Column(DateTime(timezone=True), nullable=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    closed_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    close_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    @property
    def remaining_sessions(self) -> int:
        return self.total_sessions - self.used_sessions

    @property
    def remaining_release_sessions(self) -> int:
        return max(self.released_sessions - self.used_sessions, 0)

    def __repr__(self):
        return (
            f"<PatientPackage(id={self.id}, status={self.status.value}, "
            f"used={self.used_sessions}/{self.released_sessions}/{self.total_sessions})>"
        )


# ============================================================================
# ATTENDANCE AND MONEY
# ============================================================================

class TreatmentSession(Base):
    __tablename__ = "sessions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    patient_id = Column(UUID(as_uuid=True), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    doctor_id = Column(UUID(as_uuid=True), ForeignKey("doctors.id", ondelete="SET NULL"), nullable=True, index=True)
    package_id = Column(UUID(as_uuid=True), ForeignKey("patient_packages.id", ondelete="SET NULL"), nullable=True, index=True)
    session_date = Column(Date, nullable=False)
    shift = Column(SAEnum(ShiftType), nullable=True)
    visit_type = Column(SAEnum(VisitType), nullable=True)
    remarks = Column(Text, nullable=True)
    created_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<TreatmentSession(id={self.id}, patient_id={self.patient_id}, date={self.session_date})>"


class Payment(Base):
    __tablename__ = "payments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    patient_id = Column(UUID(as_uuid=True), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    session_id = Column(UUID(as_uuid=True), ForeignKey("sessions.id", ondelete="SET NULL"), nullable=True)
    package_id = Column(UUID(as_uuid=True), ForeignKey("patient_packages.id", ondelete="SET NULL"), nullable=True)
    created_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    amount_paid = Column(Numeric(10, 2), nullable=False)
    payment_mode = Column(SAEnum(PaymentMode), nullable=False, default=PaymentMode.CASH)
    remarks = Column(Text, nullable=True)
    payment_date = Column(Date, nullable=False, index=True)
    # Outstanding balance right after this payment; never recomputed
    remaining_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    sessions_released = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<Payment(id={self.id}, patient_id={self.patient_id}, amount={self.amount_paid})>"
