"""create clinic ledger tables

Revision ID: 4c2d9e1a7b30
Revises:
Create Date: 2026-10-19 10:02:14.508311

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4c2d9e1a7b30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


userrole = postgresql.ENUM('OWNER', 'RECEPTIONIST', name='userrole', create_type=False)
patientstatus = postgresql.ENUM('ACTIVE', 'NO_PACKAGE', 'DISCHARGED', name='patientstatus', create_type=False)
packagestatus = postgresql.ENUM('ACTIVE', 'COMPLETED', 'CLOSED', name='packagestatus', create_type=False)
paymentmode = postgresql.ENUM('CASH', 'CARD', 'UPI', name='paymentmode', create_type=False)
shifttype = postgresql.ENUM('MORNING', 'EVENING', name='shifttype', create_type=False)
visittype = postgresql.ENUM('CLINIC', 'HOME', name='visittype', create_type=False)

ENUMS = (userrole, patientstatus, packagestatus, paymentmode, shifttype, visittype)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    # visittype is shared by several tables, so types are created up front
    for enum_type in ENUMS:
        enum_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('mobile', sa.String(length=20), nullable=True),
        sa.Column('role', userrole, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('reset_otp', sa.String(length=255), nullable=True),
        sa.Column('reset_otp_expires', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'doctors',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('specialization', sa.String(length=200), nullable=True),
        sa.Column('mobile', sa.String(length=20), nullable=True),
        sa.Column('experience', sa.String(length=100), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('qualification', sa.String(length=200), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'patients',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('reg_no', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('mobile', sa.String(length=20), nullable=True),
        sa.Column('visit_type', visittype, nullable=True),
        sa.Column('referred_dr', sa.String(length=200), nullable=True),
        sa.Column('remark', sa.Text(), nullable=True),
        sa.Column('assigned_doctor_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('status', patientstatus, nullable=False),
        sa.Column('released_sessions', sa.Integer(), nullable=False),
        sa.Column('carry_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('created_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['assigned_doctor_id'], ['doctors.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_patients_reg_no'), 'patients', ['reg_no'], unique=True)

    op.create_table(
        'patient_packages',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('patient_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('assigned_doctor_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('package_name', sa.String(length=200), nullable=True),
        sa.Column('visit_type', visittype, nullable=True),
        sa.Column('original_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('discount_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('total_sessions', sa.Integer(), nullable=False),
        sa.Column('per_session_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('released_sessions', sa.Integer(), nullable=False),
        sa.Column('carry_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('used_sessions', sa.Integer(), nullable=False),
        sa.Column('status', packagestatus, nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('closed_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('close_reason', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('total_sessions >= 1', name='ck_package_total_sessions_positive'),
        sa.CheckConstraint('used_sessions >= 0', name='ck_package_used_sessions_non_negative'),
        sa.CheckConstraint('used_sessions <= released_sessions', name='ck_package_used_within_released'),
        sa.CheckConstraint('released_sessions <= total_sessions', name='ck_package_released_within_total'),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['assigned_doctor_id'], ['doctors.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['closed_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_patient_packages_patient_status', 'patient_packages', ['patient_id', 'status'])

    op.create_table(
        'sessions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('patient_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('doctor_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('package_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('session_date', sa.Date(), nullable=False),
        sa.Column('shift', shifttype, nullable=True),
        sa.Column('visit_type', visittype, nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('created_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['doctor_id'], ['doctors.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['package_id'], ['patient_packages.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_sessions_patient_id'), 'sessions', ['patient_id'])
    op.create_index(op.f('ix_sessions_doctor_id'), 'sessions', ['doctor_id'])
    op.create_index(op.f('ix_sessions_package_id'), 'sessions', ['package_id'])

    op.create_table(
        'payments',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('patient_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('session_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('package_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('amount_paid', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('payment_mode', paymentmode, nullable=False),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('remaining_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('sessions_released', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['session_id'], ['sessions.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['package_id'], ['patient_packages.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_payments_patient_id'), 'payments', ['patient_id'])
    op.create_index(op.f('ix_payments_payment_date'), 'payments', ['payment_date'])


def downgrade() -> None:
    op.drop_index(op.f('ix_payments_payment_date'), table_name='payments')
    op.drop_index(op.f('ix_payments_patient_id'), table_name='payments')
    op.drop_table('payments')
    op.drop_index(op.f('ix_sessions_package_id'), table_name='sessions')
    op.drop_index(op.f('ix_sessions_doctor_id'), table_name='sessions')
    op.drop_index(op.f('ix_sessions_patient_id'), table_name='sessions')
    op.drop_table('sessions')
    op.drop_index('ix_patient_packages_patient_status', table_name='patient_packages')
    op.drop_table('patient_packages')
    op.drop_index(op.f('ix_patients_reg_no'), table_name='patients')
    op.drop_table('patients')
    op.drop_table('doctors')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')

    for enum_type in reversed(ENUMS):
        enum_type.drop(op.get_bind(), checkfirst=True)
