"""initial_schema_baseline

Revision ID: 3b1f0c2d9a41
Revises:
Create Date: 2026-10-19 10:12:31.418207

Creates the clinic module schema: clinics, rooms, memberships, the
appointment and user tables the clinic service reads, and the audit log.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b1f0c2d9a41'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(updated: bool = True) -> list:
    columns = [sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False)]
    if updated:
        columns.append(sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False))
    return columns


def upgrade() -> None:
    op.create_table(
        'clinics',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('legal_name', sa.String(255), nullable=False),
        sa.Column('trade_name', sa.String(255), nullable=False),
        sa.Column('cnpj', sa.String(14), nullable=False, unique=True),
        sa.Column('cnes', sa.String(20), nullable=True, unique=True),
        sa.Column('phone', sa.String(20), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('website', sa.String(255), nullable=True),
        sa.Column('address', sa.JSON(), nullable=False),
        sa.Column('settings', sa.JSON(), nullable=False),
        sa.Column('working_hours', sa.JSON(), nullable=True),
        sa.Column('timezone', sa.String(50), nullable=False),
        sa.Column('logo_url', sa.String(500), nullable=True),
        sa.Column('primary_color', sa.String(7), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('deleted_at', sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_clinics_trade_name', 'clinics', ['trade_name'])
    op.create_index('idx_clinics_deleted_at', 'clinics', ['deleted_at'])

    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('role', sa.String(30), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.Column('last_login_at', sa.TIMESTAMP(timezone=True), nullable=True),
    )

    op.create_table(
        'doctors',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('crm', sa.String(20), nullable=False),
        sa.Column('crm_state', sa.String(2), nullable=False),
        sa.Column('specialties', sa.JSON(), nullable=False),
        sa.Column('profile_photo_url', sa.String(500), nullable=True),
        sa.Column('telemedicine_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('appointment_duration', sa.Integer(), nullable=False, server_default='30'),
        *_timestamps(),
    )

    op.create_table(
        'patients',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('social_name', sa.String(255), nullable=True),
        sa.Column('cpf', sa.String(11), nullable=False, unique=True),
        sa.Column('phone', sa.String(20), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_patients_full_name', 'patients', ['full_name'])

    op.create_table(
        'rooms',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('clinic_id', sa.String(36), sa.ForeignKey('clinics.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('code', sa.String(20), nullable=True),
        sa.Column('floor', sa.String(50), nullable=True),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('equipment', sa.JSON(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint('clinic_id', 'name', name='uq_room_clinic_name'),
    )
    op.create_index('ix_rooms_clinic_id', 'rooms', ['clinic_id'])

    op.create_table(
        'clinic_doctors',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('clinic_id', sa.String(36), sa.ForeignKey('clinics.id', ondelete='CASCADE'), nullable=False),
        sa.Column('doctor_id', sa.String(36), sa.ForeignKey('doctors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_primary', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('specialties_at_clinic', sa.JSON(), nullable=False),
        sa.Column('working_hours', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('clinic_id', 'doctor_id', name='uq_clinic_doctor'),
    )
    op.create_index('ix_clinic_doctors_clinic_id', 'clinic_doctors', ['clinic_id'])
    op.create_index('ix_clinic_doctors_doctor_id', 'clinic_doctors', ['doctor_id'])

    op.create_table(
        'clinic_patients',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('clinic_id', sa.String(36), sa.ForeignKey('clinics.id', ondelete='CASCADE'), nullable=False),
        sa.Column('patient_id', sa.String(36), sa.ForeignKey('patients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('medical_record_number', sa.String(50), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('clinic_id', 'patient_id', name='uq_clinic_patient'),
    )
    op.create_index('ix_clinic_patients_clinic_id', 'clinic_patients', ['clinic_id'])
    op.create_index('ix_clinic_patients_patient_id', 'clinic_patients', ['patient_id'])

    op.create_table(
        'clinic_employees',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('clinic_id', sa.String(36), sa.ForeignKey('clinics.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role_at_clinic', sa.String(100), nullable=True),
        *_timestamps(updated=False),
        sa.UniqueConstraint('clinic_id', 'user_id', name='uq_clinic_employee'),
    )
    op.create_index('ix_clinic_employees_clinic_id', 'clinic_employees', ['clinic_id'])
    op.create_index('ix_clinic_employees_user_id', 'clinic_employees', ['user_id'])

    op.create_table(
        'appointments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('clinic_id', sa.String(36), sa.ForeignKey('clinics.id'), nullable=False),
        sa.Column('doctor_id', sa.String(36), sa.ForeignKey('doctors.id'), nullable=False),
        sa.Column('patient_id', sa.String(36), sa.ForeignKey('patients.id'), nullable=False),
        sa.Column('room_id', sa.String(36), sa.ForeignKey('rooms.id'), nullable=True),
        sa.Column('scheduled_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('status', sa.String(20), nullable=False, server_default='SCHEDULED'),
        sa.Column('is_telemedicine', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('checked_in_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('started_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_appointments_clinic_date', 'appointments', ['clinic_id', 'scheduled_date'])
    op.create_index('idx_appointments_doctor_date', 'appointments', ['doctor_id', 'scheduled_date'])
    op.create_index('idx_appointments_room_date', 'appointments', ['room_id', 'scheduled_date'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('resource', sa.String(50), nullable=False),
        sa.Column('resource_id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('idx_audit_logs_resource', 'audit_logs', ['resource', 'resource_id'])
    op.create_index('idx_audit_logs_user', 'audit_logs', ['user_id', 'created_at'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('appointments')
    op.drop_table('clinic_employees')
    op.drop_table('clinic_patients')
    op.drop_table('clinic_doctors')
    op.drop_table('rooms')
    op.drop_table('patients')
    op.drop_table('doctors')
    op.drop_table('users')
    op.drop_table('clinics')
