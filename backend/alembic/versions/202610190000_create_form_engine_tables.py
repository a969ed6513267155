"""Create form engine tables and seed system field types

Revision ID: 202610190000
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from services.field_type_seed import SYSTEM_FIELD_TYPES

# revision identifiers, used by Alembic.
revision: str = '202610190000'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONB = postgresql.JSONB(astext_type=sa.Text())


def upgrade() -> None:
    op.create_table('field_types',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('field_type', sa.String(length=50), nullable=False),
    sa.Column('canonical_name', sa.String(length=100), nullable=False),
    sa.Column('display_name_key', sa.String(length=100), nullable=False),
    sa.Column('category', sa.String(length=20), nullable=False),
    sa.Column('data_type', sa.String(length=20), nullable=False),
    sa.Column('is_required', sa.Boolean(), nullable=False),
    sa.Column('is_system', sa.Boolean(), nullable=False),
    sa.Column('accepted_aliases', JSONB, nullable=False),
    sa.Column('validation_rules', JSONB, nullable=True),
    sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
    sa.CheckConstraint(
        "category IN ('PERSONAL', 'CONTACT', 'INSURANCE', 'MEDICAL', 'CONSENT', 'CUSTOM')",
        name='check_field_type_category'
    ),
    sa.CheckConstraint(
        "data_type IN ('STRING', 'TEXT', 'DATE', 'EMAIL', 'PHONE', 'NUMBER', 'BOOLEAN', 'SIGNATURE')",
        name='check_field_type_data_type'
    ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('field_type'),
    sa.UniqueConstraint('canonical_name')
    )
    op.create_index(op.f('ix_field_types_id'), 'field_types', ['id'], unique=False)
    op.create_index('idx_field_types_category', 'field_types', ['category'], unique=False)
    op.create_index('idx_field_types_required', 'field_types', ['is_required'], unique=False)

    op.create_table('form_definitions',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('category', sa.String(length=20), nullable=False),
    sa.Column('version', sa.String(length=20), nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    sa.Column('is_default', sa.Boolean(), nullable=False),
    sa.Column('schema', JSONB, nullable=False),
    sa.Column('ui_schema', JSONB, nullable=True),
    sa.Column('field_mappings', JSONB, nullable=False),
    sa.Column('validation_rules', JSONB, nullable=True),
    sa.Column('rendering_options', JSONB, nullable=True),
    sa.Column('created_by', sa.String(length=255), nullable=True),
    sa.Column('published_at', sa.TIMESTAMP(timezone=True), nullable=True),
    sa.Column('published_by', sa.String(length=255), nullable=True),
    sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
    sa.CheckConstraint("category IN ('ANAMNESIS', 'CONSENT', 'TREATMENT', 'CUSTOM')", name='check_form_category'),
    sa.CheckConstraint("status IN ('DRAFT', 'PUBLISHED', 'ARCHIVED')", name='check_form_status'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_form_definitions_id'), 'form_definitions', ['id'], unique=False)
    op.create_index('idx_form_definitions_category_status', 'form_definitions', ['category', 'status'], unique=False)
    op.create_index('idx_form_definitions_active', 'form_definitions', ['category', 'is_active'], unique=False)

    op.create_table('form_translations',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('form_definition_id', sa.Integer(), nullable=False),
    sa.Column('language', sa.String(length=10), nullable=False),
    sa.Column('translations', JSONB, nullable=False),
    sa.Column('created_by', sa.String(length=255), nullable=True),
    sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
    sa.ForeignKeyConstraint(['form_definition_id'], ['form_definitions.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('form_definition_id', 'language', name='uq_form_translation_language')
    )
    op.create_index(op.f('ix_form_translations_id'), 'form_translations', ['id'], unique=False)
    op.create_index('idx_form_translations_language', 'form_translations', ['language'], unique=False)

    op.create_table('patients',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('first_name', sa.String(length=100), nullable=False),
    sa.Column('last_name', sa.String(length=100), nullable=False),
    sa.Column('birth_date', sa.Date(), nullable=False),
    sa.Column('gender', sa.String(length=30), nullable=True),
    sa.Column('email_address', sa.String(length=255), nullable=True),
    sa.Column('phone_number', sa.String(length=50), nullable=True),
    sa.Column('mobile_number', sa.String(length=50), nullable=True),
    sa.Column('street', sa.String(length=255), nullable=True),
    sa.Column('zip_code', sa.String(length=20), nullable=True),
    sa.Column('city', sa.String(length=100), nullable=True),
    sa.Column('country', sa.String(length=100), nullable=True),
    sa.Column('insurance_type', sa.String(length=30), nullable=False),
    sa.Column('insurance_number', sa.String(length=100), nullable=True),
    sa.Column('insurance_company', sa.String(length=255), nullable=True),
    sa.Column('medical_history', sa.Text(), nullable=True),
    sa.Column('allergies', sa.Text(), nullable=True),
    sa.Column('medications', sa.Text(), nullable=True),
    sa.Column('current_complaints', sa.Text(), nullable=True),
    sa.Column('language', sa.String(length=10), nullable=True),
    sa.Column('custom_fields', JSONB, nullable=False),
    sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_patients_id'), 'patients', ['id'], unique=False)
    op.create_index('idx_patients_email', 'patients', ['email_address'], unique=False)
    op.create_index('idx_patients_identity', 'patients', ['first_name', 'last_name', 'birth_date'], unique=False)

    op.create_table('form_submissions',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('form_definition_id', sa.Integer(), nullable=False),
    sa.Column('patient_id', sa.Integer(), nullable=False),
    sa.Column('submission_date', sa.TIMESTAMP(timezone=True), nullable=False),
    sa.Column('form_language', sa.String(length=10), nullable=False),
    sa.Column('form_version', sa.String(length=20), nullable=True),
    sa.Column('form_data_snapshot', JSONB, nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('pdf_file_path', sa.String(length=500), nullable=True),
    sa.Column('pdf_hash', sa.String(length=64), nullable=True),
    sa.Column('pdf_generated_at', sa.TIMESTAMP(timezone=True), nullable=True),
    sa.Column('notes', sa.Text(), nullable=True),
    sa.Column('ip_address', sa.String(length=45), nullable=True),
    sa.Column('user_agent', sa.String(length=500), nullable=True),
    sa.Column('device_type', sa.String(length=20), nullable=True),
    sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
    sa.CheckConstraint(
        "status IN ('SUBMITTED', 'COMPLETED', 'FAILED', 'ARCHIVED')",
        name='check_submission_status'
    ),
    sa.ForeignKeyConstraint(['form_definition_id'], ['form_definitions.id']),
    sa.ForeignKeyConstraint(['patient_id'], ['patients.id']),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_form_submissions_id'), 'form_submissions', ['id'], unique=False)
    op.create_index('idx_form_submissions_patient', 'form_submissions', ['patient_id'], unique=False)
    op.create_index('idx_form_submissions_form', 'form_submissions', ['form_definition_id'], unique=False)

    op.create_table('signatures',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('patient_id', sa.Integer(), nullable=False),
    sa.Column('form_submission_id', sa.Integer(), nullable=True),
    sa.Column('signature_data', sa.LargeBinary(), nullable=False),
    sa.Column('signature_hash', sa.String(length=64), nullable=False),
    sa.Column('mime_type', sa.String(length=50), nullable=False),
    sa.Column('signer_name', sa.String(length=255), nullable=True),
    sa.Column('signature_type', sa.String(length=20), nullable=False),
    sa.Column('document_type', sa.String(length=20), nullable=False),
    sa.Column('field_name', sa.String(length=255), nullable=True),
    sa.Column('signed_at', sa.TIMESTAMP(timezone=True), nullable=False),
    sa.Column('ip_address', sa.String(length=45), nullable=True),
    sa.Column('user_agent', sa.String(length=500), nullable=True),
    sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.ForeignKeyConstraint(['form_submission_id'], ['form_submissions.id']),
    sa.ForeignKeyConstraint(['patient_id'], ['patients.id']),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_signatures_id'), 'signatures', ['id'], unique=False)
    op.create_index('idx_signatures_patient_signed_at', 'signatures', ['patient_id', 'signed_at'], unique=False)

    # Seed the system field types
    field_types = sa.table('field_types',
        sa.column('field_type', sa.String),
        sa.column('canonical_name', sa.String),
        sa.column('display_name_key', sa.String),
        sa.column('category', sa.String),
        sa.column('data_type', sa.String),
        sa.column('is_required', sa.Boolean),
        sa.column('is_system', sa.Boolean),
        sa.column('accepted_aliases', JSONB),
        sa.column('validation_rules', JSONB),
    )
    op.bulk_insert(field_types, [dict(entry) for entry in SYSTEM_FIELD_TYPES])


def downgrade() -> None:
    op.drop_index('idx_signatures_patient_signed_at', table_name='signatures')
    op.drop_index(op.f('ix_signatures_id'), table_name='signatures')
    op.drop_table('signatures')
    op.drop_index('idx_form_submissions_form', table_name='form_submissions')
    op.drop_index('idx_form_submissions_patient', table_name='form_submissions')
    op.drop_index(op.f('ix_form_submissions_id'), table_name='form_submissions')
    op.drop_table('form_submissions')
    op.drop_index('idx_patients_identity', table_name='patients')
    op.drop_index('idx_patients_email', table_name='patients')
    op.drop_index(op.f('ix_patients_id'), table_name='patients')
    op.drop_table('patients')
    op.drop_index('idx_form_translations_language', table_name='form_translations')
    op.drop_index(op.f('ix_form_translations_id'), table_name='form_translations')
    op.drop_table('form_translations')
    op.drop_index('idx_form_definitions_active', table_name='form_definitions')
    op.drop_index('idx_form_definitions_category_status', table_name='form_definitions')
    op.drop_index(op.f('ix_form_definitions_id'), table_name='form_definitions')
    op.drop_table('form_definitions')
    op.drop_index('idx_field_types_required', table_name='field_types')
    op.drop_index('idx_field_types_category', table_name='field_types')
    op.drop_index(op.f('ix_field_types_id'), table_name='field_types')
    op.drop_table('field_types')
