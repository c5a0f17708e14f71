"""create_band_office_tables

Revision ID: 4c1e8b2f9a7d
Revises: 
Create Date: 2026-10-12 14:05:31.402117

"""
from alembic import op
import sqlalchemy as sa

revision = '4c1e8b2f9a7d'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'app_user',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('department', sa.String(length=30), nullable=False),
        sa.Column('role', sa.String(length=30), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_app_user_id'), 'app_user', ['id'], unique=False)
    op.create_index(op.f('ix_app_user_email'), 'app_user', ['email'], unique=True)

    op.create_table(
        'signup_form',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('portal_form_id', sa.String(), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('deadline', sa.DateTime(timezone=True), nullable=True),
        sa.Column('max_entries', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('category', sa.String(length=30), nullable=False),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['created_by'], ['app_user.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_signup_form_id'), 'signup_form', ['id'], unique=False)
    op.create_index(op.f('ix_signup_form_portal_form_id'), 'signup_form', ['portal_form_id'], unique=True)

    op.create_table(
        'form_field',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('form_id', sa.String(), nullable=False),
        sa.Column('field_id', sa.String(length=100), nullable=True),
        sa.Column('label', sa.String(length=200), nullable=False),
        sa.Column('field_type', sa.String(length=20), nullable=False),
        sa.Column('required', sa.Boolean(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('options', sa.JSON(), nullable=True),
        sa.Column('placeholder', sa.String(length=200), nullable=True),
        sa.ForeignKeyConstraint(['form_id'], ['signup_form.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_form_field_id'), 'form_field', ['id'], unique=False)
    op.create_index(op.f('ix_form_field_form_id'), 'form_field', ['form_id'], unique=False)

    op.create_table(
        'form_submission',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('form_id', sa.String(), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('responses', sa.JSON(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('dedupe_key', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.ForeignKeyConstraint(['form_id'], ['signup_form.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('form_id', 'dedupe_key', name='ux_form_submission_dedupe'),
    )
    op.create_index(op.f('ix_form_submission_id'), 'form_submission', ['id'], unique=False)
    op.create_index(op.f('ix_form_submission_form_id'), 'form_submission', ['form_id'], unique=False)
    op.create_index(op.f('ix_form_submission_submitted_at'), 'form_submission', ['submitted_at'], unique=False)

    for table, extra in (('sms_log', []), ('email_log', [sa.Column('subject', sa.String(length=300), nullable=False)])):
        op.create_table(
            table,
            sa.Column('id', sa.String(), nullable=False),
            *extra,
            sa.Column('message', sa.Text(), nullable=False),
            sa.Column('recipients', sa.JSON(), nullable=False),
            sa.Column('status', sa.String(length=20), nullable=False),
            sa.Column('message_ids', sa.JSON(), nullable=False),
            sa.Column('error', sa.Text(), nullable=True),
            sa.Column('user_id', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
            sa.ForeignKeyConstraint(['user_id'], ['app_user.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index(op.f(f'ix_{table}_id'), table, ['id'], unique=False)
        op.create_index(op.f(f'ix_{table}_status'), table, ['status'], unique=False)
        op.create_index(op.f(f'ix_{table}_created_at'), table, ['created_at'], unique=False)

    op.create_table(
        'activity_log',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.String(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['app_user.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_activity_log_action'), 'activity_log', ['action'], unique=False)
    op.create_index('ix_activity_log_entity', 'activity_log', ['entity_type', 'entity_id'], unique=False)
    op.create_index(op.f('ix_activity_log_created_at'), 'activity_log', ['created_at'], unique=False)


def downgrade() -> None:
    op.drop_table('activity_log')
    op.drop_table('email_log')
    op.drop_table('sms_log')
    op.drop_table('form_submission')
    op.drop_table('form_field')
    op.drop_table('signup_form')
    op.drop_index(op.f('ix_app_user_email'), table_name='app_user')
    op.drop_index(op.f('ix_app_user_id'), table_name='app_user')
    op.drop_table('app_user')
