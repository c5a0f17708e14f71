"""add_bulletin_table

Revision ID: 9e3a6d41c2b8
Revises: 4c1e8b2f9a7d
Create Date: 2026-10-18 10:22:47.918350

"""
from alembic import op
import sqlalchemy as sa

revision = '9e3a6d41c2b8'
down_revision = '4c1e8b2f9a7d'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'bulletin',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('subject', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=30), nullable=False),
        sa.Column('poster_url', sa.String(length=500), nullable=True),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['app_user.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_bulletin_id'), 'bulletin', ['id'], unique=False)
    op.create_index(op.f('ix_bulletin_category'), 'bulletin', ['category'], unique=False)
    op.create_index(op.f('ix_bulletin_created_at'), 'bulletin', ['created_at'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_bulletin_created_at'), table_name='bulletin')
    op.drop_index(op.f('ix_bulletin_category'), table_name='bulletin')
    op.drop_index(op.f('ix_bulletin_id'), table_name='bulletin')
    op.drop_table('bulletin')
