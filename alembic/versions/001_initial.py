"""Initial relay schema

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create webhooks table
    op.create_table(
        'webhooks',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('owner_id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('token', sa.String(length=32), nullable=False),
        sa.Column('latest_payload', postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('owner_id', 'token', name='uq_webhooks_owner_token')
    )
    op.create_index(op.f('ix_webhooks_owner_id'), 'webhooks', ['owner_id'], unique=False)

    # Create destinations table
    op.create_table(
        'destinations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('webhook_id', sa.String(length=36), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('config', postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['webhook_id'], ['webhooks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_destinations_webhook_id'), 'destinations', ['webhook_id'], unique=False)

    # Create field_mappings table
    op.create_table(
        'field_mappings',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('destination_id', sa.String(length=36), nullable=False),
        sa.Column('source_field', sa.String(), nullable=False),
        sa.Column('target_field', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['destination_id'], ['destinations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_field_mappings_destination_id'), 'field_mappings', ['destination_id'], unique=False)

    # Create delivery_logs table (no foreign keys: logs outlive destinations)
    op.create_table(
        'delivery_logs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('webhook_id', sa.String(length=36), nullable=False),
        sa.Column('destination_id', sa.String(length=36), nullable=True),
        sa.Column('payload', postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('retry_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_delivery_logs_webhook_id'), 'delivery_logs', ['webhook_id'], unique=False)
    op.create_index(op.f('ix_delivery_logs_destination_id'), 'delivery_logs', ['destination_id'], unique=False)
    op.create_index(op.f('ix_delivery_logs_created_at'), 'delivery_logs', ['created_at'], unique=False)

    # Create provider_credentials table
    op.create_table(
        'provider_credentials',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('owner_id', sa.String(), nullable=False),
        sa.Column('provider', sa.String(), nullable=False, server_default='google'),
        sa.Column('access_token', sa.Text(), nullable=False),
        sa.Column('refresh_token', sa.Text(), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('owner_id', 'provider', name='uq_provider_credentials_owner_provider')
    )
    op.create_index(op.f('ix_provider_credentials_owner_id'), 'provider_credentials', ['owner_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_provider_credentials_owner_id'), table_name='provider_credentials')
    op.drop_table('provider_credentials')
    op.drop_index(op.f('ix_delivery_logs_created_at'), table_name='delivery_logs')
    op.drop_index(op.f('ix_delivery_logs_destination_id'), table_name='delivery_logs')
    op.drop_index(op.f('ix_delivery_logs_webhook_id'), table_name='delivery_logs')
    op.drop_table('delivery_logs')
    op.drop_index(op.f('ix_field_mappings_destination_id'), table_name='field_mappings')
    op.drop_table('field_mappings')
    op.drop_index(op.f('ix_destinations_webhook_id'), table_name='destinations')
    op.drop_table('destinations')
    op.drop_index(op.f('ix_webhooks_owner_id'), table_name='webhooks')
    op.drop_table('webhooks')
