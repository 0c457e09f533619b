"""create hierarchy_metadata and hierarchy_data tables

Revision ID: 3b7e91c4d2a0
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3b7e91c4d2a0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('hierarchy_metadata',
    sa.Column('user_input', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column('project_name', sa.String(), nullable=False),
    sa.Column('version', sa.String(), nullable=False),
    sa.Column('version_number', sa.Integer(), nullable=False),
    sa.Column('status', sa.Enum('in-draft', 'approved', 'archived', name='hierarchy_status'), nullable=False),
    sa.Column('is_active_draft', sa.Boolean(), nullable=False),
    sa.Column('root_hierarchy_id', sa.UUID(), nullable=True),
    sa.Column('user_feedback', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column('has_ma_update', sa.Boolean(), nullable=False),
    sa.Column('last_ma_checked', sa.DateTime(), nullable=True),
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.ForeignKeyConstraint(['root_hierarchy_id'], ['hierarchy_metadata.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_hierarchy_metadata_root_hierarchy_id'), 'hierarchy_metadata', ['root_hierarchy_id'], unique=False)
    # Lookups filter on the identity fields of user_input
    op.execute(
        "CREATE INDEX ix_hierarchy_metadata_company_project "
        "ON hierarchy_metadata ((user_input->>'company'), project_name)"
    )

    op.create_table('hierarchy_data',
    sa.Column('metadata_id', sa.UUID(), nullable=False),
    sa.Column('data', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.Column('updated_at', sa.DateTime(), nullable=False),
    sa.ForeignKeyConstraint(['metadata_id'], ['hierarchy_metadata.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_hierarchy_data_metadata_id'), 'hierarchy_data', ['metadata_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_hierarchy_data_metadata_id'), table_name='hierarchy_data')
    op.drop_table('hierarchy_data')
    op.execute("DROP INDEX IF EXISTS ix_hierarchy_metadata_company_project")
    op.drop_index(op.f('ix_hierarchy_metadata_root_hierarchy_id'), table_name='hierarchy_metadata')
    op.drop_table('hierarchy_metadata')
    sa.Enum(name='hierarchy_status').drop(op.get_bind(), checkfirst=True)
