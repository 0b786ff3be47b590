"""campaign_history_synced_at

Revision ID: 9b2e6d1c3a47
Revises: 4f1c2a9d7e10
Create Date: 2026-10-19 15:40:02.513870

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '9b2e6d1c3a47'
down_revision: Union[str, Sequence[str], None] = '4f1c2a9d7e10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Track when a campaign was copied into requirement email history."""
    with op.batch_alter_table('bulk_email_campaigns') as batch_op:
        batch_op.add_column(sa.Column('history_synced_at', sa.DateTime, nullable=True))


def downgrade() -> None:
    with op.batch_alter_table('bulk_email_campaigns') as batch_op:
        batch_op.drop_column('history_synced_at')
