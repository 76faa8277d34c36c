"""add_order_to_piedavajumi

Revision ID: 8d41f0a6c2e5
Revises: 3b7e2c91d0a4
Create Date: 2026-10-19 10:31:07.554920

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8d41f0a6c2e5'
down_revision: Union[str, None] = '3b7e2c91d0a4'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column('piedavajumi',
        sa.Column('order', sa.Integer(), nullable=False, server_default='0')
    )

    # Existing offerings keep their creation order: oldest = 0
    op.execute("""
        UPDATE piedavajumi
        SET "order" = subquery.row_num
        FROM (
            SELECT id, ROW_NUMBER() OVER (ORDER BY created_at ASC) - 1 AS row_num
            FROM piedavajumi
        ) AS subquery
        WHERE piedavajumi.id = subquery.id
    """)


def downgrade() -> None:
    op.drop_column('piedavajumi', 'order')
