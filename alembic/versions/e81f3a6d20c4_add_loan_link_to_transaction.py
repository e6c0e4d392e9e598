"""add loan_link to transaction

Revision ID: e81f3a6d20c4
Revises: 5b2e0d7c41a9
Create Date: 2026-02-03 18:47:05.118230

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'e81f3a6d20c4'
down_revision: Union[str, Sequence[str], None] = '5b2e0d7c41a9'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


loanlink = sa.Enum('origination', 'repayment', name='loanlink')


def upgrade():
    loanlink.create(op.get_bind(), checkfirst=True)
    op.add_column('transaction', sa.Column('loan_link', loanlink, nullable=True))
    # Las transacciones ya vinculadas se consideran pagos; la de origen se marca a mano
    op.execute("UPDATE \"transaction\" SET loan_link = 'repayment' WHERE loan_id IS NOT NULL")

def downgrade():
    op.drop_column('transaction', 'loan_link')
    loanlink.drop(op.get_bind(), checkfirst=True)
