"""create wallet, loan and transaction tables

Revision ID: 5b2e0d7c41a9
Revises:
Create Date: 2026-01-14 10:12:37.412905

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b2e0d7c41a9'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        'wallet',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='MYR'),
        sa.Column('balance', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_wallet_name', 'wallet', ['name'], unique=True)

    op.create_table(
        'loan',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('type', sa.Enum('lend', 'borrow', name='loantype'), nullable=False),
        sa.Column('person', sa.String(), nullable=False),
        sa.Column('total_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('paid_amount', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='MYR'),
        sa.Column('status', sa.Enum('active', 'settled', 'bad_debt', name='loanstatus'), nullable=False, server_default='active'),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('total_amount > 0', name='ck_loan_total_amount_positive'),
    )
    op.create_index('ix_loan_status', 'loan', ['status'])

    op.create_table(
        'transaction',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('type', sa.Enum('income', 'expense', 'transfer', name='transactiontype'), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('wallet_id', sa.Integer(), sa.ForeignKey('wallet.id'), nullable=False),
        sa.Column('to_wallet_id', sa.Integer(), sa.ForeignKey('wallet.id'), nullable=True),
        # Borrar un préstamo nunca borra sus transacciones, solo las desvincula
        sa.Column(
            'loan_id',
            sa.Integer(),
            sa.ForeignKey('loan.id', name='fk_transaction_loan_id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.CheckConstraint('amount > 0', name='ck_transaction_amount_positive'),
    )
    op.create_index('ix_transaction_wallet_id', 'transaction', ['wallet_id'])
    op.create_index('ix_transaction_loan_id', 'transaction', ['loan_id'])


def downgrade():
    op.drop_table('transaction')
    op.drop_table('loan')
    op.drop_table('wallet')
    # Solo PostgreSQL crea tipos ENUM propios
    if op.get_bind().dialect.name == 'postgresql':
        op.execute('DROP TYPE IF EXISTS transactiontype')
        op.execute('DROP TYPE IF EXISTS loanstatus')
        op.execute('DROP TYPE IF EXISTS loantype')
