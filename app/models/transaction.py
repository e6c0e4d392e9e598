from sqlalchemy import CheckConstraint
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from decimal import Decimal
from datetime import datetime

from app.models.enums import LoanLink, TransactionType
from app.utils.dates import utcnow

if TYPE_CHECKING:
    from app.models.loan import Loan

class Transaction(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transaction_amount_positive"),
    )
    id: Optional[int] = Field(default=None, primary_key=True)
    type: TransactionType
    amount: Decimal = Field(max_digits=14, decimal_places=2)
    date: datetime = Field(default_factory=utcnow)
    description: Optional[str] = None

    # Billetera donde entra (income) o de donde sale (expense/transfer) el dinero
    wallet_id: int = Field(foreign_key="wallet.id", index=True)
    # Solo en transferencias
    to_wallet_id: Optional[int] = Field(default=None, foreign_key="wallet.id")

    loan_id: Optional[int] = Field(default=None, foreign_key="loan.id", index=True, ondelete="SET NULL")
    loan_link: Optional[LoanLink] = Field(default=None)
    loan: Optional["Loan"] = Relationship(back_populates="transactions")
