# app/models/loan.py

from sqlalchemy import CheckConstraint
from sqlmodel import Relationship, SQLModel, Field
from typing import List, Optional
from decimal import Decimal
from datetime import date, datetime

from app.core.config import DEFAULT_CURRENCY
from app.models.enums import LoanStatus, LoanType
from app.utils.dates import utcnow
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.transaction import Transaction

class Loan(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("total_amount > 0", name="ck_loan_total_amount_positive"),
    )
    id: Optional[int] = Field(default=None, primary_key=True)
    type: LoanType
    person: str  # contraparte, texto libre
    total_amount: Decimal = Field(max_digits=14, decimal_places=2)
    # Solo lo escribe reconcile_loan(); nunca se incrementa a mano
    paid_amount: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    currency: str = Field(default=DEFAULT_CURRENCY, max_length=3)
    status: LoanStatus = Field(default=LoanStatus.active, index=True)
    start_date: date = Field(default_factory=date.today)
    due_date: Optional[date] = None
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    transactions: List["Transaction"] = Relationship(back_populates="loan")
