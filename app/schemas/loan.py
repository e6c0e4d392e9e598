# app/schemas/loan.py

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from decimal import Decimal
from datetime import date, datetime

from app.core.config import DEFAULT_CURRENCY
from app.models.enums import LoanStatus, LoanType

class LoanCreate(BaseModel):
    type: LoanType
    person: str = Field(min_length=1)
    total_amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    currency: str = Field(default=DEFAULT_CURRENCY, pattern=r"^[A-Z]{3}$")
    start_date: date = Field(default_factory=date.today)
    due_date: Optional[date] = None
    description: Optional[str] = None
    # Si viene, se registra la transacción de origen contra esta billetera
    wallet_id: Optional[int] = None

class LoanUpdate(BaseModel):
    person: Optional[str] = Field(default=None, min_length=1)
    total_amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=14, decimal_places=2)
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    description: Optional[str] = None
    status: Optional[LoanStatus] = None

class LoanRead(BaseModel):
    id: int
    type: LoanType
    person: str
    total_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    progress: float  # porcentaje pagado, tope 100
    currency: str
    status: LoanStatus
    start_date: date
    due_date: Optional[date] = None
    description: Optional[str] = None
    created_at: datetime
    transactions_count: int = 0

    model_config = ConfigDict(from_attributes=True)

class LoanRepayment(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    wallet_id: int
    date: Optional[datetime] = None
    description: Optional[str] = None

class LoanSummary(BaseModel):
    total_receivable: Decimal
    total_payable: Decimal
    net_position: Decimal

class LoanDeleted(BaseModel):
    message: str
    unlinked_transactions: int
