from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from app.models.enums import LoanLink, TransactionType

class TransactionCreate(BaseModel):
    type: TransactionType
    amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    wallet_id: int
    to_wallet_id: Optional[int] = None
    loan_id: Optional[int] = None
    # Rol en el préstamo; por defecto repayment cuando hay loan_id
    loan_link: Optional[LoanLink] = None
    description: Optional[str] = None
    date: Optional[datetime] = None

class TransactionUpdate(BaseModel):
    # loan_id: null desvincula; ausente no toca el vínculo
    amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=14, decimal_places=2)
    description: Optional[str] = None
    date: Optional[datetime] = None
    loan_id: Optional[int] = None

class TransactionRead(BaseModel):
    id: int
    type: TransactionType
    amount: Decimal
    wallet_id: int
    to_wallet_id: Optional[int] = None
    loan_id: Optional[int] = None
    loan_link: Optional[LoanLink] = None
    description: Optional[str] = None
    date: datetime

    model_config = ConfigDict(from_attributes=True)

class TransactionPage(BaseModel):
    items: List[TransactionRead]
    total: int
    page: int
    page_size: int
    totalPages: int
