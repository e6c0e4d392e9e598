# app/models/wallet.py

from sqlmodel import SQLModel, Field
from typing import Optional
from decimal import Decimal
from datetime import datetime

from app.core.config import DEFAULT_CURRENCY
from app.utils.dates import utcnow

class Wallet(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    currency: str = Field(default=DEFAULT_CURRENCY, max_length=3)
    balance: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    created_at: datetime = Field(default_factory=utcnow)
