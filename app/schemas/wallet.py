# app/schemas/wallet.py

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from decimal import Decimal
from datetime import datetime

from app.core.config import DEFAULT_CURRENCY

class WalletCreate(BaseModel):
    name: str = Field(min_length=1)
    currency: str = Field(default=DEFAULT_CURRENCY, pattern=r"^[A-Z]{3}$")
    balance: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)

class WalletUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)

class WalletRead(WalletCreate):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
