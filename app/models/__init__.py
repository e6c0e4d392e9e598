# Importa todos los modelos para que queden registrados en SQLModel.metadata
from app.models.wallet import Wallet
from app.models.loan import Loan
from app.models.transaction import Transaction

__all__ = ["Wallet", "Loan", "Transaction"]
