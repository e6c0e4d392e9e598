from decimal import Decimal
from sqlmodel import Session, select

from app.core.exceptions import NotFound, ValidationError
from app.models.enums import TransactionType
from app.models.transaction import Transaction
from app.models.wallet import Wallet

def get_wallet(session: Session, wallet_id: int) -> Wallet:
    wallet = session.exec(select(Wallet).where(Wallet.id == wallet_id)).first()
    if not wallet:
        raise NotFound("Billetera", wallet_id)
    return wallet

def update_wallet_balance(session: Session, wallet_id: int, amount_delta: Decimal):
    wallet = get_wallet(session, wallet_id)
    wallet.balance += amount_delta
    session.add(wallet)  # Se requiere para que SQLModel registre el cambio

def apply_transaction(session: Session, tx: Transaction, sign: int = 1):
    """
    Mueve los saldos de las billeteras según la transacción.
    sign=1 aplica el efecto, sign=-1 lo revierte (antes de editar o borrar).
    """
    amount = tx.amount * sign
    if tx.type == TransactionType.income:
        update_wallet_balance(session, tx.wallet_id, amount)
    elif tx.type == TransactionType.expense:
        update_wallet_balance(session, tx.wallet_id, -amount)
    elif tx.type == TransactionType.transfer:
        update_wallet_balance(session, tx.wallet_id, -amount)
        update_wallet_balance(session, tx.to_wallet_id, amount)

def validate_transfer(session: Session, wallet_id: int, to_wallet_id: int | None):
    if to_wallet_id is None:
        raise ValidationError("to_wallet_id", "Una transferencia requiere billetera de destino.")
    if to_wallet_id == wallet_id:
        raise ValidationError("to_wallet_id", "No se puede transferir a la misma billetera.")
    origin = get_wallet(session, wallet_id)
    target = get_wallet(session, to_wallet_id)
    if origin.currency != target.currency:
        raise ValidationError("to_wallet_id", "Monedas distintas entre billeteras.")
