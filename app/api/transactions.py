from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from app.core.exceptions import NotFound, ValidationError
from app.database import atomic, get_session
from app.models.enums import LoanLink, TransactionType
from app.models.transaction import Transaction
from app.schemas.transaction import TransactionCreate, TransactionPage, TransactionRead, TransactionUpdate
from app.utils.loan_helpers import get_loan, reconcile_loan, validate_loan_link
from app.utils.wallet_helpers import apply_transaction, get_wallet, validate_transfer
from app.utils.dates import utcnow
import datetime as dt
from typing import Optional
from fastapi import Query
from sqlalchemy import func

router = APIRouter(prefix="/transactions", tags=["transactions"])


def get_transaction(session: Session, transaction_id: int, for_update: bool = False) -> Transaction:
    query = select(Transaction).where(Transaction.id == transaction_id)
    if for_update:
        query = query.with_for_update()
    tx = session.exec(query).first()
    if not tx:
        raise NotFound("Transacción", transaction_id)
    return tx


def _to_naive_utc(value: dt.datetime) -> dt.datetime:
    # Si viene con zona horaria (p.ej. ISO con Z), convertir a UTC y quitar tzinfo
    if value.tzinfo is not None:
        return value.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return value


@router.post("", response_model=TransactionRead)
@router.post("/", response_model=TransactionRead)
def create_transaction(
    transaction_data: TransactionCreate,
    session: Session = Depends(get_session),
):
    with atomic(session, "registrar la transacción"):
        wallet = get_wallet(session, transaction_data.wallet_id)

        if transaction_data.type == TransactionType.transfer:
            validate_transfer(session, transaction_data.wallet_id, transaction_data.to_wallet_id)
        elif transaction_data.to_wallet_id is not None:
            raise ValidationError("to_wallet_id", "Solo las transferencias llevan billetera de destino.")

        data = transaction_data.model_dump()
        data["date"] = _to_naive_utc(data["date"]) if data.get("date") else utcnow()
        transaction = Transaction(**data)

        if transaction.loan_id is not None:
            # Sin indicación explícita, una transacción vinculada es un pago
            transaction.loan_link = transaction_data.loan_link or LoanLink.repayment
            loan = get_loan(session, transaction.loan_id, for_update=True)
            validate_loan_link(session, loan, transaction.type, wallet, transaction.loan_link)
        elif transaction_data.loan_link is not None:
            raise ValidationError("loan_link", "loan_link requiere un loan_id.")

        session.add(transaction)
        apply_transaction(session, transaction)

        if transaction.loan_id is not None:
            reconcile_loan(session, transaction.loan_id)

    session.refresh(transaction)
    return transaction


@router.get("", response_model=TransactionPage)
@router.get("/", response_model=TransactionPage)
def list_transactions(
    wallet_id: Optional[int] = Query(None, alias="walletId"),
    loan_id: Optional[int] = Query(None, alias="loanId"),
    type: Optional[TransactionType] = Query(None),
    start_date: Optional[dt.datetime] = Query(None, alias="startDate"),
    end_date: Optional[dt.datetime] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
):
    query = select(Transaction)

    if wallet_id:
        query = query.where((Transaction.wallet_id == wallet_id) | (Transaction.to_wallet_id == wallet_id))
    if loan_id:
        query = query.where(Transaction.loan_id == loan_id)
    if type:
        query = query.where(Transaction.type == type)
    if start_date:
        query = query.where(Transaction.date >= _to_naive_utc(start_date))
    if end_date:
        query = query.where(Transaction.date <= _to_naive_utc(end_date))

    total = session.exec(select(func.count()).select_from(query.subquery())).one()

    transactions = session.exec(
        query.order_by(Transaction.date.desc(), Transaction.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    ).all()

    total_pages = max(1, (total + page_size - 1) // page_size)

    return {
        "items": [TransactionRead.model_validate(t, from_attributes=True) for t in transactions],
        "total": total,
        "page": page,
        "page_size": page_size,
        "totalPages": total_pages,
    }


@router.get("/{transaction_id}", response_model=TransactionRead)
def read_transaction(transaction_id: int, session: Session = Depends(get_session)):
    return get_transaction(session, transaction_id)


@router.patch("/{transaction_id}", response_model=TransactionRead)
def update_transaction(
    transaction_id: int,
    data: TransactionUpdate,
    session: Session = Depends(get_session),
):
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="Nada para actualizar.")

    with atomic(session, "actualizar la transacción"):
        tx = get_transaction(session, transaction_id, for_update=True)
        old_loan_id = tx.loan_id
        new_loan_id = changes["loan_id"] if "loan_id" in changes else old_loan_id

        # Préstamo anterior y nuevo se bloquean antes de validar, siempre en orden de id
        locked = {loan_id: get_loan(session, loan_id, for_update=True)
                  for loan_id in sorted({old_loan_id, new_loan_id} - {None})}

        # Se revierte el efecto en las billeteras y se vuelve a aplicar con los datos nuevos
        apply_transaction(session, tx, sign=-1)

        if changes.get("amount") is not None:
            tx.amount = changes["amount"]
        if "description" in changes:
            tx.description = changes["description"].strip() if changes["description"] else None
        if changes.get("date") is not None:
            tx.date = _to_naive_utc(changes["date"])

        if new_loan_id != old_loan_id:
            if tx.loan_link == LoanLink.origination:
                raise ValidationError("loan_id", "La transacción de origen no puede desvincularse de su préstamo.")

            if new_loan_id is None:
                tx.loan_id = None
                tx.loan_link = None
            else:
                wallet = get_wallet(session, tx.wallet_id)
                validate_loan_link(session, locked[new_loan_id], tx.type, wallet, LoanLink.repayment)
                tx.loan_id = new_loan_id
                tx.loan_link = LoanLink.repayment

        session.add(tx)
        apply_transaction(session, tx)

        for loan_id in sorted(locked):
            reconcile_loan(session, loan_id)

    session.refresh(tx)
    return tx


@router.delete("/{transaction_id}")
def delete_transaction(transaction_id: int, session: Session = Depends(get_session)):
    with atomic(session, "eliminar la transacción"):
        tx = get_transaction(session, transaction_id, for_update=True)
        loan_id = tx.loan_id
        if loan_id is not None:
            get_loan(session, loan_id, for_update=True)

        # Ajuste de balances antes de eliminar
        apply_transaction(session, tx, sign=-1)
        session.delete(tx)

        if loan_id is not None:
            reconcile_loan(session, loan_id)

    return {"message": "Transacción eliminada correctamente"}
