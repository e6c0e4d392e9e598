import datetime as dt
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlmodel import Session, select
from typing import List, Optional

from app.core.exceptions import ValidationError
from app.database import atomic, get_session
from app.models.enums import LoanLink, LoanStatus, LoanType
from app.models.loan import Loan
from app.models.transaction import Transaction
from app.schemas.loan import LoanCreate, LoanDeleted, LoanRead, LoanRepayment, LoanSummary, LoanUpdate
from app.schemas.transaction import TransactionRead
from app.utils.loan_helpers import (
    ZERO,
    build_linked_transaction,
    delete_loan,
    get_loan,
    loan_positions,
    loan_progress,
    outstanding_amount,
    reconcile_loan,
)
from app.utils.wallet_helpers import apply_transaction, get_wallet

router = APIRouter(prefix="/loans", tags=["loans"])


def _loan_read(session: Session, loan: Loan) -> LoanRead:
    tx_count = session.exec(
        select(func.count()).select_from(Transaction).where(Transaction.loan_id == loan.id)
    ).one()

    loan_dict = loan.model_dump()
    loan_dict["remaining_amount"] = max(outstanding_amount(loan), ZERO)
    loan_dict["progress"] = loan_progress(loan)
    loan_dict["transactions_count"] = tx_count or 0
    return LoanRead(**loan_dict)


def _check_dates(start_date: dt.date, due_date: Optional[dt.date]):
    if due_date is not None and due_date < start_date:
        raise ValidationError("due_date", "La fecha de vencimiento no puede ser anterior a la de inicio.")


@router.post("", response_model=LoanRead)
@router.post("/", response_model=LoanRead)
def create_loan(loan_data: LoanCreate, session: Session = Depends(get_session)):
    _check_dates(loan_data.start_date, loan_data.due_date)

    with atomic(session, "crear el préstamo"):
        loan = Loan(**loan_data.model_dump(exclude={"wallet_id"}))
        session.add(loan)
        session.flush()

        # Transacción de origen: el dinero que sale (lend) o entra (borrow) al crear la deuda.
        # No cuenta como pago, así que el préstamo nace con paid_amount=0 y activo.
        if loan_data.wallet_id is not None:
            wallet = get_wallet(session, loan_data.wallet_id)
            origination = build_linked_transaction(
                session,
                loan,
                wallet,
                LoanLink.origination,
                loan.total_amount,
                date=dt.datetime.combine(loan.start_date, dt.time(12, 0, 0)),
            )
            session.add(origination)
            apply_transaction(session, origination)

        reconcile_loan(session, loan.id)

    session.refresh(loan)
    return _loan_read(session, loan)


@router.get("", response_model=List[LoanRead])
@router.get("/", response_model=List[LoanRead])
def list_loans(
    status: Optional[LoanStatus] = Query(None),
    type: Optional[LoanType] = Query(None),
    session: Session = Depends(get_session),
):
    query = select(Loan)
    if status:
        query = query.where(Loan.status == status)
    if type:
        query = query.where(Loan.type == type)

    loans = session.exec(query.order_by(Loan.start_date.desc(), Loan.id.desc())).all()
    return [_loan_read(session, loan) for loan in loans]


@router.get("/summary", response_model=LoanSummary)
def loans_summary(session: Session = Depends(get_session)):
    loans = session.exec(select(Loan)).all()
    return LoanSummary(**loan_positions(loans))


@router.get("/{loan_id}", response_model=LoanRead)
def read_loan(loan_id: int, session: Session = Depends(get_session)):
    return _loan_read(session, get_loan(session, loan_id))


@router.patch("/{loan_id}", response_model=LoanRead)
def update_loan(loan_id: int, loan_data: LoanUpdate, session: Session = Depends(get_session)):
    changes = loan_data.model_dump(exclude_unset=True)

    with atomic(session, "actualizar el préstamo"):
        loan = get_loan(session, loan_id, for_update=True)

        # Campos obligatorios: un null explícito no los borra
        for key in ("person", "total_amount", "start_date"):
            if key in changes and changes[key] is None:
                changes.pop(key)

        new_status = changes.pop("status", None)
        _check_dates(changes.get("start_date", loan.start_date), changes.get("due_date", loan.due_date))

        if new_status == LoanStatus.settled:
            raise ValidationError("status", "El estado 'settled' se calcula a partir de los pagos.")
        if new_status == LoanStatus.bad_debt and loan.status == LoanStatus.settled:
            raise ValidationError("status", "Un préstamo liquidado no puede marcarse como incobrable.")

        for key, value in changes.items():
            setattr(loan, key, value)
        if new_status is not None:
            loan.status = new_status
        session.add(loan)

        reconcile_loan(session, loan.id, field="total_amount" if "total_amount" in changes else "amount")

    session.refresh(loan)
    return _loan_read(session, loan)


@router.delete("/{loan_id}", response_model=LoanDeleted)
def remove_loan(loan_id: int, session: Session = Depends(get_session)):
    with atomic(session, "eliminar el préstamo"):
        unlinked = delete_loan(session, loan_id)

    return LoanDeleted(message="Préstamo eliminado correctamente", unlinked_transactions=unlinked)


@router.get("/{loan_id}/transactions", response_model=List[TransactionRead])
def get_loan_transactions(loan_id: int, session: Session = Depends(get_session)):
    get_loan(session, loan_id)
    return session.exec(
        select(Transaction)
        .where(Transaction.loan_id == loan_id)
        .order_by(Transaction.date.desc(), Transaction.id.desc())
    ).all()


@router.post("/{loan_id}/repay", response_model=TransactionRead)
def repay_loan(loan_id: int, payment: LoanRepayment, session: Session = Depends(get_session)):
    """Registra un cobro (lend) o un pago (borrow) con el tipo que corresponde a la dirección del préstamo."""
    with atomic(session, "registrar el pago"):
        loan = get_loan(session, loan_id, for_update=True)
        wallet = get_wallet(session, payment.wallet_id)

        tx = build_linked_transaction(
            session,
            loan,
            wallet,
            LoanLink.repayment,
            payment.amount,
            date=payment.date,
            description=payment.description,
        )
        session.add(tx)
        apply_transaction(session, tx)

        reconcile_loan(session, loan.id)

    session.refresh(tx)
    return tx
