import datetime as dt
import logging
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from sqlmodel import Session, select

from app.core.exceptions import NotFound, ValidationError
from app.models.enums import LoanLink, LoanStatus, LoanType, TransactionType
from app.models.loan import Loan
from app.models.transaction import Transaction
from app.models.wallet import Wallet
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# lend: sale dinero al prestar (expense) y vuelve al cobrar (income).
# borrow: entra dinero al pedir prestado (income) y sale al pagar (expense).
LINK_TRANSACTION_TYPE = {
    (LoanType.lend, LoanLink.origination): TransactionType.expense,
    (LoanType.lend, LoanLink.repayment): TransactionType.income,
    (LoanType.borrow, LoanLink.origination): TransactionType.income,
    (LoanType.borrow, LoanLink.repayment): TransactionType.expense,
}


def get_loan(session: Session, loan_id: int, for_update: bool = False) -> Loan:
    query = select(Loan).where(Loan.id == loan_id)
    if for_update:
        query = query.with_for_update()
    loan = session.exec(query).first()
    if not loan:
        raise NotFound("Préstamo", loan_id)
    return loan


def validate_loan_link(session: Session, loan: Loan, tx_type: TransactionType, wallet: Wallet, link: LoanLink):
    """Comprueba que una transacción pueda vincularse al préstamo con el rol indicado."""
    if tx_type == TransactionType.transfer:
        raise ValidationError("loan_id", "Una transferencia no puede vincularse a un préstamo.")

    expected = LINK_TRANSACTION_TYPE[(LoanType(loan.type), link)]
    if tx_type != expected:
        raise ValidationError(
            "type",
            f"En un préstamo '{LoanType(loan.type).value}' la transacción de {link.value} debe ser '{expected.value}'.",
        )

    if wallet.currency != loan.currency:
        raise ValidationError("wallet_id", "Monedas distintas entre billetera y préstamo.")

    if link == LoanLink.origination:
        existing = session.exec(
            select(Transaction.id).where(
                Transaction.loan_id == loan.id,
                Transaction.loan_link == LoanLink.origination,
            ).limit(1)
        ).first()
        if existing is not None:
            raise ValidationError("loan_link", "El préstamo ya tiene una transacción de origen.")


def build_linked_transaction(
    session: Session,
    loan: Loan,
    wallet: Wallet,
    link: LoanLink,
    amount: Decimal,
    date: Optional[dt.datetime] = None,
    description: Optional[str] = None,
) -> Transaction:
    tx_type = LINK_TRANSACTION_TYPE[(LoanType(loan.type), link)]
    validate_loan_link(session, loan, tx_type, wallet, link)

    if description is None:
        if link == LoanLink.origination:
            prefix = "Préstamo a" if loan.type == LoanType.lend else "Préstamo de"
        else:
            prefix = "Cobro de préstamo:" if loan.type == LoanType.lend else "Pago de préstamo:"
        description = f"{prefix} {loan.person}"

    return Transaction(
        type=tx_type,
        amount=amount,
        wallet_id=wallet.id,
        loan_id=loan.id,
        loan_link=link,
        date=date or utcnow(),
        description=description,
    )


def derive_status(current: LoanStatus, paid: Decimal, total: Decimal) -> LoanStatus:
    # Pagar el total liquida el préstamo, incluso si estaba marcado como incobrable
    if paid >= total:
        return LoanStatus.settled
    if current == LoanStatus.bad_debt:
        return LoanStatus.bad_debt
    return LoanStatus.active


def reconcile_loan(session: Session, loan_id: int, field: str = "amount") -> Loan:
    """
    Recalcula paid_amount y status de un préstamo a partir de TODAS sus
    transacciones vinculadas (nunca de forma incremental).

    Bloquea la fila del préstamo durante la transacción de base de datos en
    curso; el llamador hace commit. Solo suman las transacciones de pago
    (loan_link=repayment), la de origen nunca cuenta.

    Un pago que deje paid_amount por encima de total_amount se rechaza con
    ValidationError sobre `field`.
    """
    loan = get_loan(session, loan_id, for_update=True)

    linked = session.exec(select(Transaction).where(Transaction.loan_id == loan_id)).all()
    paid = sum((tx.amount for tx in linked if tx.loan_link == LoanLink.repayment), ZERO)

    if paid > loan.total_amount:
        raise ValidationError(
            field,
            f"Los pagos ({paid}) superarían el monto total del préstamo ({loan.total_amount}).",
        )

    previous_status = loan.status
    loan.paid_amount = paid
    loan.status = derive_status(loan.status, paid, loan.total_amount)
    session.add(loan)
    session.flush()

    logger.info(
        "Loan reconciled",
        extra={
            "loan_id": loan.id,
            "paid_amount": str(paid),
            "total_amount": str(loan.total_amount),
            "linked_transactions": len(linked),
            "previous_status": LoanStatus(previous_status).value,
            "status": LoanStatus(loan.status).value,
        },
    )
    return loan


def _amount(loan, field: str) -> Decimal:
    value = getattr(loan, field, None)
    if value is None and field == "paid_amount":
        return ZERO
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        amount = None
    if amount is None or not amount.is_finite():
        logger.warning(
            "Malformed loan amount counted as 0",
            extra={"loan_id": getattr(loan, "id", None), "field": field, "value": repr(value)},
        )
        return ZERO
    return amount


def outstanding_amount(loan) -> Decimal:
    return _amount(loan, "total_amount") - _amount(loan, "paid_amount")


def loan_progress(loan) -> float:
    """Porcentaje pagado, con tope en 100."""
    total = _amount(loan, "total_amount")
    if total <= 0:
        return 0.0
    progress = _amount(loan, "paid_amount") / total * 100
    return float(min(Decimal("100"), max(ZERO, progress)).quantize(Decimal("0.01")))


def loan_positions(loans: Iterable[Loan]) -> dict:
    """
    Posición agregada de todos los préstamos:
      total_receivable: lo que me deben (lend, sin contar incobrables)
      total_payable: lo que debo (borrow, cualquier estado)
      net_position: total_receivable - total_payable
    """
    total_receivable = ZERO
    total_payable = ZERO

    for loan in loans:
        if loan.type == LoanType.lend and loan.status != LoanStatus.bad_debt:
            total_receivable += outstanding_amount(loan)
        elif loan.type == LoanType.borrow:
            total_payable += outstanding_amount(loan)

    return {
        "total_receivable": total_receivable,
        "total_payable": total_payable,
        "net_position": total_receivable - total_payable,
    }


def delete_loan(session: Session, loan_id: int) -> int:
    """
    Desvincula (no borra) las transacciones del préstamo y luego lo elimina.
    No hace commit: el llamador confirma ambas cosas en una sola transacción.
    Devuelve cuántas transacciones quedaron desvinculadas.
    """
    loan = get_loan(session, loan_id, for_update=True)

    linked = session.exec(select(Transaction).where(Transaction.loan_id == loan_id)).all()
    for tx in linked:
        tx.loan_id = None
        tx.loan_link = None
        session.add(tx)
    session.flush()

    session.delete(loan)
    session.flush()

    logger.info("Loan deleted", extra={"loan_id": loan_id, "unlinked_transactions": len(linked)})
    return len(linked)
