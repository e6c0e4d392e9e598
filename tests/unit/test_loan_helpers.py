"""Unit tests for loan reconciliation, aggregate positions and loan deletion"""

import logging
import pytest
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from sqlmodel import Session, select

from app.core.exceptions import NotFound, ValidationError
from app.models.enums import LoanLink, LoanStatus, LoanType, TransactionType
from app.models.loan import Loan
from app.models.transaction import Transaction
from app.models.wallet import Wallet
from app.utils.loan_helpers import (
    build_linked_transaction,
    delete_loan,
    derive_status,
    loan_positions,
    loan_progress,
    reconcile_loan,
)


@pytest.fixture
def wallet(session: Session) -> Wallet:
    wallet = Wallet(name="W1", currency="MYR", balance=Decimal("5000"))
    session.add(wallet)
    session.commit()
    session.refresh(wallet)
    return wallet


def _loan(session: Session, type=LoanType.lend, total="1000", status=LoanStatus.active) -> Loan:
    loan = Loan(
        type=type,
        person="Alice",
        total_amount=Decimal(total),
        currency="MYR",
        status=status,
        start_date=date(2026, 1, 10),
    )
    session.add(loan)
    session.commit()
    session.refresh(loan)
    return loan


def _link(session: Session, loan: Loan, wallet: Wallet, link: LoanLink, amount: str) -> Transaction:
    tx = build_linked_transaction(session, loan, wallet, link, Decimal(amount))
    session.add(tx)
    session.flush()
    return tx


def test_origination_does_not_count_as_payment(session: Session, wallet: Wallet):
    loan = _loan(session)
    _link(session, loan, wallet, LoanLink.origination, "1000")

    loan = reconcile_loan(session, loan.id)

    assert loan.paid_amount == Decimal("0")
    assert loan.status == LoanStatus.active


def test_repayments_are_summed_and_settle_the_loan(session: Session, wallet: Wallet):
    loan = _loan(session)
    _link(session, loan, wallet, LoanLink.origination, "1000")
    _link(session, loan, wallet, LoanLink.repayment, "400")
    assert reconcile_loan(session, loan.id).paid_amount == Decimal("400")

    _link(session, loan, wallet, LoanLink.repayment, "600")
    loan = reconcile_loan(session, loan.id)

    assert loan.paid_amount == Decimal("1000")
    assert loan.status == LoanStatus.settled


def test_reconcile_is_idempotent(session: Session, wallet: Wallet):
    loan = _loan(session)
    _link(session, loan, wallet, LoanLink.repayment, "250")
    _link(session, loan, wallet, LoanLink.repayment, "150")

    first = reconcile_loan(session, loan.id).paid_amount
    second = reconcile_loan(session, loan.id).paid_amount

    assert first == second == Decimal("400")


def test_reconcile_recomputes_instead_of_trusting_stored_value(session: Session, wallet: Wallet):
    loan = _loan(session)
    _link(session, loan, wallet, LoanLink.repayment, "300")
    loan.paid_amount = Decimal("999")  # valor desfasado
    session.add(loan)
    session.flush()

    assert reconcile_loan(session, loan.id).paid_amount == Decimal("300")


def test_removing_a_repayment_reverts_settled_to_active(session: Session, wallet: Wallet):
    loan = _loan(session, total="500")
    tx = _link(session, loan, wallet, LoanLink.repayment, "500")
    assert reconcile_loan(session, loan.id).status == LoanStatus.settled

    session.delete(tx)
    loan = reconcile_loan(session, loan.id)

    assert loan.paid_amount == Decimal("0")
    assert loan.status == LoanStatus.active


def test_bad_debt_is_kept_until_fully_repaid(session: Session, wallet: Wallet):
    loan = _loan(session, type=LoanType.borrow, total="500", status=LoanStatus.bad_debt)
    _link(session, loan, wallet, LoanLink.repayment, "200")
    assert reconcile_loan(session, loan.id).status == LoanStatus.bad_debt

    _link(session, loan, wallet, LoanLink.repayment, "300")
    assert reconcile_loan(session, loan.id).status == LoanStatus.settled


def test_overpayment_is_rejected(session: Session, wallet: Wallet):
    loan = _loan(session, total="100")
    _link(session, loan, wallet, LoanLink.repayment, "150")

    with pytest.raises(ValidationError) as exc_info:
        reconcile_loan(session, loan.id)
    assert exc_info.value.field == "amount"


def test_reconcile_unknown_loan_raises_not_found(session: Session):
    with pytest.raises(NotFound):
        reconcile_loan(session, 12345)
    assert session.exec(select(Loan)).all() == []


@pytest.mark.parametrize(
    "current,paid,total,expected",
    [
        (LoanStatus.active, "0", "100", LoanStatus.active),
        (LoanStatus.active, "100", "100", LoanStatus.settled),
        (LoanStatus.settled, "99.99", "100", LoanStatus.active),
        (LoanStatus.bad_debt, "50", "100", LoanStatus.bad_debt),
        (LoanStatus.bad_debt, "100", "100", LoanStatus.settled),
    ],
)
def test_derive_status(current, paid, total, expected):
    assert derive_status(current, Decimal(paid), Decimal(total)) == expected


def test_link_type_must_match_loan_direction(session: Session, wallet: Wallet):
    loan = _loan(session, type=LoanType.lend)
    tx = build_linked_transaction(session, loan, wallet, LoanLink.repayment, Decimal("10"))
    assert tx.type == TransactionType.income

    borrow = _loan(session, type=LoanType.borrow)
    tx = build_linked_transaction(session, borrow, wallet, LoanLink.origination, Decimal("10"))
    assert tx.type == TransactionType.income
    assert tx.description == "Préstamo de Alice"


def test_second_origination_is_rejected(session: Session, wallet: Wallet):
    loan = _loan(session)
    _link(session, loan, wallet, LoanLink.origination, "1000")

    with pytest.raises(ValidationError) as exc_info:
        build_linked_transaction(session, loan, wallet, LoanLink.origination, Decimal("1000"))
    assert exc_info.value.field == "loan_link"


def test_currency_mismatch_is_rejected(session: Session):
    usd = Wallet(name="USD wallet", currency="USD")
    session.add(usd)
    session.commit()
    loan = _loan(session)

    with pytest.raises(ValidationError) as exc_info:
        build_linked_transaction(session, loan, usd, LoanLink.repayment, Decimal("10"))
    assert exc_info.value.field == "wallet_id"


def _plain_loan(type, status, total, paid, id=1):
    return SimpleNamespace(id=id, type=type, status=status, total_amount=total, paid_amount=paid)


def test_positions_of_empty_set_are_zero():
    positions = loan_positions([])
    assert positions == {
        "total_receivable": Decimal("0"),
        "total_payable": Decimal("0"),
        "net_position": Decimal("0"),
    }


def test_positions_exclude_bad_debt_only_from_receivable():
    loans = [
        _plain_loan(LoanType.lend, LoanStatus.active, Decimal("1000"), Decimal("400")),
        _plain_loan(LoanType.lend, LoanStatus.bad_debt, Decimal("300"), Decimal("0")),
        _plain_loan(LoanType.borrow, LoanStatus.active, Decimal("500"), Decimal("100")),
        _plain_loan(LoanType.borrow, LoanStatus.bad_debt, Decimal("200"), Decimal("0")),
    ]

    positions = loan_positions(loans)

    assert positions["total_receivable"] == Decimal("600")
    assert positions["total_payable"] == Decimal("600")
    assert positions["net_position"] == positions["total_receivable"] - positions["total_payable"]


def test_malformed_amounts_count_as_zero_and_warn(caplog):
    loans = [
        _plain_loan(LoanType.lend, LoanStatus.active, "not-a-number", Decimal("0"), id=7),
        _plain_loan(LoanType.lend, LoanStatus.active, Decimal("100"), None, id=8),
    ]

    with caplog.at_level(logging.WARNING, logger="app.utils.loan_helpers"):
        positions = loan_positions(loans)

    assert positions["total_receivable"] == Decimal("100")
    assert any(getattr(record, "loan_id", None) == 7 for record in caplog.records)


def test_progress_is_capped_at_100():
    assert loan_progress(_plain_loan(LoanType.lend, LoanStatus.active, Decimal("200"), Decimal("50"))) == 25.0
    assert loan_progress(_plain_loan(LoanType.lend, LoanStatus.settled, Decimal("200"), Decimal("300"))) == 100.0


def test_delete_loan_unlinks_and_keeps_transactions(session: Session, wallet: Wallet):
    loan = _loan(session)
    _link(session, loan, wallet, LoanLink.origination, "1000")
    _link(session, loan, wallet, LoanLink.repayment, "100")
    session.commit()
    loan_id = loan.id

    unlinked = delete_loan(session, loan_id)
    session.commit()

    transactions = session.exec(select(Transaction)).all()
    assert unlinked == 2
    assert len(transactions) == 2
    assert all(tx.loan_id is None and tx.loan_link is None for tx in transactions)
    assert session.get(Loan, loan_id) is None


def test_delete_unknown_loan_raises_not_found(session: Session):
    with pytest.raises(NotFound):
        delete_loan(session, 999)
