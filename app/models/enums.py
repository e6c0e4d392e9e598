from enum import Enum

class TransactionType(str, Enum):
    income = "income"
    expense = "expense"
    transfer = "transfer"

class LoanType(str, Enum):
    lend = "lend"      # presté: la otra persona me debe
    borrow = "borrow"  # pedí prestado: yo debo

class LoanStatus(str, Enum):
    active = "active"
    settled = "settled"
    bad_debt = "bad_debt"

class LoanLink(str, Enum):
    # Cómo se vincula una transacción a su préstamo. Se fija al crear el vínculo.
    origination = "origination"
    repayment = "repayment"
