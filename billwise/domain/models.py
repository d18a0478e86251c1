"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional


class AccountClassification(str, Enum):
    CHECKING = "Checking"
    SAVINGS = "Savings"
    CREDIT_CARD = "Credit Card"
    LOAN = "Loan"
    INVESTMENT = "Investment"


class AccountType(str, Enum):
    DEBIT = "Debit"
    CREDIT = "Credit"


class Timing(str, Enum):
    """Half of the month a bill is budgeted against"""

    FIRST_HALF = "1/2"
    SECOND_HALF = "2/2"


class BillerCategory(str, Enum):
    FIXED = "Fixed"
    UTILITIES = "Utilities"
    LOANS = "Loans"
    SUBSCRIPTIONS = "Subscriptions"
    PURCHASES = "Purchases"


class BillerStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ScheduleStatus(str, Enum):
    """Persisted status of a payment schedule row"""

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"


class ReconciliationStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class MatchMethod(str, Enum):
    LINKED = "linked"  # payment_schedule_id foreign key
    FUZZY = "fuzzy"  # name/amount/date heuristic
    MANUAL = "manual"  # persisted amount_paid override
    NONE = "none"


class OwnerKind(str, Enum):
    BILLER = "biller"
    INSTALLMENT = "installment"
    BUDGET_ITEM = "budget_item"


@dataclass
class Account:
    """Bank account, credit card or loan"""

    id: str
    bank: str
    classification: AccountClassification
    balance_cents: int
    type: AccountType
    credit_limit_cents: Optional[int] = None
    billing_date: Optional[date] = None
    due_date: Optional[date] = None

    @property
    def billing_day(self) -> Optional[int]:
        return self.billing_date.day if self.billing_date else None


@dataclass
class Biller:
    """Recurring monthly bill"""

    id: str
    name: str
    category: BillerCategory
    due_day: int
    expected_amount_cents: int
    timing: Timing
    activation_month: int
    activation_year: int
    status: BillerStatus = BillerStatus.ACTIVE
    deactivation_month: Optional[int] = None
    deactivation_year: Optional[int] = None
    linked_account_id: Optional[str] = None


@dataclass
class Installment:
    """Fixed-term loan paid in equal monthly amounts"""

    id: str
    name: str
    total_amount_cents: int
    monthly_amount_cents: int
    term_months: int
    paid_amount_cents: int = 0  # paid before tracking started
    account_id: Optional[str] = None
    start_date: Optional[date] = None
    timing: Optional[Timing] = None


@dataclass
class PaymentSchedule:
    """One month's instance of a biller's or installment's obligation"""

    id: Optional[str]
    month: int
    year: int
    expected_amount_cents: int
    biller_id: Optional[str] = None
    installment_id: Optional[str] = None
    payment_number: Optional[int] = None
    amount_paid_cents: Optional[int] = None
    date_paid: Optional[date] = None
    account_id: Optional[str] = None
    receipt: Optional[str] = None
    status: ScheduleStatus = ScheduleStatus.PENDING

    @property
    def owner_id(self) -> Optional[str]:
        return self.biller_id or self.installment_id


@dataclass
class Transaction:
    """
    Ledger entry.

    Sign convention: positive amount = money out, negative = money in.
    """

    id: str
    name: str
    date: Optional[date]
    amount_cents: int
    payment_method_id: Optional[str] = None
    payment_schedule_id: Optional[str] = None


@dataclass
class SavingsJar:
    id: str
    name: str
    account_id: str
    current_balance_cents: int = 0


@dataclass
class BudgetItem:
    """Manual line in a budget setup (groceries, allowance, ...)"""

    name: str
    amount_cents: int
    category: str
    included: bool = True


@dataclass
class BudgetSetup:
    """Saved budget for one half-month period"""

    id: Optional[str]
    month: int
    year: int
    timing: Timing
    projected_salary_cents: int
    actual_salary_cents: Optional[int] = None
    status: str = "Saved"
    items: List[BudgetItem] = field(default_factory=list)


@dataclass(frozen=True)
class Obligation:
    """A single biller-month, installment payment number, or budget item to reconcile"""

    owner_kind: OwnerKind
    owner_id: str
    owner_name: str
    expected_amount_cents: int
    month: int
    year: int
    schedule_id: Optional[str] = None
    payment_number: Optional[int] = None


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of reconciling one obligation against the transaction list"""

    status: ReconciliationStatus
    paid_amount_cents: int
    method: MatchMethod
    matched_transaction_id: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.status == ReconciliationStatus.PAID

    @property
    def is_partial(self) -> bool:
        return self.status == ReconciliationStatus.PARTIAL

    @property
    def has_payment(self) -> bool:
        """Coarse checkmark: paid or partially paid"""
        return self.status != ReconciliationStatus.UNPAID


@dataclass(frozen=True)
class BillingCycle:
    """Credit card statement period, both ends inclusive"""

    start_date: date
    end_date: date

    @property
    def label(self) -> str:
        return f"{self.start_date:%b} {self.start_date.day} - {self.end_date:%b} {self.end_date.day}, {self.end_date.year}"


@dataclass
class CycleSummary:
    account_id: str
    cycle: BillingCycle
    total_amount_cents: int
    transactions: List[Transaction]


@dataclass
class LineItem:
    """Budget row with its computed payment status"""

    obligation: Obligation
    category: str
    expected_amount_cents: int
    result: ReconciliationResult
    from_linked_account: bool = False

    @property
    def paid_amount_cents(self) -> int:
        return self.result.paid_amount_cents


@dataclass
class BudgetTotals:
    allocated_cents: int
    paid_cents: int
    income_cents: int
    remaining_cents: int


@dataclass(frozen=True)
class SurplusPoint:
    """Projected net balance at the end of a future month"""

    month: int
    year: int
    balance_cents: int
    spending_cents: int


@dataclass(frozen=True)
class PayoffPoint:
    month: int
    year: int
    payment_cents: int
    balance_cents: int  # left to pay after this payment
    percent_complete: float


@dataclass
class InstallmentPayoff:
    """Remaining payments of an installment, month by month"""

    installment_id: str
    name: str
    remaining_cents: int
    months_remaining: int
    completion_month: Optional[int]
    completion_year: Optional[int]
    points: List[PayoffPoint]
