"""Forward projections: account surplus and installment payoff"""

from datetime import date
from typing import List, Sequence

from billwise.domain.models import (
    Account,
    AccountType,
    Installment,
    InstallmentPayoff,
    PayoffPoint,
    SurplusPoint,
)
from billwise.utils.date_utils import add_months

# Payoff schedules are cut off here
MAX_PAYOFF_MONTHS = 24


def net_balance(accounts: Sequence[Account]) -> int:
    """Debit balances count as money held, credit balances as money owed"""
    return sum(a.balance_cents if a.type == AccountType.DEBIT else -a.balance_cents for a in accounts)


def project_surplus(
    accounts: Sequence[Account],
    monthly_spending_cents: int,
    months: int,
    today: date | None = None,
) -> List[SurplusPoint]:
    """
    Net balance at the end of each of the next `months` months.

    Requirements:
    - Starts from today's net balance across all accounts
    - Every month spends the current monthly budget; no income is assumed

    Example:
        net 50,000.00, spending 20,000.00, 3 months → 30,000, 10,000, -10,000
    """
    if today is None:
        today = date.today()

    start = net_balance(accounts)
    points = []
    for i in range(1, months + 1):
        year, month = add_months(today.year, today.month, i)
        points.append(
            SurplusPoint(
                month=month,
                year=year,
                balance_cents=start - monthly_spending_cents * i,
                spending_cents=monthly_spending_cents,
            )
        )
    return points


def surplus_outlook(points: Sequence[SurplusPoint], monthly_spending_cents: int) -> str:
    """deficit below zero, low when less than a month of spending is left, surplus otherwise"""
    final = points[-1].balance_cents if points else 0
    if final < 0:
        return "deficit"
    if final < monthly_spending_cents:
        return "low"
    return "surplus"


def project_installment_payoff(
    installment: Installment,
    paid_cents: int,
    today: date | None = None,
    max_months: int = MAX_PAYOFF_MONTHS,
) -> InstallmentPayoff:
    """
    Month-by-month payoff of what is still owed on an installment.

    The first projected payment is the one after those already covered by
    `paid_cents`, counted from the start date; without a start date it is
    this month. The last payment only covers the remainder.
    """
    if today is None:
        today = date.today()

    total = installment.total_amount_cents
    remaining = max(total - paid_cents, 0)
    monthly = installment.monthly_amount_cents
    months_remaining = -(-remaining // monthly) if monthly > 0 else 0

    if installment.start_date is not None:
        first_year, first_month = add_months(
            installment.start_date.year, installment.start_date.month, paid_cents // monthly if monthly > 0 else 0
        )
    else:
        first_year, first_month = today.year, today.month

    points = []
    balance = remaining
    for i in range(min(months_remaining, max_months)):
        payment = min(monthly, balance)
        balance -= payment
        year, month = add_months(first_year, first_month, i)
        points.append(
            PayoffPoint(
                month=month,
                year=year,
                payment_cents=payment,
                balance_cents=balance,
                percent_complete=round(100 * (total - balance) / total, 1) if total else 100.0,
            )
        )

    completion_month = completion_year = None
    if months_remaining:
        completion_year, completion_month = add_months(first_year, first_month, months_remaining - 1)

    return InstallmentPayoff(
        installment_id=installment.id,
        name=installment.name,
        remaining_cents=remaining,
        months_remaining=months_remaining,
        completion_month=completion_month,
        completion_year=completion_year,
        points=points,
    )
