"""Credit card billing cycles and cycle-based aggregation"""

from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence

from billwise.domain.models import (
    Account,
    AccountType,
    Biller,
    BillerCategory,
    BillingCycle,
    CycleSummary,
    Transaction,
)
from billwise.utils.date_utils import add_months, clamp_day, coerce_date


def cycle_starting_in(billing_day: int, month: int, year: int) -> BillingCycle:
    """Cycle that opens on the billing day of the given month"""
    start = clamp_day(year, month, billing_day)
    next_year, next_month = add_months(year, month, 1)
    end = clamp_day(next_year, next_month, billing_day) - timedelta(days=1)
    return BillingCycle(start_date=start, end_date=end)


def billing_cycle_for_month(billing_day: int, month: int, year: int) -> Optional[BillingCycle]:
    """
    The cycle attributed to a calendar month.

    A cycle belongs to the month its end date falls in, so with billing day 12
    January is Dec 12 to Jan 11. With billing day 1 the cycle ends on the last
    day of its own month.
    """
    if not 1 <= billing_day <= 31:
        return None

    prev_year, prev_month = add_months(year, month, -1)
    for candidate in (cycle_starting_in(billing_day, prev_month, prev_year), cycle_starting_in(billing_day, month, year)):
        if candidate.end_date.month == month and candidate.end_date.year == year:
            return candidate
    return None


def recent_cycles(billing_day: int, count: int = 6, today: date | None = None) -> List[BillingCycle]:
    """Statement cycles, oldest first, ending with the cycle that contains today"""
    if today is None:
        today = date.today()
    if not 1 <= billing_day <= 31 or count <= 0:
        return []

    current = cycle_starting_in(billing_day, today.month, today.year)
    if today < current.start_date:
        year, month = add_months(today.year, today.month, -1)
        current = cycle_starting_in(billing_day, month, year)

    cycles = []
    for i in range(count - 1, -1, -1):
        year, month = add_months(current.start_date.year, current.start_date.month, -i)
        cycles.append(cycle_starting_in(billing_day, month, year))
    return cycles


def in_cycle(transaction: Transaction, cycle: BillingCycle) -> bool:
    tx_date = coerce_date(transaction.date)
    return tx_date is not None and cycle.start_date <= tx_date <= cycle.end_date


def aggregate_cycle(
    account_id: str,
    cycle: BillingCycle,
    transactions: Sequence[Transaction],
    exclude_names: Iterable[str] = (),
) -> CycleSummary:
    """Total an account's transactions inside one cycle, skipping excluded names (installments)"""
    excluded = {name.lower() for name in exclude_names}
    cycle_txs = [
        t
        for t in transactions
        if t.payment_method_id == account_id and in_cycle(t, cycle) and t.name.lower() not in excluded
    ]
    return CycleSummary(
        account_id=account_id,
        cycle=cycle,
        total_amount_cents=sum(t.amount_cents for t in cycle_txs),
        transactions=cycle_txs,
    )


def uses_linked_account(biller: Biller) -> bool:
    return biller.category == BillerCategory.LOANS and bool(biller.linked_account_id)


def linked_account_amount(
    biller: Biller,
    account: Optional[Account],
    month: int,
    year: int,
    transactions: Sequence[Transaction],
) -> Optional[int]:
    """
    Expected amount of a Loans biller taken from its linked credit card cycle.

    Returns None whenever the amount can't be derived (no link, not a credit
    account, no billing date); callers fall back to the manual amount.
    """
    if not uses_linked_account(biller) or account is None:
        return None
    if account.id != biller.linked_account_id or account.type != AccountType.CREDIT:
        return None
    if account.billing_day is None:
        return None

    cycle = billing_cycle_for_month(account.billing_day, month, year)
    if cycle is None:
        return None

    return aggregate_cycle(account.id, cycle, transactions).total_amount_cents
