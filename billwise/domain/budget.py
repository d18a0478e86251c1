"""Budget aggregation - assembles a half-month budget and its paid status"""

from typing import Dict, List, Optional, Sequence, Tuple

from billwise.domain.billing_cycles import linked_account_amount, uses_linked_account
from billwise.domain.models import (
    Account,
    Biller,
    BillerStatus,
    BudgetSetup,
    BudgetTotals,
    Installment,
    LineItem,
    Obligation,
    OwnerKind,
    PaymentSchedule,
    Timing,
    Transaction,
)
from billwise.domain.reconciliation import reconcile_batch
from billwise.domain.schedules import biller_active_in, installment_payment_number


def _index_schedules(schedules: Sequence[PaymentSchedule]) -> Dict[Tuple[str, int, int], PaymentSchedule]:
    return {(s.owner_id, s.month, s.year): s for s in schedules if s.owner_id}


def assemble_line_items(
    month: int,
    year: int,
    timing: Timing,
    billers: Sequence[Biller],
    installments: Sequence[Installment],
    schedules: Sequence[PaymentSchedule],
    transactions: Sequence[Transaction],
    accounts: Sequence[Account] = (),
    setup: Optional[BudgetSetup] = None,
) -> List[LineItem]:
    """
    Build the line items shown for one (month, year, timing) period.

    Included:
    - Active billers budgeted in this half whose activation window covers the month
    - Installments whose derived schedule has a payment this month
      (installments without timing belong to the first half)
    - Included manual items from the saved budget setup

    Every item is reconciled in one batch so a transaction can't settle two rows.
    """
    by_period = _index_schedules(schedules)
    accounts_by_id = {a.id: a for a in accounts}

    rows: List[Tuple[Obligation, str, bool]] = []

    for biller in billers:
        if biller.status != BillerStatus.ACTIVE or biller.timing != timing:
            continue
        if not biller_active_in(biller, month, year):
            continue

        schedule = by_period.get((biller.id, month, year))
        expected = schedule.expected_amount_cents if schedule else biller.expected_amount_cents
        from_linked = False

        if uses_linked_account(biller):
            amount = linked_account_amount(
                biller, accounts_by_id.get(biller.linked_account_id), month, year, transactions
            )
            if amount is not None:
                expected, from_linked = amount, True

        obligation = Obligation(
            owner_kind=OwnerKind.BILLER,
            owner_id=biller.id,
            owner_name=biller.name,
            expected_amount_cents=expected,
            month=month,
            year=year,
            schedule_id=schedule.id if schedule else None,
        )
        rows.append((obligation, biller.category.value, from_linked))

    for installment in installments:
        if (installment.timing or Timing.FIRST_HALF) != timing:
            continue
        number = installment_payment_number(installment, month, year)
        if number is None:
            continue

        schedule = by_period.get((installment.id, month, year))
        obligation = Obligation(
            owner_kind=OwnerKind.INSTALLMENT,
            owner_id=installment.id,
            owner_name=installment.name,
            expected_amount_cents=schedule.expected_amount_cents if schedule else installment.monthly_amount_cents,
            month=month,
            year=year,
            schedule_id=schedule.id if schedule else None,
            payment_number=number,
        )
        rows.append((obligation, "Installments", False))

    if setup is not None:
        for position, item in enumerate(setup.items):
            if not item.included:
                continue
            obligation = Obligation(
                owner_kind=OwnerKind.BUDGET_ITEM,
                owner_id=f"{setup.id or 'setup'}:{position}",
                owner_name=item.name,
                expected_amount_cents=item.amount_cents,
                month=month,
                year=year,
            )
            rows.append((obligation, item.category, False))

    schedules_by_id = {s.id: s for s in schedules if s.id}
    results = reconcile_batch([row[0] for row in rows], transactions, schedules_by_id)

    return [
        LineItem(
            obligation=obligation,
            category=category,
            expected_amount_cents=obligation.expected_amount_cents,
            result=result,
            from_linked_account=from_linked,
        )
        for (obligation, category, from_linked), result in zip(rows, results)
    ]


def compute_totals(
    line_items: Sequence[LineItem],
    projected_salary_cents: int,
    actual_salary_cents: Optional[int] = None,
) -> BudgetTotals:
    """Allocated vs paid, and what's left of this period's income"""
    allocated = sum(item.expected_amount_cents for item in line_items)
    paid = sum(item.paid_amount_cents for item in line_items)
    income = actual_salary_cents if actual_salary_cents is not None else projected_salary_cents

    return BudgetTotals(
        allocated_cents=allocated,
        paid_cents=paid,
        income_cents=income,
        remaining_cents=income - allocated,
    )
