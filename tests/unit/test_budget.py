"""Unit tests for the budget aggregator"""

from datetime import date
from billwise.domain.budget import assemble_line_items, compute_totals
from billwise.domain.models import (
    Biller,
    BillerCategory,
    BillerStatus,
    BudgetItem,
    BudgetSetup,
    MatchMethod,
    OwnerKind,
    PaymentSchedule,
    ReconciliationStatus,
    Timing,
    Transaction,
)


def biller(biller_id, name, amount_cents, timing=Timing.FIRST_HALF, **kwargs):
    fields = dict(
        id=biller_id,
        name=name,
        category=BillerCategory.UTILITIES,
        due_day=10,
        expected_amount_cents=amount_cents,
        timing=timing,
        activation_month=1,
        activation_year=2026,
    )
    fields.update(kwargs)
    return Biller(**fields)


def test_billers_filtered_by_timing_status_and_window():
    billers = [
        biller("b1", "Electric", 300_000),
        biller("b2", "Internet", 150_000, timing=Timing.SECOND_HALF),
        biller("b3", "Gym", 200_000, status=BillerStatus.INACTIVE),
        biller("b4", "Insurance", 500_000, activation_month=3),
        biller("b5", "Streaming", 50_000, deactivation_month=1, deactivation_year=2026),
    ]
    items = assemble_line_items(2, 2026, Timing.FIRST_HALF, billers, [], [], [])

    assert [i.obligation.owner_name for i in items] == ["Electric"]


def test_schedule_amount_overrides_biller_amount():
    schedules = [PaymentSchedule(id="s1", month=2, year=2026, expected_amount_cents=320_000, biller_id="b1")]
    items = assemble_line_items(2, 2026, Timing.FIRST_HALF, [biller("b1", "Electric", 300_000)], [], schedules, [])

    assert items[0].expected_amount_cents == 320_000
    assert items[0].obligation.schedule_id == "s1"


def test_installments_default_to_first_half(phone_installment):
    first = assemble_line_items(3, 2026, Timing.FIRST_HALF, [], [phone_installment], [], [])
    second = assemble_line_items(3, 2026, Timing.SECOND_HALF, [], [phone_installment], [], [])

    assert len(first) == 1
    assert first[0].obligation.owner_kind == OwnerKind.INSTALLMENT
    assert first[0].obligation.payment_number == 3
    assert first[0].category == "Installments"
    assert second == []


def test_installment_outside_term_excluded(phone_installment):
    assert assemble_line_items(12, 2025, Timing.FIRST_HALF, [], [phone_installment], [], []) == []
    assert assemble_line_items(1, 2027, Timing.FIRST_HALF, [], [phone_installment], [], []) == []


def test_setup_items_only_when_included():
    setup = BudgetSetup(
        id="setup-1",
        month=2,
        year=2026,
        timing=Timing.FIRST_HALF,
        projected_salary_cents=1_100_000,
        items=[
            BudgetItem(name="Groceries", amount_cents=400_000, category="Purchases"),
            BudgetItem(name="Allowance", amount_cents=100_000, category="Purchases", included=False),
        ],
    )
    items = assemble_line_items(2, 2026, Timing.FIRST_HALF, [], [], [], [], setup=setup)

    assert [i.obligation.owner_name for i in items] == ["Groceries"]
    assert items[0].obligation.owner_kind == OwnerKind.BUDGET_ITEM


def test_line_items_carry_reconciled_status():
    schedules = [PaymentSchedule(id="s1", month=2, year=2026, expected_amount_cents=300_000, biller_id="b1")]
    transactions = [
        Transaction(id="t1", name="Electric", date=date(2026, 2, 3), amount_cents=100_000, payment_schedule_id="s1"),
        Transaction(id="t2", name="Water Co", date=date(2026, 2, 9), amount_cents=80_000),
    ]
    items = assemble_line_items(
        2,
        2026,
        Timing.FIRST_HALF,
        [biller("b1", "Electric", 300_000), biller("b2", "Water", 80_000), biller("b3", "Water Co", 80_000)],
        [],
        schedules,
        transactions,
    )
    by_name = {i.obligation.owner_name: i for i in items}

    assert by_name["Electric"].result.status == ReconciliationStatus.PARTIAL
    assert by_name["Electric"].result.method == MatchMethod.LINKED
    assert by_name["Water"].result.status == ReconciliationStatus.UNPAID
    assert by_name["Water Co"].result.status == ReconciliationStatus.PAID


def test_loans_biller_uses_linked_card_cycle(credit_card):
    card_biller = biller(
        "b-card", "BPI Card", 999_900, category=BillerCategory.LOANS, linked_account_id=credit_card.id
    )
    transactions = [
        Transaction(id="t1", name="Shoes", date=date(2025, 12, 20), amount_cents=250_000, payment_method_id=credit_card.id),
        Transaction(id="t2", name="Dinner", date=date(2026, 1, 8), amount_cents=50_000, payment_method_id=credit_card.id),
    ]
    items = assemble_line_items(1, 2026, Timing.FIRST_HALF, [card_biller], [], [], transactions, [credit_card])

    assert items[0].expected_amount_cents == 300_000
    assert items[0].from_linked_account


def test_loans_biller_without_account_keeps_manual_amount(credit_card):
    card_biller = biller("b-card", "BPI Card", 999_900, category=BillerCategory.LOANS, linked_account_id="missing")
    items = assemble_line_items(1, 2026, Timing.FIRST_HALF, [card_biller], [], [], [], [credit_card])

    assert items[0].expected_amount_cents == 999_900
    assert not items[0].from_linked_account


def test_compute_totals():
    schedules = [PaymentSchedule(id="s1", month=2, year=2026, expected_amount_cents=300_000, biller_id="b1")]
    transactions = [
        Transaction(id="t1", name="Electric", date=date(2026, 2, 3), amount_cents=300_000, payment_schedule_id="s1")
    ]
    items = assemble_line_items(
        2,
        2026,
        Timing.FIRST_HALF,
        [biller("b1", "Electric", 300_000), biller("b2", "Internet", 150_000)],
        [],
        schedules,
        transactions,
    )

    totals = compute_totals(items, projected_salary_cents=1_100_000)
    assert totals.allocated_cents == 450_000
    assert totals.paid_cents == 300_000
    assert totals.income_cents == 1_100_000
    assert totals.remaining_cents == 650_000

    actual = compute_totals(items, projected_salary_cents=1_100_000, actual_salary_cents=1_000_000)
    assert actual.income_cents == 1_000_000
    assert actual.remaining_cents == 550_000
