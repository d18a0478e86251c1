"""Unit tests for credit card billing cycles"""

from dataclasses import replace
from datetime import date
from billwise.domain.models import AccountType, Biller, BillerCategory, BillingCycle, Timing, Transaction
from billwise.domain.billing_cycles import (
    aggregate_cycle,
    billing_cycle_for_month,
    cycle_starting_in,
    linked_account_amount,
    recent_cycles,
    uses_linked_account,
)


def card_tx(tx_id, when, amount_cents, account_id="acct-card", name="Purchase"):
    return Transaction(id=tx_id, name=name, date=when, amount_cents=amount_cents, payment_method_id=account_id)


def loan_biller(account_id="acct-card"):
    return Biller(
        id="biller-card",
        name="BPI Card",
        category=BillerCategory.LOANS,
        due_day=5,
        expected_amount_cents=999_900,
        timing=Timing.FIRST_HALF,
        activation_month=1,
        activation_year=2026,
        linked_account_id=account_id,
    )


def test_cycle_starting_in():
    cycle = cycle_starting_in(12, 12, 2025)
    assert cycle.start_date == date(2025, 12, 12)
    assert cycle.end_date == date(2026, 1, 11)


def test_cycle_attributed_to_end_month():
    """Billing day 12: January is Dec 12 - Jan 11"""
    cycle = billing_cycle_for_month(12, 1, 2026)
    assert cycle.start_date == date(2025, 12, 12)
    assert cycle.end_date == date(2026, 1, 11)


def test_december_purchase_lands_in_january_cycle():
    """A transaction inside [Dec 13 - Jan 11] belongs to January, not December"""
    january = billing_cycle_for_month(12, 1, 2026)
    december = billing_cycle_for_month(12, 12, 2025)
    purchase = card_tx("t1", date(2025, 12, 20), 50_000)

    assert aggregate_cycle("acct-card", january, [purchase]).total_amount_cents == 50_000
    assert aggregate_cycle("acct-card", december, [purchase]).total_amount_cents == 0


def test_billing_day_one_ends_in_own_month():
    cycle = billing_cycle_for_month(1, 3, 2026)
    assert cycle.start_date == date(2026, 3, 1)
    assert cycle.end_date == date(2026, 3, 31)


def test_billing_day_clamped_to_short_months():
    cycle = billing_cycle_for_month(31, 3, 2026)
    assert cycle.start_date == date(2026, 2, 28)
    assert cycle.end_date == date(2026, 3, 30)


def test_invalid_billing_day():
    assert billing_cycle_for_month(0, 1, 2026) is None
    assert billing_cycle_for_month(32, 1, 2026) is None


def test_recent_cycles_end_with_current():
    cycles = recent_cycles(12, count=3, today=date(2026, 3, 5))

    assert len(cycles) == 3
    assert cycles[-1].start_date == date(2026, 2, 12)
    assert cycles[-1].end_date == date(2026, 3, 11)
    assert cycles[0].start_date == date(2025, 12, 12)


def test_aggregate_cycle_filters_account_and_names():
    cycle = billing_cycle_for_month(12, 1, 2026)
    transactions = [
        card_tx("t1", date(2025, 12, 15), 10_000),
        card_tx("t2", date(2026, 1, 11), 20_000),
        card_tx("t3", date(2026, 1, 12), 40_000),  # next cycle
        card_tx("t4", date(2025, 12, 20), 80_000, account_id="acct-other"),
        card_tx("t5", date(2025, 12, 22), 5_000, name="Phone"),
    ]
    summary = aggregate_cycle("acct-card", cycle, transactions, exclude_names=["phone"])

    assert summary.total_amount_cents == 30_000
    assert [t.id for t in summary.transactions] == ["t1", "t2"]


def test_linked_account_amount_uses_cycle_total(credit_card):
    transactions = [card_tx("t1", date(2025, 12, 15), 10_000), card_tx("t2", date(2026, 1, 2), 15_000)]
    assert linked_account_amount(loan_biller(), credit_card, 1, 2026, transactions) == 25_000


def test_linked_account_amount_falls_back(credit_card):
    biller = loan_biller()

    assert linked_account_amount(biller, None, 1, 2026, []) is None
    assert linked_account_amount(biller, replace(credit_card, billing_date=None), 1, 2026, []) is None
    assert linked_account_amount(biller, replace(credit_card, type=AccountType.DEBIT), 1, 2026, []) is None
    assert linked_account_amount(replace(biller, category=BillerCategory.UTILITIES), credit_card, 1, 2026, []) is None


def test_uses_linked_account():
    assert uses_linked_account(loan_biller())
    assert not uses_linked_account(loan_biller(account_id=None))


def test_cycle_label_is_plain_text():
    cycle = BillingCycle(start_date=date(2025, 12, 12), end_date=date(2026, 1, 11))
    assert cycle.label == "Dec 12 - Jan 11, 2026"
