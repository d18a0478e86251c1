"""Unit tests for the payment reconciliation engine"""

import copy
import pytest
from datetime import date
from billwise.domain.models import (
    MatchMethod,
    Obligation,
    OwnerKind,
    PaymentSchedule,
    ReconciliationResult,
    ReconciliationStatus,
    ScheduleStatus,
    Transaction,
)
from billwise.domain.reconciliation import (
    amount_matches,
    classify_amount,
    date_matches,
    name_matches,
    reconcile,
    reconcile_batch,
    schedule_status_for,
)


def tx(tx_id, name, when, amount_cents, schedule_id=None):
    return Transaction(id=tx_id, name=name, date=when, amount_cents=amount_cents, payment_schedule_id=schedule_id)


def obligation(name, expected_cents, month, year, schedule_id=None):
    return Obligation(
        owner_kind=OwnerKind.BILLER,
        owner_id=name.lower(),
        owner_name=name,
        expected_amount_cents=expected_cents,
        month=month,
        year=year,
        schedule_id=schedule_id,
    )


def test_name_matches_either_direction():
    assert name_matches("Electric Co", "Electric Co - February")
    assert name_matches("Meralco Electric Company", "electric")
    assert not name_matches("Electric", "Water")


def test_name_matches_requires_three_characters():
    """Contained side must be at least 3 characters"""
    assert not name_matches("Gas", "Ga")
    assert not name_matches("TV", "TV Plus")
    assert name_matches("Gas", "Gas Station")


def test_name_matches_blank_names():
    assert not name_matches("", "Electric")
    assert not name_matches("Electric", "   ")


def test_amount_matches_tolerance_boundary():
    assert amount_matches(12_100, 12_000)  # exactly +1.00
    assert amount_matches(11_900, 12_000)
    assert not amount_matches(12_101, 12_000)


def test_date_matches_same_month():
    assert date_matches(date(2026, 2, 28), 2, 2026)
    assert date_matches("2026-02-01", 2, 2026)


def test_date_matches_rejects_other_months():
    """A March transaction never settles a February obligation"""
    assert not date_matches(date(2026, 3, 1), 2, 2026)
    assert not date_matches(date(2026, 1, 31), 2, 2026)
    assert not date_matches(date(2025, 2, 10), 2, 2026)


def test_date_matches_year_end_carry_over():
    """December obligation may be paid in the first week of January"""
    assert date_matches(date(2026, 1, 7), 12, 2025)
    assert not date_matches(date(2026, 1, 8), 12, 2025)
    assert not date_matches(date(2026, 1, 3), 11, 2025)


def test_date_matches_malformed_dates():
    assert not date_matches("not-a-date", 2, 2026)
    assert not date_matches(None, 2, 2026)
    assert not date_matches(20260201, 2, 2026)


def test_classify_amount():
    assert classify_amount(0, 100_000) == ReconciliationStatus.UNPAID
    assert classify_amount(60_000, 100_000) == ReconciliationStatus.PARTIAL
    assert classify_amount(99_950, 100_000) == ReconciliationStatus.PAID
    assert classify_amount(150_000, 100_000) == ReconciliationStatus.PAID


def test_fuzzy_match_within_tolerance():
    """'Electric Co - February' at 120.40 pays 'Electric Co' expecting 120.00"""
    ob = obligation("Electric Co", 12_000, 2, 2026)
    result = reconcile(ob, [tx("t1", "Electric Co - February", date(2026, 2, 10), 12_040)])

    assert result.status == ReconciliationStatus.PAID
    assert result.paid_amount_cents == 12_040
    assert result.method == MatchMethod.FUZZY
    assert result.matched_transaction_id == "t1"


def test_fuzzy_match_outside_tolerance():
    ob = obligation("Electric Co", 12_000, 2, 2026)
    result = reconcile(ob, [tx("t1", "Electric Co - February", date(2026, 2, 10), 12_500)])

    assert result.status == ReconciliationStatus.UNPAID
    assert result.paid_amount_cents == 0
    assert result.method == MatchMethod.NONE


def test_fuzzy_match_ignores_next_month():
    ob = obligation("Electric Co", 12_000, 2, 2026)
    result = reconcile(ob, [tx("t1", "Electric Co", date(2026, 3, 2), 12_000)])
    assert result.status == ReconciliationStatus.UNPAID


def test_reconcile_is_idempotent_and_pure():
    ob = obligation("Internet Sub", 150_000, 1, 2026, schedule_id="s1")
    transactions = [
        tx("t1", "Internet Sub", date(2026, 1, 14), 150_000),
        tx("t2", "Groceries", date(2026, 1, 15), 80_000),
    ]
    before = copy.deepcopy(transactions)

    first = reconcile(ob, transactions)
    second = reconcile(ob, transactions)

    assert first == second
    assert transactions == before


def test_unlinked_transaction_pays_obligation():
    ob = obligation("Internet Sub", 150_000, 1, 2026)
    result = reconcile(ob, [tx("t1", "Internet Sub", date(2026, 1, 14), 150_000)])

    assert result.is_paid
    assert result.paid_amount_cents == 150_000


def test_deleted_transaction_unpays_obligation():
    ob = obligation("Internet Sub", 150_000, 1, 2026, schedule_id="s1")
    transactions = [tx("t1", "Internet Sub", date(2026, 1, 14), 150_000, schedule_id="s1")]
    assert reconcile(ob, transactions).is_paid

    transactions = [t for t in transactions if t.id != "t1"]
    result = reconcile(ob, transactions)

    assert not result.is_paid
    assert result.paid_amount_cents == 0


def test_partial_linked_payment_stays_partial():
    ob = obligation("Rent", 100_000, 3, 2026, schedule_id="s1")
    result = reconcile(ob, [tx("t1", "Rent", date(2026, 3, 1), 60_000, schedule_id="s1")])

    assert result.status == ReconciliationStatus.PARTIAL
    assert result.paid_amount_cents == 60_000
    assert result.method == MatchMethod.LINKED


def test_linked_payments_are_summed():
    ob = obligation("Rent", 100_000, 3, 2026, schedule_id="s1")
    result = reconcile(
        ob,
        [
            tx("t1", "Rent part 1", date(2026, 3, 1), 60_000, schedule_id="s1"),
            tx("t2", "Rent part 2", date(2026, 3, 9), 40_000, schedule_id="s1"),
        ],
    )
    assert result.is_paid
    assert result.paid_amount_cents == 100_000


def test_linked_transaction_wins_over_fuzzy():
    """Explicit linkage is authoritative even when dated in another month"""
    ob = obligation("Internet", 150_000, 1, 2026, schedule_id="s1")
    result = reconcile(
        ob,
        [
            tx("fuzzy", "Internet", date(2026, 1, 3), 150_000),
            tx("linked", "Internet early", date(2025, 12, 28), 150_000, schedule_id="s1"),
        ],
    )
    assert result.method == MatchMethod.LINKED
    assert result.matched_transaction_id == "linked"


def test_transaction_linked_elsewhere_is_not_fuzzy_matched():
    ob = obligation("Internet", 150_000, 1, 2026, schedule_id="s1")
    result = reconcile(ob, [tx("t1", "Internet", date(2026, 1, 3), 150_000, schedule_id="other")])
    assert result.status == ReconciliationStatus.UNPAID


def test_manual_override_when_nothing_matches():
    schedule = PaymentSchedule(id="s1", month=1, year=2026, expected_amount_cents=150_000, amount_paid_cents=50_000)
    ob = obligation("Internet", 150_000, 1, 2026, schedule_id="s1")
    result = reconcile(ob, [], schedule)

    assert result.status == ReconciliationStatus.UNPAID
    assert result.paid_amount_cents == 50_000
    assert result.method == MatchMethod.MANUAL


def test_malformed_transaction_dates_never_raise():
    ob = obligation("Internet", 150_000, 1, 2026)
    transactions = [tx("t1", "Internet", "garbage", 150_000), tx("t2", "Internet", None, 150_000)]
    assert reconcile(ob, transactions).status == ReconciliationStatus.UNPAID


def test_most_specific_name_claims_transaction():
    """'Water Co' transaction must not also settle 'Water'"""
    water = obligation("Water", 80_000, 4, 2026)
    water_co = obligation("Water Co", 80_000, 4, 2026)
    transactions = [tx("t1", "Water Co", date(2026, 4, 10), 80_000)]

    results = reconcile_batch([water, water_co], transactions)

    assert results[0].status == ReconciliationStatus.UNPAID
    assert results[1].is_paid
    assert results[1].matched_transaction_id == "t1"


def test_overlapping_names_with_distinct_amounts():
    water = obligation("Water", 50_000, 4, 2026)
    water_co = obligation("Water Co", 80_000, 4, 2026)
    transactions = [tx("t1", "Water Co", date(2026, 4, 10), 80_000)]

    results = reconcile_batch([water, water_co], transactions)

    assert not results[0].has_payment
    assert results[1].paid_amount_cents == 80_000


def test_batch_earliest_matching_transaction_wins():
    first = obligation("Netflix", 55_000, 5, 2026)
    transactions = [
        tx("t1", "Netflix", date(2026, 5, 2), 55_000),
        tx("t2", "Netflix", date(2026, 5, 20), 55_000),
    ]
    results = reconcile_batch([first], transactions)
    assert results[0].matched_transaction_id == "t1"


def test_batch_honors_linked_transactions():
    ob = obligation("Water", 50_000, 4, 2026, schedule_id="s-water")
    linked = tx("t1", "Water bill", date(2026, 4, 2), 50_000, schedule_id="s-water")
    results = reconcile_batch([ob], [linked])
    assert results[0].method == MatchMethod.LINKED


@pytest.mark.parametrize(
    "status,paid,today,expected",
    [
        (ReconciliationStatus.PAID, 100_000, date(2026, 2, 1), ScheduleStatus.PAID),
        (ReconciliationStatus.UNPAID, 0, date(2026, 1, 10), ScheduleStatus.PENDING),
        (ReconciliationStatus.UNPAID, 0, date(2026, 1, 21), ScheduleStatus.OVERDUE),
        (ReconciliationStatus.PARTIAL, 40_000, date(2026, 1, 10), ScheduleStatus.PARTIAL),
    ],
)
def test_schedule_status_for(status, paid, today, expected):
    result = ReconciliationResult(status=status, paid_amount_cents=paid, method=MatchMethod.LINKED)
    assert schedule_status_for(result, date(2026, 1, 20), today) == expected
