"""Unit tests for surplus and payoff projections"""

from dataclasses import replace
from datetime import date
from billwise.domain.models import Account, AccountClassification, AccountType
from billwise.domain.projections import net_balance, project_installment_payoff, project_surplus, surplus_outlook


def accounts(credit_card):
    checking = Account(
        id="acct-checking",
        bank="BDO",
        classification=AccountClassification.CHECKING,
        balance_cents=1_000_000,
        type=AccountType.DEBIT,
    )
    return [checking, replace(credit_card, balance_cents=250_000)]


def test_net_balance_subtracts_credit_in_use(credit_card):
    assert net_balance(accounts(credit_card)) == 750_000


def test_project_surplus_spends_budget_each_month(credit_card):
    points = project_surplus(accounts(credit_card), 200_000, 3, today=date(2026, 11, 15))

    assert [(p.month, p.year) for p in points] == [(12, 2026), (1, 2027), (2, 2027)]
    assert [p.balance_cents for p in points] == [550_000, 350_000, 150_000]
    assert all(p.spending_cents == 200_000 for p in points)


def test_surplus_outlook(credit_card):
    today = date(2026, 11, 15)

    assert surplus_outlook(project_surplus(accounts(credit_card), 100_000, 3, today), 100_000) == "surplus"
    assert surplus_outlook(project_surplus(accounts(credit_card), 200_000, 3, today), 200_000) == "low"
    assert surplus_outlook(project_surplus(accounts(credit_card), 200_000, 6, today), 200_000) == "deficit"


def test_payoff_starts_after_covered_payments(phone_installment):
    payoff = project_installment_payoff(phone_installment, paid_cents=300_000, today=date(2026, 3, 20))

    assert payoff.remaining_cents == 900_000
    assert payoff.months_remaining == 9
    assert (payoff.points[0].month, payoff.points[0].year) == (4, 2026)
    assert payoff.points[0].percent_complete == 33.3
    assert (payoff.completion_month, payoff.completion_year) == (12, 2026)
    assert payoff.points[-1].balance_cents == 0
    assert payoff.points[-1].percent_complete == 100.0


def test_payoff_last_payment_covers_remainder(phone_installment):
    laptop = replace(phone_installment, total_amount_cents=250_000, start_date=None)
    payoff = project_installment_payoff(laptop, paid_cents=0, today=date(2026, 3, 10))

    assert [p.payment_cents for p in payoff.points] == [100_000, 100_000, 50_000]
    assert [p.month for p in payoff.points] == [3, 4, 5]


def test_payoff_schedule_is_capped(phone_installment):
    car = replace(phone_installment, total_amount_cents=3_600_000, term_months=36)
    payoff = project_installment_payoff(car, paid_cents=0)

    assert payoff.months_remaining == 36
    assert len(payoff.points) == 24
    assert (payoff.completion_month, payoff.completion_year) == (12, 2028)


def test_paid_off_installment_has_no_points(phone_installment):
    payoff = project_installment_payoff(phone_installment, paid_cents=1_200_000)

    assert payoff.months_remaining == 0
    assert payoff.points == []
    assert payoff.completion_month is None
