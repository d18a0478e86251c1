"""Unit tests for payment schedule generation"""

import pytest
from dataclasses import replace
from datetime import date
from billwise.domain.models import BillerStatus, ScheduleStatus
from billwise.domain.schedules import (
    biller_active_in,
    biller_needs_regeneration,
    due_date_for,
    generate_biller_schedules,
    generate_installment_schedules,
    installment_needs_regeneration,
    installment_payment_number,
    schedule_status,
)


def test_generate_biller_schedules_horizon(electric_biller):
    """One schedule per month from activation"""
    schedules = generate_biller_schedules(electric_biller, horizon_months=24)

    assert len(schedules) == 24
    assert (schedules[0].month, schedules[0].year) == (1, 2026)
    assert (schedules[-1].month, schedules[-1].year) == (12, 2027)
    assert all(s.biller_id == "biller-electric" for s in schedules)
    assert all(s.expected_amount_cents == 300_000 for s in schedules)
    assert all(s.status == ScheduleStatus.PENDING for s in schedules)


def test_generate_biller_schedules_stops_at_deactivation(electric_biller):
    biller = replace(electric_biller, activation_month=11, activation_year=2025, deactivation_month=2, deactivation_year=2026)
    schedules = generate_biller_schedules(biller, horizon_months=24)

    assert [(s.month, s.year) for s in schedules] == [(11, 2025), (12, 2025), (1, 2026), (2, 2026)]


def test_generate_biller_schedules_inactive(electric_biller):
    biller = replace(electric_biller, status=BillerStatus.INACTIVE)
    assert generate_biller_schedules(biller) == []


def test_generate_installment_schedules(phone_installment):
    """Payment numbers 1..N from the start month"""
    schedules = generate_installment_schedules(phone_installment)

    assert len(schedules) == 12
    assert [s.payment_number for s in schedules] == list(range(1, 13))
    assert (schedules[0].month, schedules[0].year) == (1, 2026)
    assert (schedules[-1].month, schedules[-1].year) == (12, 2026)
    assert sum(s.expected_amount_cents for s in schedules) == phone_installment.total_amount_cents


def test_generate_installment_schedules_crosses_year(phone_installment):
    installment = replace(phone_installment, start_date=date(2025, 11, 30), term_months=4)
    schedules = generate_installment_schedules(installment)

    assert [(s.month, s.year) for s in schedules] == [(11, 2025), (12, 2025), (1, 2026), (2, 2026)]


def test_generate_installment_schedules_without_start_date(phone_installment):
    installment = replace(phone_installment, start_date=None)
    assert generate_installment_schedules(installment) == []


def test_installment_payment_number(phone_installment):
    assert installment_payment_number(phone_installment, 1, 2026) == 1
    assert installment_payment_number(phone_installment, 12, 2026) == 12
    assert installment_payment_number(phone_installment, 12, 2025) is None
    assert installment_payment_number(phone_installment, 1, 2027) is None


def test_biller_active_in(electric_biller):
    biller = replace(electric_biller, deactivation_month=6, deactivation_year=2026)

    assert not biller_active_in(biller, 12, 2025)
    assert biller_active_in(biller, 1, 2026)
    assert biller_active_in(biller, 6, 2026)
    assert not biller_active_in(biller, 7, 2026)


@pytest.mark.parametrize(
    "paid,expected,status",
    [
        (0, 100_000, ScheduleStatus.PENDING),
        (40_000, 100_000, ScheduleStatus.PARTIAL),
        (100_000, 100_000, ScheduleStatus.PAID),
        (99_950, 100_000, ScheduleStatus.PAID),
        (99_899, 100_000, ScheduleStatus.PARTIAL),
    ],
)
def test_schedule_status(paid, expected, status):
    assert schedule_status(paid, expected) == status


def test_due_date_clamps_to_month_length():
    assert due_date_for(2, 2026, 31) == date(2026, 2, 28)
    assert due_date_for(2, 2028, 30) == date(2028, 2, 29)


def test_biller_needs_regeneration(electric_biller):
    assert not biller_needs_regeneration(electric_biller, replace(electric_biller, name="Electricity"))
    assert biller_needs_regeneration(electric_biller, replace(electric_biller, expected_amount_cents=350_000))
    assert biller_needs_regeneration(electric_biller, replace(electric_biller, activation_month=3))


def test_installment_needs_regeneration(phone_installment):
    assert not installment_needs_regeneration(phone_installment, replace(phone_installment, name="iPhone"))
    assert installment_needs_regeneration(phone_installment, replace(phone_installment, term_months=24))
