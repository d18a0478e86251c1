"""Payment schedule generation for billers and installments"""

from datetime import date
from typing import List, Optional

from billwise.config import settings
from billwise.domain.models import (
    Biller,
    BillerStatus,
    Installment,
    PaymentSchedule,
    ReconciliationStatus,
    ScheduleStatus,
)
from billwise.domain.reconciliation import classify_amount
from billwise.utils.date_utils import add_months, clamp_day, month_index


def generate_biller_schedules(biller: Biller, horizon_months: int | None = None) -> List[PaymentSchedule]:
    """
    Generate one pending schedule per month for a biller.

    Requirements:
    - Starts at the activation month/year
    - Covers `horizon_months` months, stopping after the deactivation month
    - Inactive billers get no schedules

    Example:
        activation March 2026, deactivation May 2026 → March, April, May
    """
    if horizon_months is None:
        horizon_months = settings.schedule_horizon_months

    if biller.status != BillerStatus.ACTIVE or horizon_months <= 0:
        return []

    last = None
    if biller.deactivation_month and biller.deactivation_year:
        last = month_index(biller.deactivation_year, biller.deactivation_month)

    schedules = []
    for i in range(horizon_months):
        year, month = add_months(biller.activation_year, biller.activation_month, i)
        if last is not None and month_index(year, month) > last:
            break

        schedules.append(
            PaymentSchedule(
                id=None,
                month=month,
                year=year,
                expected_amount_cents=biller.expected_amount_cents,
                biller_id=biller.id,
            )
        )

    return schedules


def generate_installment_schedules(installment: Installment) -> List[PaymentSchedule]:
    """
    Generate payment numbers 1..N starting from the installment's start month.

    Installments without a start date have no derivable schedule.
    """
    if installment.start_date is None or installment.term_months <= 0:
        return []

    start = installment.start_date
    schedules = []
    for i in range(installment.term_months):
        year, month = add_months(start.year, start.month, i)
        schedules.append(
            PaymentSchedule(
                id=None,
                month=month,
                year=year,
                expected_amount_cents=installment.monthly_amount_cents,
                installment_id=installment.id,
                payment_number=i + 1,
                account_id=installment.account_id,
            )
        )

    return schedules


def installment_payment_number(installment: Installment, month: int, year: int) -> Optional[int]:
    """Which payment in the sequence falls in this month, if any"""
    if installment.start_date is None:
        return None

    offset = month_index(year, month) - month_index(installment.start_date.year, installment.start_date.month)
    if 0 <= offset < installment.term_months:
        return offset + 1
    return None


def biller_active_in(biller: Biller, month: int, year: int) -> bool:
    """Activation/deactivation window check, both ends inclusive"""
    target = month_index(year, month)
    if target < month_index(biller.activation_year, biller.activation_month):
        return False
    if biller.deactivation_month and biller.deactivation_year:
        return target <= month_index(biller.deactivation_year, biller.deactivation_month)
    return True


def schedule_status(amount_paid_cents: int, expected_cents: int) -> ScheduleStatus:
    """Persisted status for a paid amount, using the same tolerance as reconciliation"""
    status = classify_amount(amount_paid_cents, expected_cents)
    if status == ReconciliationStatus.UNPAID:
        return ScheduleStatus.PENDING
    return ScheduleStatus(status.value)


def due_date_for(month: int, year: int, due_day: int | None = None) -> date:
    if due_day is None:
        due_day = settings.default_due_day
    return clamp_day(year, month, due_day)


def biller_needs_regeneration(old: Biller, new: Biller) -> bool:
    return (
        old.expected_amount_cents != new.expected_amount_cents
        or (old.activation_month, old.activation_year) != (new.activation_month, new.activation_year)
        or (old.deactivation_month, old.deactivation_year) != (new.deactivation_month, new.deactivation_year)
        or old.status != new.status
    )


def installment_needs_regeneration(old: Installment, new: Installment) -> bool:
    return (
        old.monthly_amount_cents != new.monthly_amount_cents
        or old.term_months != new.term_months
        or old.start_date != new.start_date
    )
