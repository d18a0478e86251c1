"""Payment service against a real session: pay, reverse, policy"""

import pytest
from dataclasses import replace
from datetime import date
from sqlalchemy.orm import Session
from billwise.config import settings
from billwise.domain.exceptions import DuplicatePaymentError, NotFoundError, PaymentPolicyError
from billwise.domain.models import MatchMethod, ReconciliationStatus, ScheduleStatus, Transaction
from billwise.domain.schedules import generate_biller_schedules, generate_installment_schedules
from billwise.infrastructure.database.repositories import (
    BillerRepository,
    InstallmentRepository,
    PaymentScheduleRepository,
    TransactionRepository,
)
from billwise.services.payments import PaymentService


@pytest.fixture
def biller_schedule(db: Session, electric_biller):
    biller = BillerRepository(db).create(replace(electric_biller, id=""))
    schedules = PaymentScheduleRepository(db).create_many(generate_biller_schedules(biller, horizon_months=3))
    db.commit()
    return schedules[0]


@pytest.fixture
def installment_schedules(db: Session, phone_installment):
    installment = InstallmentRepository(db).create(replace(phone_installment, id=""))
    schedules = PaymentScheduleRepository(db).create_many(generate_installment_schedules(installment))
    db.commit()
    return schedules


def test_record_payment_then_reverse(db: Session, biller_schedule):
    """Reversal leaves the schedule exactly as unpaid as before"""
    service = PaymentService(db)

    tx, schedule = service.record_payment(biller_schedule.id, 300_000, date(2026, 1, 18), receipt="OR-9")
    db.commit()
    assert schedule.status == ScheduleStatus.PAID
    assert schedule.amount_paid_cents == 300_000

    _, reverted = service.delete_transaction(tx.id)
    db.commit()

    assert reverted.status == ScheduleStatus.PENDING
    assert reverted.amount_paid_cents is None
    assert reverted.receipt is None

    view = service.view(biller_schedule.id, today=date(2026, 1, 1))
    assert view.result.status == ReconciliationStatus.UNPAID
    assert view.result.paid_amount_cents == 0
    assert view.result.method == MatchMethod.NONE
    assert view.status == ScheduleStatus.PENDING


def test_reversal_recomputes_from_remaining_links(db: Session, biller_schedule):
    service = PaymentService(db)
    first, _ = service.record_payment(biller_schedule.id, 100_000, date(2026, 1, 5))
    service.record_payment(biller_schedule.id, 50_000, date(2026, 1, 9))
    db.commit()

    _, schedule = service.delete_transaction(first.id)

    assert schedule.status == ScheduleStatus.PARTIAL
    assert schedule.amount_paid_cents == 50_000
    assert schedule.date_paid == date(2026, 1, 9)


def test_duplicate_payment_rejected(db: Session, biller_schedule):
    service = PaymentService(db)
    service.record_payment(biller_schedule.id, 300_000, date(2026, 1, 18))

    with pytest.raises(DuplicatePaymentError):
        service.record_payment(biller_schedule.id, 300_000, date(2026, 1, 19))


def test_unknown_account_rejected(db: Session, biller_schedule):
    with pytest.raises(NotFoundError):
        PaymentService(db).record_payment(
            biller_schedule.id, 300_000, date(2026, 1, 18), account_id="00000000-0000-0000-0000-000000000001"
        )


def test_view_reports_overdue(db: Session, biller_schedule):
    view = PaymentService(db).view(biller_schedule.id, today=date(2026, 1, 21))
    assert view.due_date == date(2026, 1, 20)
    assert view.status == ScheduleStatus.OVERDUE


def test_installments_out_of_order_allowed_by_default(db: Session, installment_schedules):
    service = PaymentService(db)
    _, schedule = service.record_payment(installment_schedules[2].id, 100_000, date(2026, 3, 5))
    assert schedule.status == ScheduleStatus.PAID


def test_sequential_installment_policy(db: Session, installment_schedules, monkeypatch):
    monkeypatch.setattr(settings, "enforce_sequential_installments", True)
    service = PaymentService(db)

    with pytest.raises(PaymentPolicyError):
        service.record_payment(installment_schedules[1].id, 100_000, date(2026, 2, 5))

    service.record_payment(installment_schedules[0].id, 100_000, date(2026, 1, 5))
    _, schedule = service.record_payment(installment_schedules[1].id, 100_000, date(2026, 2, 5))
    assert schedule.status == ScheduleStatus.PAID


def test_installment_paid_total(db: Session, installment_schedules):
    service = PaymentService(db)
    service.record_payment(installment_schedules[0].id, 100_000, date(2026, 1, 5))
    service.record_payment(installment_schedules[1].id, 100_000, date(2026, 2, 5))

    assert service.installment_paid_total(installment_schedules[0].installment_id) == 200_000


def test_mark_overdue_only_touches_unpaid(db: Session, biller_schedule):
    service = PaymentService(db)
    service.record_payment(biller_schedule.id, 300_000, date(2026, 1, 18))

    marked = service.mark_overdue(today=date(2026, 3, 25))

    # February and March are past due; January is paid
    assert marked == 2


def test_mark_overdue_skips_schedules_settled_by_unlinked_transaction(db: Session, biller_schedule):
    TransactionRepository(db).create(Transaction(id="", name="Electric", date=date(2026, 1, 12), amount_cents=300_000))
    db.commit()

    marked = PaymentService(db).mark_overdue(today=date(2026, 3, 25))

    assert marked == 2
    assert PaymentScheduleRepository(db).get(biller_schedule.id).status == ScheduleStatus.PENDING


def test_regeneration_keeps_manual_overrides(db: Session, biller_schedule):
    schedules = PaymentScheduleRepository(db)
    schedules.get_record(biller_schedule.id).amount_paid_cents = 150_000
    db.flush()

    removed = schedules.delete_unpaid(biller_id=biller_schedule.biller_id)

    assert removed == 2
    kept = schedules.get(biller_schedule.id)
    assert kept is not None
    assert kept.amount_paid_cents == 150_000
