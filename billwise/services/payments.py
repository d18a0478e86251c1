"""Payment recording, reversal and schedule status upkeep"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from billwise.config import settings
from billwise.domain.balances import balance_impact
from billwise.domain.exceptions import (
    DuplicatePaymentError,
    InvalidEntityError,
    NotFoundError,
    PaymentPolicyError,
)
from billwise.domain.models import (
    Obligation,
    OwnerKind,
    PaymentSchedule,
    ReconciliationResult,
    ScheduleStatus,
    Timing,
    Transaction,
)
from billwise.domain.reconciliation import reconcile, schedule_status_for
from billwise.domain.schedules import due_date_for, schedule_status
from billwise.infrastructure.database.models import PaymentScheduleRecord
from billwise.infrastructure.database.repositories import (
    AccountRepository,
    BillerRepository,
    InstallmentRepository,
    PaymentScheduleRepository,
    TransactionRepository,
    as_uuid,
    to_schedule,
)
from billwise.infrastructure.observability.logging import log_payment_event
from billwise.infrastructure.observability.metrics import (
    duplicate_payments_counter,
    overdue_marked_counter,
    payment_reversals_counter,
    payments_recorded_counter,
)
from billwise.services.budget import BudgetService
from billwise.utils.date_utils import days_in_month

log = logging.getLogger(__name__)


@dataclass
class ScheduleView:
    """A schedule row together with its reconciled state"""

    schedule: PaymentSchedule
    owner_name: str
    due_date: date
    result: ReconciliationResult
    status: ScheduleStatus


class PaymentService:
    """Keeps schedules, transactions and balances consistent within one session"""

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountRepository(db)
        self.billers = BillerRepository(db)
        self.installments = InstallmentRepository(db)
        self.schedules = PaymentScheduleRepository(db)
        self.transactions = TransactionRepository(db)
        self.budget = BudgetService(db)
        self._period_results: Dict[Tuple[int, int, Timing], Dict[str, ReconciliationResult]] = {}

    def _owner(self, schedule: PaymentSchedule) -> Tuple[OwnerKind, str, Optional[int], Timing]:
        """(kind, name, due day, timing) of the biller or installment owning a schedule"""
        if schedule.biller_id:
            biller = self.billers.get(schedule.biller_id)
            if biller is None:
                raise NotFoundError("Biller", schedule.biller_id)
            return OwnerKind.BILLER, biller.name, biller.due_day, biller.timing

        installment = self.installments.get(schedule.installment_id)
        if installment is None:
            raise NotFoundError("Installment", schedule.installment_id)
        due_day = installment.start_date.day if installment.start_date else None
        return OwnerKind.INSTALLMENT, installment.name, due_day, installment.timing or Timing.FIRST_HALF

    def _candidate_transactions(self, schedule: PaymentSchedule) -> List[Transaction]:
        """Linked transactions plus anything dated inside the schedule's month (and grace window)"""
        start = date(schedule.year, schedule.month, 1)
        end = date(schedule.year, schedule.month, days_in_month(schedule.year, schedule.month))
        end += timedelta(days=settings.year_end_grace_days)

        seen = set()
        candidates = []
        for tx in self.transactions.list_for_schedule(schedule.id) + self.transactions.list(start_date=start, end_date=end):
            if tx.id in seen:
                continue
            seen.add(tx.id)
            candidates.append(tx)
        return sorted(candidates, key=lambda t: t.date)

    def view(self, schedule_id: str, today: Optional[date] = None) -> ScheduleView:
        """Reconciled status of one schedule, read fresh from the database"""
        schedule = self.schedules.get(schedule_id)
        if schedule is None:
            raise NotFoundError("Payment schedule", schedule_id)
        return self._view(schedule, today)

    def _period_result(self, schedule: PaymentSchedule, timing: Timing) -> Optional[ReconciliationResult]:
        """
        Result for a schedule as its budget period reconciles it.

        Obligations of one period compete for unlinked transactions, so a
        schedule is only ever judged together with its neighbours.
        """
        key = (schedule.month, schedule.year, timing)
        if key not in self._period_results:
            items, _ = self.budget.line_items(schedule.month, schedule.year, timing)
            self._period_results[key] = {
                item.obligation.schedule_id: item.result for item in items if item.obligation.schedule_id
            }
        return self._period_results[key].get(schedule.id)

    def _forget_periods(self) -> None:
        self._period_results.clear()

    def _view(self, schedule: PaymentSchedule, today: Optional[date] = None) -> ScheduleView:
        kind, owner_name, due_day, timing = self._owner(schedule)
        result = self._period_result(schedule, timing)
        if result is None:
            # Owner is outside the budget (inactive biller)
            obligation = Obligation(
                owner_kind=kind,
                owner_id=schedule.owner_id,
                owner_name=owner_name,
                expected_amount_cents=schedule.expected_amount_cents,
                month=schedule.month,
                year=schedule.year,
                schedule_id=schedule.id,
                payment_number=schedule.payment_number,
            )
            result = reconcile(obligation, self._candidate_transactions(schedule), schedule)
        due = due_date_for(schedule.month, schedule.year, due_day)
        return ScheduleView(
            schedule=schedule,
            owner_name=owner_name,
            due_date=due,
            result=result,
            status=schedule_status_for(result, due, today),
        )

    def sync_schedule(self, record: PaymentScheduleRecord) -> PaymentSchedule:
        """
        Rewrite a schedule's cached payment fields from its linked transactions.

        With no links left, amount/date/account/receipt are cleared and the
        row goes back to pending.
        """
        linked = self.transactions.list_for_schedule(record.id)

        if not linked:
            record.amount_paid_cents = None
            record.date_paid = None
            record.account_id = None
            record.receipt = None
            record.status = ScheduleStatus.PENDING.value
            self.db.flush()
            return to_schedule(record)

        paid = sum(t.amount_cents for t in linked)
        latest = max(linked, key=lambda t: t.date)
        record.amount_paid_cents = paid
        record.date_paid = latest.date
        record.account_id = as_uuid(latest.payment_method_id)
        record.status = schedule_status(paid, record.expected_amount_cents).value
        self.db.flush()
        return to_schedule(record)

    def _check_installment_policy(self, schedule: PaymentSchedule, amount_cents: int) -> None:
        installment = self.installments.get(schedule.installment_id)
        if installment is None:
            raise NotFoundError("Installment", schedule.installment_id)

        rows = self.schedules.list_for_installment(installment.id)

        if settings.enforce_sequential_installments and schedule.payment_number and schedule.payment_number > 1:
            for earlier in rows:
                if earlier.payment_number and earlier.payment_number < schedule.payment_number:
                    if not self._view(earlier).result.is_paid:
                        raise PaymentPolicyError(
                            f"{installment.name}: payment #{earlier.payment_number} must be paid "
                            f"before #{schedule.payment_number}"
                        )

        linked_total = sum(t.amount_cents for t in self.transactions.list_for_schedules([r.id for r in rows]))
        paid_total = installment.paid_amount_cents + linked_total
        if paid_total + amount_cents > installment.total_amount_cents + settings.amount_tolerance_cents:
            raise PaymentPolicyError(
                f"{installment.name}: payment of {amount_cents} would exceed the total of "
                f"{installment.total_amount_cents} ({paid_total} already paid)"
            )

    def _apply_balance(self, account_id: Optional[str], amount_cents: int) -> None:
        if not account_id:
            return
        account = self.accounts.get(account_id)
        if account is not None:
            self.accounts.adjust_balance(account.id, balance_impact(account.type, amount_cents))

    def _require_account(self, account_id: Optional[str]) -> None:
        if account_id and self.accounts.get(account_id) is None:
            raise NotFoundError("Account", account_id)

    def record_payment(
        self,
        schedule_id: str,
        amount_cents: int,
        paid_on: date,
        account_id: Optional[str] = None,
        name: Optional[str] = None,
        receipt: Optional[str] = None,
        request_id: str = "unknown",
    ) -> Tuple[Transaction, PaymentSchedule]:
        """
        Pay flow: create a transaction linked to the schedule, then update
        the schedule's payment metadata and the account balance.

        Raises:
            NotFoundError: unknown schedule or account
            DuplicatePaymentError: schedule already paid
            PaymentPolicyError: installment policy violated
        """
        if amount_cents <= 0:
            raise InvalidEntityError("Payment amount must be positive")

        record = self.schedules.get_record(schedule_id)
        if record is None:
            raise NotFoundError("Payment schedule", schedule_id)
        self._require_account(account_id)

        current = self._view(to_schedule(record))
        if current.result.is_paid:
            duplicate_payments_counter.inc()
            raise DuplicatePaymentError(
                f"{current.owner_name} {current.schedule.month}/{current.schedule.year} is already paid"
            )

        if record.installment_id is not None:
            self._check_installment_policy(current.schedule, amount_cents)

        tx = self.transactions.create(
            Transaction(
                id="",
                name=name or current.owner_name,
                date=paid_on,
                amount_cents=amount_cents,
                payment_method_id=account_id,
                payment_schedule_id=str(record.id),
            )
        )
        self._apply_balance(account_id, amount_cents)
        self._forget_periods()

        schedule = self.sync_schedule(record)
        if receipt:
            record.receipt = receipt
            self.db.flush()
            schedule.receipt = receipt

        payments_recorded_counter.inc()
        log_payment_event("recorded", schedule.id, tx.id, amount_cents, schedule.status.value, request_id)
        return tx, schedule

    def create_transaction(
        self,
        name: str,
        paid_on: date,
        amount_cents: int,
        account_id: Optional[str] = None,
        schedule_id: Optional[str] = None,
        request_id: str = "unknown",
    ) -> Transaction:
        """Add a ledger entry; a schedule link routes through the pay flow"""
        if schedule_id:
            tx, _ = self.record_payment(schedule_id, amount_cents, paid_on, account_id, name, request_id=request_id)
            return tx

        self._require_account(account_id)
        tx = self.transactions.create(
            Transaction(id="", name=name, date=paid_on, amount_cents=amount_cents, payment_method_id=account_id)
        )
        self._apply_balance(account_id, amount_cents)
        self._forget_periods()
        return tx

    def delete_transaction(
        self, transaction_id: str, request_id: str = "unknown"
    ) -> Tuple[Transaction, Optional[PaymentSchedule]]:
        """
        Remove a transaction, undoing its balance effect and reverting the
        schedule it paid. Returns the deleted transaction and the updated
        schedule, if any.
        """
        tx = self.transactions.get(transaction_id)
        if tx is None:
            raise NotFoundError("Transaction", transaction_id)

        self._apply_balance(tx.payment_method_id, -tx.amount_cents)
        self.transactions.delete(tx.id)
        self._forget_periods()

        if not tx.payment_schedule_id:
            return tx, None

        record = self.schedules.get_record(tx.payment_schedule_id)
        if record is None:
            return tx, None

        schedule = self.sync_schedule(record)
        if schedule.amount_paid_cents is None:
            payment_reversals_counter.inc()
        log_payment_event("reversed", schedule.id, tx.id, tx.amount_cents, schedule.status.value, request_id)
        return tx, schedule

    def mark_overdue(self, today: Optional[date] = None) -> int:
        """Flag pending/partial schedules that are still not paid after their due date"""
        marked = 0
        for record in self.schedules.list_by_status([ScheduleStatus.PENDING, ScheduleStatus.PARTIAL]):
            if self._view(to_schedule(record), today).status == ScheduleStatus.OVERDUE:
                record.status = ScheduleStatus.OVERDUE.value
                marked += 1

        self.db.flush()
        if marked:
            overdue_marked_counter.inc(marked)
            log.info("Schedules marked overdue", extra={"count": marked})
        return marked

    def installment_paid_total(self, installment_id: str) -> int:
        """Paid before tracking plus everything reconciled against its schedules"""
        installment = self.installments.get(installment_id)
        if installment is None:
            raise NotFoundError("Installment", installment_id)
        views = [self._view(s) for s in self.schedules.list_for_installment(installment.id)]
        return installment.paid_amount_cents + sum(v.result.paid_amount_cents for v in views)
