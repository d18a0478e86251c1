"""Budget period assembly on top of the repositories"""

import logging
import time
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from billwise.config import settings
from billwise.domain.budget import assemble_line_items, compute_totals
from billwise.domain.models import BillerStatus, BudgetSetup, BudgetTotals, LineItem, Timing, Transaction
from billwise.infrastructure.database.repositories import (
    AccountRepository,
    BillerRepository,
    BudgetSetupRepository,
    InstallmentRepository,
    PaymentScheduleRepository,
    TransactionRepository,
)
from billwise.infrastructure.observability.logging import log_reconciliation
from billwise.infrastructure.observability.metrics import budget_build_histogram, record_reconciliation
from billwise.utils.date_utils import add_months, days_in_month

log = logging.getLogger(__name__)


@dataclass
class BudgetView:
    month: int
    year: int
    timing: Timing
    line_items: List[LineItem]
    totals: BudgetTotals
    setup: Optional[BudgetSetup]


class BudgetService:
    """Builds one half-month budget with every line's payment status"""

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountRepository(db)
        self.billers = BillerRepository(db)
        self.installments = InstallmentRepository(db)
        self.schedules = PaymentScheduleRepository(db)
        self.transactions = TransactionRepository(db)
        self.setups = BudgetSetupRepository(db)

    def _transactions_for(self, month: int, year: int, schedule_ids: List[str]) -> List[Transaction]:
        # Previous month start covers card cycles ending in this month
        prev_year, prev_month = add_months(year, month, -1)
        start = date(prev_year, prev_month, 1)
        end = date(year, month, days_in_month(year, month)) + timedelta(days=settings.year_end_grace_days)

        merged = {t.id: t for t in self.transactions.list(start_date=start, end_date=end)}
        for tx in self.transactions.list_for_schedules(schedule_ids):
            merged.setdefault(tx.id, tx)
        # Oldest first so the earliest matching payment wins fuzzy ties
        return sorted(merged.values(), key=lambda t: t.date)

    def line_items(self, month: int, year: int, timing: Timing) -> Tuple[List[LineItem], Optional[BudgetSetup]]:
        """Reconciled line items of one period, plus the saved setup they came from"""
        schedules = self.schedules.list_for_period(month, year)
        setup = self.setups.get_for_period(month, year, timing)

        items = assemble_line_items(
            month,
            year,
            timing,
            billers=self.billers.list(status=BillerStatus.ACTIVE),
            installments=self.installments.list(),
            schedules=schedules,
            transactions=self._transactions_for(month, year, [s.id for s in schedules]),
            accounts=self.accounts.list(),
            setup=setup,
        )
        return items, setup

    def build(self, month: int, year: int, timing: Timing, request_id: str = "unknown") -> BudgetView:
        start_time = time.time()

        line_items, setup = self.line_items(month, year, timing)

        projected = setup.projected_salary_cents if setup else settings.default_projected_salary_cents
        actual = setup.actual_salary_cents if setup else None
        totals = compute_totals(line_items, projected, actual)

        for item in line_items:
            record_reconciliation(item.result.status.value, item.result.method.value)
            log_reconciliation(
                request_id,
                item.obligation.owner_name,
                month,
                year,
                item.result.status.value,
                item.result.method.value,
                item.paid_amount_cents,
            )

        budget_build_histogram.observe(time.time() - start_time)
        return BudgetView(month, year, timing, line_items, totals, setup)

    def save_setup(self, setup: BudgetSetup) -> BudgetSetup:
        saved = self.setups.upsert(setup)
        log.info(
            "Budget setup saved",
            extra={"period": f"{setup.year}-{setup.month:02d}", "timing": setup.timing.value, "items": len(setup.items)},
        )
        return saved
