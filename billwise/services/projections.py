"""Surplus and payoff projections over live account, budget and payment data"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from billwise.domain.models import InstallmentPayoff, SurplusPoint, Timing
from billwise.domain.projections import net_balance, project_installment_payoff, project_surplus, surplus_outlook
from billwise.services.payments import PaymentService

log = logging.getLogger(__name__)


@dataclass
class ProjectionView:
    net_balance_cents: int
    monthly_spending_cents: int
    outlook: str
    surplus: List[SurplusPoint]
    installments: List[InstallmentPayoff]


class ProjectionService:
    def __init__(self, db: Session):
        self.db = db
        self.payments = PaymentService(db)

    def monthly_spending(self, month: int, year: int) -> int:
        """Allocated amount of both halves of a month"""
        total = 0
        for timing in Timing:
            items, _ = self.payments.budget.line_items(month, year, timing)
            total += sum(item.expected_amount_cents for item in items)
        return total

    def build(self, months: int, today: Optional[date] = None, request_id: str = "unknown") -> ProjectionView:
        if today is None:
            today = date.today()

        accounts = self.payments.accounts.list()
        spending = self.monthly_spending(today.month, today.year)
        surplus = project_surplus(accounts, spending, months, today)

        payoffs = []
        for installment in self.payments.installments.list():
            paid = self.payments.installment_paid_total(installment.id)
            payoff = project_installment_payoff(installment, paid, today)
            if payoff.remaining_cents > 0:
                payoffs.append(payoff)

        view = ProjectionView(
            net_balance_cents=net_balance(accounts),
            monthly_spending_cents=spending,
            outlook=surplus_outlook(surplus, spending),
            surplus=surplus,
            installments=payoffs,
        )
        log.info(
            "Projection built",
            extra={"request_id": request_id, "months": months, "outlook": view.outlook, "installments": len(payoffs)},
        )
        return view
