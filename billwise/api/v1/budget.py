"""/v1/budget - half-month budget with reconciled payment status"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from billwise.api.dependencies import get_budget_service, get_request_id
from billwise.api.errors import HANDLED_ERRORS, http_error
from billwise.api.v1.schemas import (
    BudgetItemSchema,
    BudgetLineItemSchema,
    BudgetResponse,
    BudgetSetupRequest,
    BudgetSetupResponse,
    BudgetTotalsSchema,
)
from billwise.config import settings
from billwise.domain.models import BudgetItem, BudgetSetup, Timing
from billwise.infrastructure.database.session import get_db
from billwise.services.budget import BudgetService

router = APIRouter()


@router.get("/budget", response_model=BudgetResponse)
def get_budget(
    request: Request,
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=1900),
    timing: Timing = Query(Timing.FIRST_HALF),
    db: Session = Depends(get_db),
    budgets: BudgetService = Depends(get_budget_service),
):
    """
    Line items for one period with expected vs paid amounts.

    Includes active billers and installments budgeted in this half plus the
    saved setup's manual items.
    """
    request_id = get_request_id(request)
    try:
        view = budgets.build(month, year, timing, request_id=request_id)
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return BudgetResponse(
        month=view.month,
        year=view.year,
        timing=view.timing,
        items=[
            BudgetLineItemSchema(
                owner_kind=item.obligation.owner_kind,
                owner_id=item.obligation.owner_id,
                name=item.obligation.owner_name,
                category=item.category,
                expected_amount_cents=item.expected_amount_cents,
                paid_amount_cents=item.paid_amount_cents,
                status=item.result.status,
                method=item.result.method,
                matched_transaction_id=item.result.matched_transaction_id,
                schedule_id=item.obligation.schedule_id,
                payment_number=item.obligation.payment_number,
                from_linked_account=item.from_linked_account,
            )
            for item in view.line_items
        ],
        totals=BudgetTotalsSchema(
            allocated_cents=view.totals.allocated_cents,
            paid_cents=view.totals.paid_cents,
            income_cents=view.totals.income_cents,
            remaining_cents=view.totals.remaining_cents,
        ),
        setup_id=view.setup.id if view.setup else None,
    )


@router.put("/budget/setup", response_model=BudgetSetupResponse)
def save_budget_setup(
    body: BudgetSetupRequest,
    request: Request,
    db: Session = Depends(get_db),
    budgets: BudgetService = Depends(get_budget_service),
):
    request_id = get_request_id(request)
    projected = body.projected_salary_cents
    if projected is None:
        projected = settings.default_projected_salary_cents

    try:
        setup = budgets.save_setup(
            BudgetSetup(
                id=None,
                month=body.month,
                year=body.year,
                timing=body.timing,
                projected_salary_cents=projected,
                actual_salary_cents=body.actual_salary_cents,
                status=body.status,
                items=[BudgetItem(i.name, i.amount_cents, i.category, i.included) for i in body.items],
            )
        )
        db.commit()
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return BudgetSetupResponse(
        id=setup.id,
        month=setup.month,
        year=setup.year,
        timing=setup.timing,
        projected_salary_cents=setup.projected_salary_cents,
        actual_salary_cents=setup.actual_salary_cents,
        status=setup.status,
        items=[BudgetItemSchema(name=i.name, amount_cents=i.amount_cents, category=i.category, included=i.included) for i in setup.items],
    )
