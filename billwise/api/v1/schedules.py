"""/v1/schedules - schedule status, the pay flow and the overdue sweep"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from billwise.api.dependencies import get_payment_service, get_request_id
from billwise.api.errors import HANDLED_ERRORS, http_error
from billwise.api.v1.schemas import MarkOverdueResponse, PaymentRequest, PaymentResponse, ScheduleResponse
from billwise.api.v1.transactions import transaction_response
from billwise.infrastructure.database.session import get_db
from billwise.services.payments import PaymentService

router = APIRouter()


@router.post("/schedules/mark-overdue", response_model=MarkOverdueResponse)
def mark_overdue(
    request: Request,
    db: Session = Depends(get_db),
    payments: PaymentService = Depends(get_payment_service),
):
    request_id = get_request_id(request)
    try:
        marked = payments.mark_overdue()
        db.commit()
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return MarkOverdueResponse(marked=marked)


@router.get("/schedules/{schedule_id}/status", response_model=ScheduleResponse)
def get_schedule_status(
    schedule_id: str,
    request: Request,
    db: Session = Depends(get_db),
    payments: PaymentService = Depends(get_payment_service),
):
    """Reconciled status: linked payments first, then name/amount/date matching"""
    request_id = get_request_id(request)
    try:
        view = payments.view(schedule_id)
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return ScheduleResponse.from_view(view)


@router.post("/schedules/{schedule_id}/payments", response_model=PaymentResponse, status_code=201)
def pay_schedule(
    schedule_id: str,
    body: PaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
    payments: PaymentService = Depends(get_payment_service),
):
    """
    Pay a schedule.

    Flow:
    1. Reject if the schedule is already paid (409)
    2. Create the transaction linked to the schedule
    3. Update the account balance and the schedule's payment fields
    4. Commit, then re-read the reconciled status
    """
    request_id = get_request_id(request)
    try:
        tx, _ = payments.record_payment(
            schedule_id,
            amount_cents=body.amount_cents,
            paid_on=body.date,
            account_id=body.account_id,
            name=body.name,
            receipt=body.receipt,
            request_id=request_id,
        )
        db.commit()
        view = payments.view(schedule_id)
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return PaymentResponse(transaction=transaction_response(tx), schedule=ScheduleResponse.from_view(view))
