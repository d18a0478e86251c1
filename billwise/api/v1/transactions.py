"""/v1/transactions - ledger entries with balance upkeep and reversal on delete"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from billwise.api.dependencies import get_payment_service, get_request_id
from billwise.api.errors import HANDLED_ERRORS, http_error
from billwise.api.v1.schemas import TransactionCreate, TransactionDeleteResponse, TransactionResponse
from billwise.domain.models import Transaction
from billwise.infrastructure.database.repositories import TransactionRepository
from billwise.infrastructure.database.session import get_db
from billwise.services.payments import PaymentService

router = APIRouter()


def transaction_response(tx: Transaction) -> TransactionResponse:
    return TransactionResponse(
        id=tx.id,
        name=tx.name,
        date=tx.date,
        amount_cents=tx.amount_cents,
        payment_method_id=tx.payment_method_id,
        payment_schedule_id=tx.payment_schedule_id,
    )


@router.post("/transactions", response_model=TransactionResponse, status_code=201)
def create_transaction(
    body: TransactionCreate,
    request: Request,
    db: Session = Depends(get_db),
    payments: PaymentService = Depends(get_payment_service),
):
    """
    Record a transaction and apply it to its account balance.

    A payment_schedule_id makes this a payment: the schedule is updated in
    the same commit, and an already paid schedule is rejected with 409.
    """
    request_id = get_request_id(request)
    try:
        tx = payments.create_transaction(
            name=body.name,
            paid_on=body.date,
            amount_cents=body.amount_cents,
            account_id=body.payment_method_id,
            schedule_id=body.payment_schedule_id,
            request_id=request_id,
        )
        db.commit()
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return transaction_response(tx)


@router.get("/transactions", response_model=List[TransactionResponse])
def list_transactions(
    account_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=422, detail="start_date must not be after end_date")
    txs = TransactionRepository(db).list(account_id=account_id, start_date=start_date, end_date=end_date)
    return [transaction_response(t) for t in txs]


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(transaction_id: str, db: Session = Depends(get_db)):
    tx = TransactionRepository(db).get(transaction_id)
    if not tx:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return transaction_response(tx)


@router.delete("/transactions/{transaction_id}", response_model=TransactionDeleteResponse)
def delete_transaction(
    transaction_id: str,
    request: Request,
    db: Session = Depends(get_db),
    payments: PaymentService = Depends(get_payment_service),
):
    """Delete a transaction; its balance effect and schedule payment are reverted in the same commit"""
    request_id = get_request_id(request)
    try:
        tx, schedule = payments.delete_transaction(transaction_id, request_id=request_id)
        db.commit()
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return TransactionDeleteResponse(
        deleted=transaction_response(tx),
        reverted_schedule_id=schedule.id if schedule else None,
        schedule_status=schedule.status if schedule else None,
    )
