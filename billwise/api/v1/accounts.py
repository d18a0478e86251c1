"""/v1/accounts - accounts, statement cycles and soft delete"""

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from billwise.api.dependencies import get_request_id
from billwise.api.errors import HANDLED_ERRORS, http_error
from billwise.api.v1.schemas import AccountCreate, AccountResponse, CycleResponse, TrashItemResponse
from billwise.domain.balances import available_credit
from billwise.domain.billing_cycles import aggregate_cycle, recent_cycles
from billwise.domain.exceptions import InvalidEntityError, NotFoundError
from billwise.domain.models import Account, AccountType
from billwise.infrastructure.database.repositories import AccountRepository, TransactionRepository, TrashRepository, snapshot
from billwise.infrastructure.database.session import get_db

router = APIRouter()


def account_response(account: Account) -> AccountResponse:
    return AccountResponse(
        id=account.id,
        bank=account.bank,
        classification=account.classification,
        type=account.type,
        balance_cents=account.balance_cents,
        credit_limit_cents=account.credit_limit_cents,
        available_credit_cents=available_credit(account),
        billing_date=account.billing_date,
        due_date=account.due_date,
    )


def trash_response(record) -> TrashItemResponse:
    return TrashItemResponse(
        id=str(record.id),
        entity_type=record.entity_type,
        original_id=str(record.original_id),
        deleted_at=record.deleted_at,
        payload=record.payload,
    )


@router.post("/accounts", response_model=AccountResponse, status_code=201)
def create_account(body: AccountCreate, request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    try:
        account = AccountRepository(db).create(
            Account(
                id="",
                bank=body.bank,
                classification=body.classification,
                balance_cents=body.balance_cents,
                type=body.type,
                credit_limit_cents=body.credit_limit_cents,
                billing_date=body.billing_date,
                due_date=body.due_date,
            )
        )
        db.commit()
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return account_response(account)


@router.get("/accounts", response_model=List[AccountResponse])
def list_accounts(db: Session = Depends(get_db)):
    return [account_response(a) for a in AccountRepository(db).list()]


@router.get("/accounts/{account_id}", response_model=AccountResponse)
def get_account(account_id: str, db: Session = Depends(get_db)):
    account = AccountRepository(db).get(account_id)
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")
    return account_response(account)


@router.put("/accounts/{account_id}", response_model=AccountResponse)
def update_account(account_id: str, body: AccountCreate, request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    try:
        repo = AccountRepository(db)
        if repo.get(account_id) is None:
            raise NotFoundError("Account", account_id)
        account = repo.update(
            Account(
                id=account_id,
                bank=body.bank,
                classification=body.classification,
                balance_cents=body.balance_cents,
                type=body.type,
                credit_limit_cents=body.credit_limit_cents,
                billing_date=body.billing_date,
                due_date=body.due_date,
            )
        )
        db.commit()
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return account_response(account)


@router.get("/accounts/{account_id}/cycles", response_model=List[CycleResponse])
def get_account_cycles(
    account_id: str,
    request: Request,
    count: int = Query(6, ge=1, le=24),
    db: Session = Depends(get_db),
):
    """
    Recent statement cycles of a credit account with their spend totals.

    Cycles run from the billing day to the day before the next billing day.
    """
    request_id = get_request_id(request)
    try:
        account = AccountRepository(db).get(account_id)
        if account is None:
            raise NotFoundError("Account", account_id)
        if account.type != AccountType.CREDIT or account.billing_day is None:
            raise InvalidEntityError(f"Account {account_id} has no billing cycle (credit account with billing date required)")

        cycles = recent_cycles(account.billing_day, count, today=date.today())
        transactions = TransactionRepository(db).list(
            account_id=account.id,
            start_date=min(c.start_date for c in cycles),
            end_date=max(c.end_date for c in cycles),
        )
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    summaries = [aggregate_cycle(account.id, cycle, transactions) for cycle in cycles]
    return [
        CycleResponse(
            start_date=s.cycle.start_date,
            end_date=s.cycle.end_date,
            label=s.cycle.label,
            total_amount_cents=s.total_amount_cents,
            transaction_count=len(s.transactions),
        )
        for s in summaries
    ]


@router.delete("/accounts/{account_id}", response_model=TrashItemResponse)
def delete_account(account_id: str, request: Request, db: Session = Depends(get_db)):
    """Move an account to trash; billers, installments and transactions are unlinked from it"""
    request_id = get_request_id(request)
    try:
        account = AccountRepository(db).delete(account_id)
        if account is None:
            raise NotFoundError("Account", account_id)
        item = TrashRepository(db).add("account", account.id, snapshot(account))
        db.commit()
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return trash_response(item)
