"""/v1/billers - recurring bills and their payment schedules"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from billwise.api.dependencies import get_payment_service, get_request_id
from billwise.api.errors import HANDLED_ERRORS, http_error
from billwise.api.v1.accounts import trash_response
from billwise.api.v1.schemas import BillerCreate, BillerResponse, ScheduleResponse, TrashItemResponse
from billwise.domain.exceptions import NotFoundError
from billwise.domain.models import Biller, BillerStatus
from billwise.domain.schedules import biller_needs_regeneration, generate_biller_schedules
from billwise.infrastructure.database.repositories import (
    AccountRepository,
    BillerRepository,
    PaymentScheduleRepository,
    TrashRepository,
    snapshot,
)
from billwise.infrastructure.database.session import get_db
from billwise.services.payments import PaymentService

router = APIRouter()


def biller_response(biller: Biller) -> BillerResponse:
    return BillerResponse(
        id=biller.id,
        name=biller.name,
        category=biller.category,
        due_day=biller.due_day,
        expected_amount_cents=biller.expected_amount_cents,
        timing=biller.timing,
        activation_month=biller.activation_month,
        activation_year=biller.activation_year,
        deactivation_month=biller.deactivation_month,
        deactivation_year=biller.deactivation_year,
        status=biller.status,
        linked_account_id=biller.linked_account_id,
    )


def _to_biller(biller_id: str, body: BillerCreate) -> Biller:
    return Biller(
        id=biller_id,
        name=body.name,
        category=body.category,
        due_day=body.due_day,
        expected_amount_cents=body.expected_amount_cents,
        timing=body.timing,
        activation_month=body.activation_month,
        activation_year=body.activation_year,
        status=body.status,
        deactivation_month=body.deactivation_month,
        deactivation_year=body.deactivation_year,
        linked_account_id=body.linked_account_id,
    )


def _check_linked_account(db: Session, account_id: Optional[str]) -> None:
    if account_id and AccountRepository(db).get(account_id) is None:
        raise NotFoundError("Account", account_id)


@router.post("/billers", response_model=BillerResponse, status_code=201)
def create_biller(body: BillerCreate, request: Request, db: Session = Depends(get_db)):
    """Create a biller and generate its monthly schedules up front"""
    request_id = get_request_id(request)
    try:
        _check_linked_account(db, body.linked_account_id)
        biller = BillerRepository(db).create(_to_biller("", body))
        created = PaymentScheduleRepository(db).create_many(generate_biller_schedules(biller))
        db.commit()
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    logging.info(
        "Biller created",
        extra={"request_id": request_id, "biller_id": biller.id, "schedules": len(created)},
    )
    return biller_response(biller)


@router.get("/billers", response_model=List[BillerResponse])
def list_billers(status: Optional[BillerStatus] = None, db: Session = Depends(get_db)):
    return [biller_response(b) for b in BillerRepository(db).list(status=status)]


@router.get("/billers/{biller_id}", response_model=BillerResponse)
def get_biller(biller_id: str, db: Session = Depends(get_db)):
    biller = BillerRepository(db).get(biller_id)
    if not biller:
        raise HTTPException(status_code=404, detail="Biller not found")
    return biller_response(biller)


@router.put("/billers/{biller_id}", response_model=BillerResponse)
def update_biller(biller_id: str, body: BillerCreate, request: Request, db: Session = Depends(get_db)):
    """
    Update a biller.

    When the amount, activation window or status changes, schedules without
    a linked payment are regenerated; paid history is left alone.
    """
    request_id = get_request_id(request)
    try:
        repo = BillerRepository(db)
        old = repo.get(biller_id)
        if old is None:
            raise NotFoundError("Biller", biller_id)
        _check_linked_account(db, body.linked_account_id)

        updated = repo.update(_to_biller(old.id, body))
        if biller_needs_regeneration(old, updated):
            schedules = PaymentScheduleRepository(db)
            removed = schedules.delete_unpaid(biller_id=updated.id)
            created = schedules.create_many(generate_biller_schedules(updated))
            logging.info(
                "Biller schedules regenerated",
                extra={"request_id": request_id, "biller_id": updated.id, "removed": removed, "created": len(created)},
            )
        db.commit()
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return biller_response(updated)


@router.get("/billers/{biller_id}/schedules", response_model=List[ScheduleResponse])
def get_biller_schedules(
    biller_id: str,
    request: Request,
    db: Session = Depends(get_db),
    payments: PaymentService = Depends(get_payment_service),
):
    request_id = get_request_id(request)
    try:
        if BillerRepository(db).get(biller_id) is None:
            raise NotFoundError("Biller", biller_id)
        views = [payments.view(s.id) for s in PaymentScheduleRepository(db).list_for_biller(biller_id)]
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return [ScheduleResponse.from_view(v) for v in views]


@router.delete("/billers/{biller_id}", response_model=TrashItemResponse)
def delete_biller(biller_id: str, request: Request, db: Session = Depends(get_db)):
    """Move a biller to trash; its schedules are removed with it"""
    request_id = get_request_id(request)
    try:
        biller = BillerRepository(db).delete(biller_id)
        if biller is None:
            raise NotFoundError("Biller", biller_id)
        item = TrashRepository(db).add("biller", biller.id, snapshot(biller))
        db.commit()
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return trash_response(item)
