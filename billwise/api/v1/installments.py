"""/v1/installments - fixed-term loans"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from billwise.api.dependencies import get_payment_service, get_request_id
from billwise.api.errors import HANDLED_ERRORS, http_error
from billwise.api.v1.accounts import trash_response
from billwise.api.v1.schemas import InstallmentCreate, InstallmentResponse, ScheduleResponse, TrashItemResponse
from billwise.domain.exceptions import InvalidEntityError, NotFoundError
from billwise.domain.models import Installment
from billwise.domain.schedules import generate_installment_schedules, installment_needs_regeneration
from billwise.infrastructure.database.repositories import (
    AccountRepository,
    InstallmentRepository,
    PaymentScheduleRepository,
    TrashRepository,
    snapshot,
)
from billwise.infrastructure.database.session import get_db
from billwise.services.payments import PaymentService

router = APIRouter()


def installment_response(installment: Installment, derived_paid_cents: int) -> InstallmentResponse:
    return InstallmentResponse(
        id=installment.id,
        name=installment.name,
        total_amount_cents=installment.total_amount_cents,
        monthly_amount_cents=installment.monthly_amount_cents,
        term_months=installment.term_months,
        paid_amount_cents=installment.paid_amount_cents,
        account_id=installment.account_id,
        start_date=installment.start_date,
        timing=installment.timing,
        derived_paid_cents=derived_paid_cents,
        remaining_cents=max(installment.total_amount_cents - derived_paid_cents, 0),
    )


def _to_installment(installment_id: str, body: InstallmentCreate) -> Installment:
    return Installment(
        id=installment_id,
        name=body.name,
        total_amount_cents=body.total_amount_cents,
        monthly_amount_cents=body.monthly_amount_cents,
        term_months=body.term_months,
        paid_amount_cents=body.paid_amount_cents,
        account_id=body.account_id,
        start_date=body.start_date,
        timing=body.timing,
    )


def _validate(db: Session, body: InstallmentCreate) -> None:
    if body.paid_amount_cents > body.total_amount_cents:
        raise InvalidEntityError("paid_amount_cents cannot exceed total_amount_cents")
    if body.account_id and AccountRepository(db).get(body.account_id) is None:
        raise NotFoundError("Account", body.account_id)


@router.post("/installments", response_model=InstallmentResponse, status_code=201)
def create_installment(body: InstallmentCreate, request: Request, db: Session = Depends(get_db)):
    """Create an installment; schedules are generated when a start date is known"""
    request_id = get_request_id(request)
    try:
        _validate(db, body)
        installment = InstallmentRepository(db).create(_to_installment("", body))
        PaymentScheduleRepository(db).create_many(generate_installment_schedules(installment))
        db.commit()
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return installment_response(installment, installment.paid_amount_cents)


@router.get("/installments", response_model=List[InstallmentResponse])
def list_installments(
    account_id: Optional[str] = None,
    payments: PaymentService = Depends(get_payment_service),
):
    return [
        installment_response(i, payments.installment_paid_total(i.id))
        for i in payments.installments.list(account_id=account_id)
    ]


@router.get("/installments/{installment_id}", response_model=InstallmentResponse)
def get_installment(
    installment_id: str,
    request: Request,
    db: Session = Depends(get_db),
    payments: PaymentService = Depends(get_payment_service),
):
    request_id = get_request_id(request)
    try:
        installment = InstallmentRepository(db).get(installment_id)
        if installment is None:
            raise NotFoundError("Installment", installment_id)
        paid = payments.installment_paid_total(installment.id)
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return installment_response(installment, paid)


@router.put("/installments/{installment_id}", response_model=InstallmentResponse)
def update_installment(
    installment_id: str,
    body: InstallmentCreate,
    request: Request,
    db: Session = Depends(get_db),
    payments: PaymentService = Depends(get_payment_service),
):
    """
    Update an installment.

    When the monthly amount, term or start date changes, schedules that carry
    no payment are regenerated; paid ones are kept.
    """
    request_id = get_request_id(request)
    try:
        repo = InstallmentRepository(db)
        old = repo.get(installment_id)
        if old is None:
            raise NotFoundError("Installment", installment_id)
        _validate(db, body)

        updated = repo.update(_to_installment(old.id, body))
        if installment_needs_regeneration(old, updated):
            schedules = PaymentScheduleRepository(db)
            removed = schedules.delete_unpaid(installment_id=updated.id)
            created = schedules.create_many(generate_installment_schedules(updated))
            logging.info(
                "Installment schedules regenerated",
                extra={"request_id": request_id, "installment_id": updated.id, "removed": removed, "created": len(created)},
            )
        db.commit()
        paid = payments.installment_paid_total(updated.id)
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return installment_response(updated, paid)


@router.get("/installments/{installment_id}/schedules", response_model=List[ScheduleResponse])
def get_installment_schedules(
    installment_id: str,
    request: Request,
    db: Session = Depends(get_db),
    payments: PaymentService = Depends(get_payment_service),
):
    request_id = get_request_id(request)
    try:
        if InstallmentRepository(db).get(installment_id) is None:
            raise NotFoundError("Installment", installment_id)
        schedules = PaymentScheduleRepository(db).list_for_installment(installment_id)
        views = [payments.view(s.id) for s in schedules]
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return [ScheduleResponse.from_view(v) for v in views]


@router.delete("/installments/{installment_id}", response_model=TrashItemResponse)
def delete_installment(installment_id: str, request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    try:
        installment = InstallmentRepository(db).delete(installment_id)
        if installment is None:
            raise NotFoundError("Installment", installment_id)
        item = TrashRepository(db).add("installment", installment.id, snapshot(installment))
        db.commit()
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return trash_response(item)
