"""/v1/trash - soft-deleted accounts, billers and installments"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from billwise.api.dependencies import get_request_id
from billwise.api.errors import HANDLED_ERRORS, http_error
from billwise.api.v1.accounts import trash_response
from billwise.api.v1.schemas import PurgeResponse, TrashItemResponse
from billwise.config import settings
from billwise.domain.exceptions import InvalidEntityError, NotFoundError
from billwise.domain.models import (
    Account,
    AccountClassification,
    AccountType,
    Biller,
    BillerCategory,
    BillerStatus,
    Installment,
    Timing,
)
from billwise.domain.schedules import generate_biller_schedules, generate_installment_schedules
from billwise.infrastructure.database.repositories import (
    AccountRepository,
    BillerRepository,
    InstallmentRepository,
    PaymentScheduleRepository,
    TrashRepository,
)
from billwise.infrastructure.database.session import get_db
from billwise.utils.date_utils import coerce_date

router = APIRouter()


def _existing_account(db: Session, account_id: Optional[str]) -> Optional[str]:
    # The account may have been deleted since
    if account_id and AccountRepository(db).get(account_id) is not None:
        return account_id
    return None


def _restore(db: Session, entity_type: str, payload: Dict[str, Any]) -> str:
    """Recreate an entity from its snapshot under its original id"""
    if entity_type == "account":
        account = AccountRepository(db).create(
            Account(
                id=payload["id"],
                bank=payload["bank"],
                classification=AccountClassification(payload["classification"]),
                balance_cents=payload["balance_cents"],
                type=AccountType(payload["type"]),
                credit_limit_cents=payload.get("credit_limit_cents"),
                billing_date=coerce_date(payload.get("billing_date")),
                due_date=coerce_date(payload.get("due_date")),
            )
        )
        return account.id

    if entity_type == "biller":
        biller = BillerRepository(db).create(
            Biller(
                id=payload["id"],
                name=payload["name"],
                category=BillerCategory(payload["category"]),
                due_day=payload["due_day"],
                expected_amount_cents=payload["expected_amount_cents"],
                timing=Timing(payload["timing"]),
                activation_month=payload["activation_month"],
                activation_year=payload["activation_year"],
                status=BillerStatus(payload["status"]),
                deactivation_month=payload.get("deactivation_month"),
                deactivation_year=payload.get("deactivation_year"),
                linked_account_id=_existing_account(db, payload.get("linked_account_id")),
            )
        )
        PaymentScheduleRepository(db).create_many(generate_biller_schedules(biller))
        return biller.id

    if entity_type == "installment":
        installment = InstallmentRepository(db).create(
            Installment(
                id=payload["id"],
                name=payload["name"],
                total_amount_cents=payload["total_amount_cents"],
                monthly_amount_cents=payload["monthly_amount_cents"],
                term_months=payload["term_months"],
                paid_amount_cents=payload.get("paid_amount_cents", 0),
                account_id=_existing_account(db, payload.get("account_id")),
                start_date=coerce_date(payload.get("start_date")),
                timing=Timing(payload["timing"]) if payload.get("timing") else None,
            )
        )
        PaymentScheduleRepository(db).create_many(generate_installment_schedules(installment))
        return installment.id

    raise InvalidEntityError(f"Cannot restore entity type {entity_type!r}")


@router.get("/trash", response_model=List[TrashItemResponse])
def list_trash(entity_type: Optional[str] = None, db: Session = Depends(get_db)):
    return [trash_response(r) for r in TrashRepository(db).list(entity_type)]


@router.post("/trash/purge", response_model=PurgeResponse)
def purge_trash(request: Request, db: Session = Depends(get_db)):
    """Permanently drop items older than the retention window"""
    request_id = get_request_id(request)
    try:
        removed = TrashRepository(db).purge_older_than(settings.trash_retention_days)
        db.commit()
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    logging.info("Trash purged", extra={"request_id": request_id, "removed": removed})
    return PurgeResponse(removed=removed)


@router.post("/trash/{trash_id}/restore")
def restore_from_trash(trash_id: str, request: Request, db: Session = Depends(get_db)):
    """Restore an item; payment history of billers and installments starts over"""
    request_id = get_request_id(request)
    try:
        repo = TrashRepository(db)
        item = repo.get(trash_id)
        if item is None:
            raise NotFoundError("Trash item", trash_id)
        entity_type = item.entity_type
        restored_id = _restore(db, entity_type, item.payload)
        repo.delete(item.id)
        db.commit()
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return {"entity_type": entity_type, "id": restored_id}


@router.delete("/trash/{trash_id}", status_code=204)
def delete_from_trash(trash_id: str, db: Session = Depends(get_db)):
    if not TrashRepository(db).delete(trash_id):
        raise HTTPException(status_code=404, detail="Trash item not found")
    db.commit()
