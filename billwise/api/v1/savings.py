"""/v1/savings - savings jars held in an account"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from billwise.api.dependencies import get_request_id
from billwise.api.errors import HANDLED_ERRORS, http_error
from billwise.api.v1.schemas import SavingsJarCreate, SavingsJarResponse
from billwise.domain.exceptions import NotFoundError
from billwise.domain.models import SavingsJar
from billwise.infrastructure.database.repositories import AccountRepository, SavingsRepository
from billwise.infrastructure.database.session import get_db

router = APIRouter()


def jar_response(jar: SavingsJar) -> SavingsJarResponse:
    return SavingsJarResponse(
        id=jar.id, name=jar.name, account_id=jar.account_id, current_balance_cents=jar.current_balance_cents
    )


@router.post("/savings", response_model=SavingsJarResponse, status_code=201)
def create_savings_jar(body: SavingsJarCreate, request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    try:
        if AccountRepository(db).get(body.account_id) is None:
            raise NotFoundError("Account", body.account_id)
        jar = SavingsRepository(db).create(
            SavingsJar(id="", name=body.name, account_id=body.account_id, current_balance_cents=body.current_balance_cents)
        )
        db.commit()
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return jar_response(jar)


@router.get("/savings", response_model=List[SavingsJarResponse])
def list_savings_jars(db: Session = Depends(get_db)):
    return [jar_response(j) for j in SavingsRepository(db).list()]


@router.put("/savings/{jar_id}", response_model=SavingsJarResponse)
def update_savings_jar(jar_id: str, body: SavingsJarCreate, request: Request, db: Session = Depends(get_db)):
    """Rename a jar, move it to another account or set its balance"""
    request_id = get_request_id(request)
    try:
        repo = SavingsRepository(db)
        if repo.get_record(jar_id) is None:
            raise NotFoundError("Savings jar", jar_id)
        if AccountRepository(db).get(body.account_id) is None:
            raise NotFoundError("Account", body.account_id)
        jar = repo.update(
            SavingsJar(id=jar_id, name=body.name, account_id=body.account_id, current_balance_cents=body.current_balance_cents)
        )
        db.commit()
    except HANDLED_ERRORS as e:
        raise http_error(e, db, request_id)

    return jar_response(jar)


@router.delete("/savings/{jar_id}", status_code=204)
def delete_savings_jar(jar_id: str, db: Session = Depends(get_db)):
    if not SavingsRepository(db).delete(jar_id):
        raise HTTPException(status_code=404, detail="Savings jar not found")
    db.commit()
