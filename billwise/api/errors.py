"""Map domain exceptions to HTTP errors"""

import logging

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from billwise.domain.exceptions import (
    DomainException,
    DuplicatePaymentError,
    InvalidEntityError,
    NotFoundError,
    PaymentPolicyError,
    SchemaMismatchError,
)
from billwise.infrastructure.database.errors import translate_db_error

# Failures a route converts into an HTTP error
HANDLED_ERRORS = (DomainException, SQLAlchemyError)


def http_error(exc: Exception, db: Session, request_id: str) -> HTTPException:
    """Roll back the unit of work and build the HTTP error for a failure"""
    db.rollback()

    if isinstance(exc, SQLAlchemyError):
        exc = translate_db_error(exc)

    if isinstance(exc, NotFoundError):
        logging.warning(f"Not found: {exc}", extra={"request_id": request_id})
        return HTTPException(status_code=404, detail=str(exc))

    if isinstance(exc, DuplicatePaymentError):
        logging.warning(f"Duplicate payment: {exc}", extra={"request_id": request_id})
        return HTTPException(status_code=409, detail=str(exc))

    if isinstance(exc, (InvalidEntityError, PaymentPolicyError)):
        logging.warning(f"Rejected: {exc}", extra={"request_id": request_id})
        return HTTPException(status_code=422, detail=str(exc))

    if isinstance(exc, SchemaMismatchError):
        logging.error(f"Schema mismatch: {exc}", extra={"request_id": request_id})
        detail = str(exc) if "database setup" in str(exc) else f"{exc} Check your database setup."
        return HTTPException(status_code=500, detail=detail)

    logging.error(f"Unexpected error: {exc}", extra={"request_id": request_id})
    return HTTPException(status_code=500, detail="Internal server error")
