"""Translate SQLAlchemy failures into domain exceptions"""

from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError, SQLAlchemyError

from billwise.domain.exceptions import DomainException, DuplicatePaymentError, SchemaMismatchError

# Fragments Postgres and SQLite use when a table or column is missing
_SCHEMA_HINTS = ("no such column", "no such table", "does not exist", "undefined column", "undefinedtable", "has no column")


def translate_db_error(exc: SQLAlchemyError) -> DomainException:
    """Map a database error to the taxonomy surfaced to users"""
    message = str(getattr(exc, "orig", exc))

    if isinstance(exc, IntegrityError):
        return DuplicatePaymentError(f"Duplicate payment or schedule rejected by database: {message}")

    if isinstance(exc, (OperationalError, ProgrammingError)) and any(h in message.lower() for h in _SCHEMA_HINTS):
        return SchemaMismatchError(f"Database schema does not match application: {message}")

    return DomainException(f"Database error: {message}")
