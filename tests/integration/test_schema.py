"""Schema verification and database error translation"""

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session
from billwise.domain.exceptions import DomainException, DuplicatePaymentError, SchemaMismatchError
from billwise.infrastructure.database.errors import translate_db_error
from billwise.infrastructure.database.schema import find_schema_drift, init_db, verify_schema


def test_verify_schema_passes_on_fresh_database(db: Session):
    verify_schema(db.get_bind())


def test_verify_schema_reports_missing_tables():
    engine = create_engine("sqlite://")

    with pytest.raises(SchemaMismatchError) as exc_info:
        verify_schema(engine)

    assert "payment_schedules: table missing" in str(exc_info.value)
    assert "Check your database setup" in str(exc_info.value)


def test_find_schema_drift_reports_missing_columns():
    engine = create_engine("sqlite://")
    init_db(engine)
    with engine.begin() as conn:
        conn.execute(text("DROP TABLE trash"))
        conn.execute(text("CREATE TABLE trash (id CHAR(32) PRIMARY KEY, entity_type TEXT)"))

    drift = find_schema_drift(engine)

    assert set(drift) == {"trash"}
    assert set(drift["trash"]) == {"original_id", "payload", "deleted_at"}


def test_integrity_error_is_duplicate_payment():
    exc = IntegrityError("INSERT INTO payment_schedules ...", {}, Exception("UNIQUE constraint failed"))
    assert isinstance(translate_db_error(exc), DuplicatePaymentError)


def test_missing_column_is_schema_mismatch():
    exc = OperationalError("SELECT receipt FROM payment_schedules", {}, Exception("no such column: receipt"))
    assert isinstance(translate_db_error(exc), SchemaMismatchError)


def test_other_operational_errors_stay_generic():
    exc = OperationalError("SELECT 1", {}, Exception("database is locked"))
    translated = translate_db_error(exc)

    assert type(translated) is DomainException
