"""Schema bootstrap and drift detection against the ORM metadata"""

import logging
from typing import Dict, List

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from billwise.domain.exceptions import SchemaMismatchError
from billwise.infrastructure.database.models import Base

logger = logging.getLogger(__name__)


def init_db(engine: Engine) -> None:
    """Create any missing tables (local development and tests)"""
    Base.metadata.create_all(bind=engine)


def find_schema_drift(engine: Engine) -> Dict[str, List[str]]:
    """
    Compare live tables to the ORM definitions.

    Returns {table: [missing columns]}; a missing table maps to ["*"].
    """
    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())
    drift: Dict[str, List[str]] = {}

    for table in Base.metadata.sorted_tables:
        if table.name not in existing_tables:
            drift[table.name] = ["*"]
            continue

        live_columns = {col["name"] for col in inspector.get_columns(table.name)}
        missing = [col.name for col in table.columns if col.name not in live_columns]
        if missing:
            drift[table.name] = missing

    return drift


def verify_schema(engine: Engine) -> None:
    """Raise SchemaMismatchError when the database lags behind the code"""
    drift = find_schema_drift(engine)
    if not drift:
        logger.info("Database schema verified", extra={"tables": len(Base.metadata.tables)})
        return

    details = "; ".join(
        f"{table}: table missing" if cols == ["*"] else f"{table}: missing {', '.join(cols)}"
        for table, cols in sorted(drift.items())
    )
    logger.error("Database schema mismatch", extra={"drift": drift})
    raise SchemaMismatchError(f"Database schema out of date ({details}). Check your database setup.")
