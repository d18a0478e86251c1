"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from billwise.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_reconciliation(
    request_id: str,
    owner_name: str,
    month: int,
    year: int,
    status: str,
    method: str,
    paid_amount_cents: int,
) -> None:
    """Log how an obligation was resolved, for auditing fuzzy matches"""
    logging.info(
        "Obligation reconciled",
        extra={
            "request_id": request_id,
            "step": "reconcile",
            "owner_name": owner_name,
            "period": f"{year}-{month:02d}",
            "status": status,
            "method": method,
            "paid_amount_cents": paid_amount_cents,
        },
    )


def log_payment_event(
    event: str,
    schedule_id: Optional[str],
    transaction_id: Optional[str],
    amount_cents: int,
    schedule_status: Optional[str] = None,
    request_id: str = "unknown",
) -> None:
    """Log payment recorded / reversed events"""
    logging.info(
        f"Payment {event}",
        extra={
            "request_id": request_id,
            "step": f"payment_{event}",
            "schedule_id": schedule_id,
            "transaction_id": transaction_id,
            "amount_cents": amount_cents,
            "schedule_status": schedule_status,
        },
    )
