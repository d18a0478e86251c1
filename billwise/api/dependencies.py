"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from billwise.infrastructure.database.session import get_db
from billwise.services.budget import BudgetService
from billwise.services.payments import PaymentService
from billwise.services.projections import ProjectionService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Payment service bound to the request's session"""
    return PaymentService(db)


def get_budget_service(db: Session = Depends(get_db)) -> BudgetService:
    return BudgetService(db)


def get_projection_service(db: Session = Depends(get_db)) -> ProjectionService:
    return ProjectionService(db)
