"""/v1/projections - where balances and installments are heading"""

from dataclasses import asdict
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from billwise.api.dependencies import get_projection_service, get_request_id
from billwise.api.errors import HANDLED_ERRORS, http_error
from billwise.api.v1.schemas import ProjectionResponse
from billwise.services.projections import ProjectionService

router = APIRouter()


@router.get("/projections", response_model=ProjectionResponse)
def get_projections(
    request: Request,
    months: int = Query(3, ge=1, le=24),
    as_of: Optional[date] = None,
    projections: ProjectionService = Depends(get_projection_service),
):
    """
    Surplus projection for the next `months` months and the payoff schedule
    of every installment that still has a balance.
    """
    request_id = get_request_id(request)
    try:
        view = projections.build(months, today=as_of, request_id=request_id)
    except HANDLED_ERRORS as e:
        raise http_error(e, projections.db, request_id)

    return ProjectionResponse(**asdict(view))
