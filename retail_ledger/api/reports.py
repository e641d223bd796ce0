"""
Dashboard and activity endpoints (read only).
"""

from datetime import date, datetime
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from retail_ledger.api.errors import to_http_error
from retail_ledger.models.base import get_db
from retail_ledger.schemas.report import OutstandingCredit
from retail_ledger.services.activity_feed import activity_feed
from retail_ledger.services.credit_report_service import CreditReportService

router = APIRouter(tags=["Reports"])


class ActivityEventResponse(BaseModel):
    type: str
    message: str
    data: dict[str, Any]
    created_at: datetime

    model_config = {"from_attributes": True}


@router.get("/dashboard/fiado", response_model=OutstandingCredit)
def outstanding_credit(
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
):
    """
    Customer credit still outstanding: credit sold minus money
    collected on it with an immediate method.
    """
    try:
        return CreditReportService(db).get_outstanding_credit(start_date, end_date)
    except ValueError as e:
        raise to_http_error(e)


@router.get("/activity", response_model=list[ActivityEventResponse])
def recent_activity(limit: int = Query(default=50, ge=1, le=500)):
    """Recent point-of-sale events, newest first."""
    return [
        ActivityEventResponse.model_validate(event)
        for event in activity_feed.recent(limit)
    ]
