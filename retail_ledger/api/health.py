"""
Health check endpoint.

Used by load balancers, monitoring systems, and humans
to verify the application is running and can reach its store.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from retail_ledger.config import get_settings
from retail_ledger.models.base import get_db, is_sqlite_url

router = APIRouter(tags=["Health"])

logger = logging.getLogger(__name__)


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Return application health status including database connectivity.

    If the store cannot answer a trivial query the status is
    "degraded", telling the load balancer to route elsewhere.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        db_status = "unhealthy"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "service": "retail-ledger",
        "database": db_status,
        "backend": (
            "sqlite" if is_sqlite_url(get_settings().DATABASE_URL) else "postgresql"
        ),
    }
